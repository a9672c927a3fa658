# =============================================================================
# Dataset Models Module
# =============================================================================
# Defines models for the upload targets:
# - SchemaField: One source -> target column mapping plus its declared type
# - DatasetDescriptor: A fixed upload target bound to one warehouse table
# - DatasetWithSchema: A descriptor together with its loaded schema
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field, model_validator

__all__ = [
    "SchemaField",
    "DatasetDescriptor",
    "DatasetWithSchema",
]


class SchemaField(BaseModel):
    """
    One column mapping of a dataset schema.

    Attributes:
        source_name: Expected CSV header text (exact, case-sensitive match)
        data_type: Declared BigQuery column type. Passed to the load job as-is;
                   never checked against cell contents.
        target_name: Output column name in the warehouse table
    """

    model_config = ConfigDict(frozen=True)

    source_name: str = Field(..., min_length=1, description="CSV header text")
    data_type: str = Field(..., min_length=1, description="Declared warehouse type")
    target_name: str = Field(..., min_length=1, description="Output column name")


class DatasetDescriptor(BaseModel):
    """
    A named upload target.

    Descriptors are defined once at import time and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Dataset identifier used by the upload form")
    label: str = Field(..., description="Display label")
    table_label: str = Field(..., description="Short label of the target table")
    schema_file: str = Field(..., description="Schema CSV file name")
    table_id: str = Field(..., description="Target table as [project.]dataset.table")


class DatasetWithSchema(DatasetDescriptor):
    """A descriptor plus its ordered schema fields."""

    columns: tuple[SchemaField, ...] = Field(
        ..., min_length=1, description="Column mappings in output order"
    )

    @model_validator(mode="after")
    def validate_unique_targets(self) -> "DatasetWithSchema":
        """Target names double as the output header, so they must be unique."""
        seen: set[str] = set()
        duplicates: list[str] = []
        for field in self.columns:
            if field.target_name in seen and field.target_name not in duplicates:
                duplicates.append(field.target_name)
            seen.add(field.target_name)
        if duplicates:
            raise ValueError(
                f"Duplicate target column names in schema '{self.schema_file}': "
                f"{', '.join(duplicates)}"
            )
        return self

    @property
    def source_columns(self) -> list[str]:
        """Source column names every upload must carry."""
        return [field.source_name for field in self.columns]
