# =============================================================================
# Schema Definition Loader
# =============================================================================
# Reads per-dataset schema CSV files into ordered SchemaField sequences.
# Each row maps one source column to its declared type and target name.
# =============================================================================

import logging
from pathlib import Path
from typing import List

import pyarrow as pa
import pyarrow.compute as pc
import pyarrow.csv as csv

from mkt_ingest.errors import SchemaDefinitionError
from mkt_ingest.models.dataset import SchemaField

__all__ = [
    "SOURCE_HEADER",
    "TYPE_HEADER",
    "TARGET_HEADER",
    "load_schema_file",
]

log = logging.getLogger(__name__)

# Column headers of the schema definition files
SOURCE_HEADER = "기존 컬럼명"
TYPE_HEADER = "데이터 타입"
TARGET_HEADER = "영어 컬럼명"

_SCHEMA_HEADERS = (SOURCE_HEADER, TYPE_HEADER, TARGET_HEADER)


def _read_schema_table(path: Path) -> pa.Table:
    """Read a schema CSV with every column as string and cells trimmed."""
    table = csv.read_csv(
        str(path),
        read_options=csv.ReadOptions(use_threads=False),
        parse_options=csv.ParseOptions(delimiter=","),
        convert_options=csv.ConvertOptions(
            column_types={name: pa.string() for name in _SCHEMA_HEADERS},
            strings_can_be_null=False,
        ),
    )
    table = table.rename_columns([name.strip() for name in table.column_names])

    for name in _SCHEMA_HEADERS:
        if name not in table.column_names:
            raise SchemaDefinitionError(
                f"Schema file '{path.name}' is missing the '{name}' column"
            )
        idx = table.column_names.index(name)
        col = pc.utf8_trim_whitespace(table.column(name).cast(pa.string()))
        table = table.set_column(idx, name, col)

    return table.select(list(_SCHEMA_HEADERS))


def load_schema_file(path: Path) -> List[SchemaField]:
    """
    Load one schema definition file.

    Args:
        path: Path to a CSV with the source/type/target header columns

    Returns:
        SchemaFields in file order

    Raises:
        SchemaDefinitionError: If the file is missing, unreadable, or any row
            lacks one of the three values
    """
    if not path.is_file():
        raise SchemaDefinitionError(f"Schema file not found: {path}")

    try:
        table = _read_schema_table(path)
    except pa.ArrowInvalid as exc:
        raise SchemaDefinitionError(
            f"Schema file '{path.name}' could not be parsed: {exc}"
        ) from exc

    fields: List[SchemaField] = []
    for row in table.to_pylist():
        source = row[SOURCE_HEADER]
        data_type = row[TYPE_HEADER]
        target = row[TARGET_HEADER]
        if not source or not data_type or not target:
            raise SchemaDefinitionError(
                f"Schema file '{path.name}' has a row with a missing value. "
                f"Every row needs '{SOURCE_HEADER}', '{TYPE_HEADER}' and "
                f"'{TARGET_HEADER}'."
            )
        fields.append(
            SchemaField(source_name=source, data_type=data_type, target_name=target)
        )

    log.info(f"Loaded {len(fields)} schema fields from {path.name}")
    return fields
