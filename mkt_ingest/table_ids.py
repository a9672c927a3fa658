# =============================================================================
# BigQuery Table Identifier Utilities
# =============================================================================
# Parsing of dotted warehouse table identifiers.
# =============================================================================

"""
Table identifier utilities.

This module provides:
- TableIdentifier: Parsed [project.]dataset.table identifier
- parse_table_id: Split a dotted identifier into its parts
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from mkt_ingest.errors import InvalidTableIdentifier

__all__ = [
    "TableIdentifier",
    "parse_table_id",
]


class TableIdentifier(BaseModel):
    """A warehouse table reference. ``project`` is None for two-part ids."""

    model_config = ConfigDict(frozen=True)

    project: Optional[str] = None
    dataset: str
    table: str

    def qualified(self, project: Optional[str] = None) -> str:
        """
        Render as a dotted identifier.

        Args:
            project: Project to use when the identifier carries none

        Returns:
            "project.dataset.table", or "dataset.table" if no project is known
        """
        resolved = self.project or project
        if resolved:
            return f"{resolved}.{self.dataset}.{self.table}"
        return f"{self.dataset}.{self.table}"


def parse_table_id(table_id: str) -> TableIdentifier:
    """
    Parse a dotted table identifier.

    Args:
        table_id: "project.dataset.table" or "dataset.table"

    Returns:
        TableIdentifier with the parsed parts

    Raises:
        InvalidTableIdentifier: If the identifier does not have 2 or 3
            segments, or any segment is empty

    Examples:
        >>> parse_table_id("a.b.c")
        TableIdentifier(project='a', dataset='b', table='c')
        >>> parse_table_id("b.c")
        TableIdentifier(project=None, dataset='b', table='c')
    """
    parts = table_id.split(".")

    if len(parts) == 3:
        project, dataset, table = parts
        if not project or not dataset or not table:
            raise InvalidTableIdentifier(
                f"Invalid BigQuery table id '{table_id}'. "
                "Expected 'project.dataset.table'"
            )
        return TableIdentifier(project=project, dataset=dataset, table=table)

    if len(parts) == 2:
        dataset, table = parts
        if not dataset or not table:
            raise InvalidTableIdentifier(
                f"Invalid BigQuery table id '{table_id}'. Expected 'dataset.table'"
            )
        return TableIdentifier(dataset=dataset, table=table)

    raise InvalidTableIdentifier(
        f"Invalid BigQuery table id '{table_id}'. "
        "Expected 'project.dataset.table' or 'dataset.table'"
    )
