"""
Shared pytest fixtures.

Provides schema files and dataset registries so tests never depend on the
packaged schema definitions.
"""

import pytest

from mkt_ingest.models import DatasetDescriptor, SchemaField
from mkt_ingest.registry import SchemaRegistry
from mkt_ingest.schema_loader import SOURCE_HEADER, TARGET_HEADER, TYPE_HEADER

SCHEMA_HEADER_LINE = f"{SOURCE_HEADER},{TYPE_HEADER},{TARGET_HEADER}\n"


# =============================================================================
# Schema Fixtures
# =============================================================================

@pytest.fixture
def write_schema(tmp_path):
    """Write a schema CSV into a temporary schema directory."""
    schema_dir = tmp_path / "schemas"
    schema_dir.mkdir(exist_ok=True)

    def _write(name, rows, header=SCHEMA_HEADER_LINE):
        path = schema_dir / name
        path.write_text(header + "".join(f"{row}\n" for row in rows), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def schema_dir(write_schema):
    """Schema directory holding a single-column 'people' schema."""
    path = write_schema("people.csv", ["이름,STRING,name"])
    return path.parent


@pytest.fixture
def people_descriptor():
    """Descriptor pointing at the 'people' schema."""
    return DatasetDescriptor(
        id="people",
        label="People Raw",
        table_label="People",
        schema_file="people.csv",
        table_id="test-project.marketing.people_raw",
    )


@pytest.fixture
def registry(schema_dir, people_descriptor):
    """Registry that knows only the 'people' dataset."""
    return SchemaRegistry(schema_dir=schema_dir, datasets={"people": people_descriptor})


@pytest.fixture
def campaign_fields():
    """Three-column schema used by the remapper tests."""
    return [
        SchemaField(source_name="캠페인", data_type="STRING", target_name="campaign"),
        SchemaField(source_name="노출수", data_type="INTEGER", target_name="impressions"),
        SchemaField(source_name="클릭수", data_type="INTEGER", target_name="clicks"),
    ]
