"""Unit tests for the dataset registry."""

import pytest

from mkt_ingest.errors import SchemaDefinitionError
from mkt_ingest.models import DatasetDescriptor, DatasetWithSchema
from mkt_ingest.registry import DATASETS, SchemaRegistry
from mkt_ingest.table_ids import parse_table_id


class TestDatasetCatalog:
    """Tests for the fixed dataset catalog."""

    def test_known_dataset_ids(self):
        assert list(DATASETS) == ["gangnamunni", "babitalk", "goddessicket"]

    @pytest.mark.parametrize("dataset_id", sorted(DATASETS))
    def test_table_ids_are_fully_qualified(self, dataset_id):
        table = parse_table_id(DATASETS[dataset_id].table_id)

        assert table.project == "tugether-data-warehouse-01"


class TestSchemaRegistry:
    """Tests for SchemaRegistry."""

    def test_get_known_dataset(self, registry):
        dataset = registry.get("people")

        assert isinstance(dataset, DatasetWithSchema)
        assert dataset.source_columns == ["이름"]
        assert dataset.table_id == "test-project.marketing.people_raw"

    def test_unknown_dataset_returns_none(self, registry):
        assert registry.get("gangnamunni") is None

    def test_schema_is_cached(self, registry, schema_dir):
        first = registry.get("people")
        (schema_dir / "people.csv").unlink()

        assert registry.get("people") is first

    def test_missing_schema_file(self, tmp_path, people_descriptor):
        registry = SchemaRegistry(schema_dir=tmp_path, datasets={"people": people_descriptor})

        with pytest.raises(SchemaDefinitionError):
            registry.get("people")

    def test_duplicate_target_names_rejected(self, write_schema, people_descriptor):
        path = write_schema("people.csv", ["이름,STRING,name", "성명,STRING,name"])
        registry = SchemaRegistry(
            schema_dir=path.parent, datasets={"people": people_descriptor}
        )

        with pytest.raises(SchemaDefinitionError, match="Duplicate target"):
            registry.get("people")

    def test_header_only_schema_rejected(self, write_schema, people_descriptor):
        path = write_schema("people.csv", [])
        registry = SchemaRegistry(
            schema_dir=path.parent, datasets={"people": people_descriptor}
        )

        with pytest.raises(SchemaDefinitionError):
            registry.get("people")

    def test_datasets_in_declaration_order(self, write_schema, people_descriptor):
        write_schema("people.csv", ["이름,STRING,name"])
        path = write_schema("orders.csv", ["주문,STRING,order_id"])
        orders = DatasetDescriptor(
            id="orders",
            label="Orders",
            table_label="Orders",
            schema_file="orders.csv",
            table_id="ds.orders",
        )
        registry = SchemaRegistry(
            schema_dir=path.parent,
            datasets={"orders": orders, "people": people_descriptor},
        )

        assert [d.id for d in registry.datasets()] == ["orders", "people"]

    def test_default_registry_loads_packaged_schemas(self):
        datasets = SchemaRegistry().datasets()

        assert [d.id for d in datasets] == list(DATASETS)
