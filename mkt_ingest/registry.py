# =============================================================================
# Dataset Registry
# =============================================================================
# The fixed set of datasets the console accepts uploads for, and the
# registry that binds each one to its loaded schema.
# =============================================================================

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import ValidationError

from mkt_ingest.errors import SchemaDefinitionError
from mkt_ingest.models.dataset import DatasetDescriptor, DatasetWithSchema
from mkt_ingest.schema_loader import load_schema_file

__all__ = [
    "DATASETS",
    "DEFAULT_SCHEMA_DIR",
    "SchemaRegistry",
]

log = logging.getLogger(__name__)

DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"

DATASETS: Dict[str, DatasetDescriptor] = {
    "gangnamunni": DatasetDescriptor(
        id="gangnamunni",
        label="강남언니 Data Raw",
        table_label="강남언니 Raw",
        schema_file="gangnamunni.csv",
        table_id="tugether-data-warehouse-01.06_mkt.01_keyword_search_raw",
    ),
    "babitalk": DatasetDescriptor(
        id="babitalk",
        label="바비톡 Data Raw",
        table_label="바비톡 Raw",
        schema_file="babitalk.csv",
        table_id="tugether-data-warehouse-01.06_mkt.02_consult_booking_raw",
    ),
    "goddessicket": DatasetDescriptor(
        id="goddessicket",
        label="여신티켓 Data Raw",
        table_label="여신티켓 Raw",
        schema_file="goddessicket.csv",
        table_id="tugether-data-warehouse-01.06_mkt.03_campaign_performance_raw",
    ),
}


class SchemaRegistry:
    """
    Resolves dataset identifiers to descriptors with their schemas.

    Schema files are read on first use of each dataset and cached for the
    life of the registry.
    """

    def __init__(
        self,
        schema_dir: Path = DEFAULT_SCHEMA_DIR,
        datasets: Optional[Mapping[str, DatasetDescriptor]] = None,
    ) -> None:
        self._schema_dir = Path(schema_dir)
        self._datasets = dict(DATASETS if datasets is None else datasets)
        self._cache: Dict[str, DatasetWithSchema] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def get(self, dataset_id: str) -> Optional[DatasetWithSchema]:
        """
        Get a dataset with its schema.

        Args:
            dataset_id: Identifier from the upload form

        Returns:
            DatasetWithSchema, or None if the identifier is unknown

        Raises:
            SchemaDefinitionError: If the dataset's schema file is missing or
                malformed
        """
        descriptor = self._datasets.get(dataset_id)
        if descriptor is None:
            return None

        cached = self._cache.get(dataset_id)
        if cached is not None:
            return cached

        fields = load_schema_file(self._schema_dir / descriptor.schema_file)
        try:
            dataset = DatasetWithSchema(**descriptor.model_dump(), columns=tuple(fields))
        except ValidationError as exc:
            raise SchemaDefinitionError(
                f"Schema for dataset '{dataset_id}' is invalid: {exc}"
            ) from exc

        log.info(f"Registered dataset '{dataset_id}' with {len(fields)} columns")
        self._cache[dataset_id] = dataset
        return dataset

    def datasets(self) -> List[DatasetWithSchema]:
        """All datasets with their schemas, in declaration order."""
        return [self.get(dataset_id) for dataset_id in self._datasets]
