# =============================================================================
# Services Module
# =============================================================================
# Service wrappers for the schema registry, BigQuery, and the upload pipeline.
# =============================================================================

from app.services.bigquery_service import BigQueryService, get_bigquery_service
from app.services.dataset_service import get_schema_registry
from app.services.ingestion_service import (
    IngestionOrchestrator,
    get_ingestion_orchestrator,
)

__all__ = [
    # BigQuery
    "BigQueryService",
    "get_bigquery_service",
    # Schemas
    "get_schema_registry",
    # Upload pipeline
    "IngestionOrchestrator",
    "get_ingestion_orchestrator",
]
