# =============================================================================
# Data Models Library
# =============================================================================
# Pydantic models and request-scoped records for the upload pipeline.
# =============================================================================

"""
Data models for the upload pipeline.

This library provides:
- Dataset models: SchemaField, DatasetDescriptor, DatasetWithSchema
- Ingestion models: IngestionStage, IngestionLog, UploadResult
"""

from .dataset import (
    SchemaField,
    DatasetDescriptor,
    DatasetWithSchema,
)

from .ingestion import (
    IngestionStage,
    IngestionLog,
    UploadResult,
)

__all__ = [
    # Dataset models
    "SchemaField",
    "DatasetDescriptor",
    "DatasetWithSchema",
    # Ingestion models
    "IngestionStage",
    "IngestionLog",
    "UploadResult",
]
