# =============================================================================
# Dataset Service
# =============================================================================
# Provides the schema registry to routers.
# =============================================================================

from pathlib import Path
from typing import Optional

from fastapi import Depends

from app.config import Settings, get_settings
from mkt_ingest.registry import SchemaRegistry

# Singleton instance
_schema_registry: Optional[SchemaRegistry] = None


def get_schema_registry(settings: Settings = Depends(get_settings)) -> SchemaRegistry:
    """Get or create the schema registry for the configured schema directory."""
    global _schema_registry
    if _schema_registry is None or _schema_registry.schema_dir != Path(settings.schema_dir):
        _schema_registry = SchemaRegistry(schema_dir=settings.schema_dir)
    return _schema_registry
