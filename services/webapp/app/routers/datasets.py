# =============================================================================
# Datasets Router
# =============================================================================
# Lists the upload targets and their column mappings.
# =============================================================================

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.auth.dependencies import require_session
from app.auth.providers import AuthContext
from app.services.dataset_service import get_schema_registry
from mkt_ingest.errors import SchemaDefinitionError
from mkt_ingest.models import SchemaField
from mkt_ingest.registry import SchemaRegistry

router = APIRouter(prefix="/datasets", tags=["datasets"])


class DatasetResponse(BaseModel):
    """One upload target with its schema."""

    id: str
    label: str
    table_label: str
    table_id: str
    columns: list[SchemaField]


class DatasetListResponse(BaseModel):
    """Response for dataset listing."""

    datasets: list[DatasetResponse]
    count: int


@router.get("", response_model=DatasetListResponse)
async def list_datasets(
    registry: SchemaRegistry = Depends(get_schema_registry),
    auth: AuthContext = Depends(require_session),
) -> DatasetListResponse:
    """List every dataset with its source -> target column mapping."""
    try:
        datasets = registry.datasets()
    except SchemaDefinitionError as exc:
        raise HTTPException(status_code=500, detail=exc.message) from exc

    return DatasetListResponse(
        datasets=[
            DatasetResponse(
                id=dataset.id,
                label=dataset.label,
                table_label=dataset.table_label,
                table_id=dataset.table_id,
                columns=list(dataset.columns),
            )
            for dataset in datasets
        ],
        count=len(datasets),
    )
