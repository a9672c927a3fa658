# =============================================================================
# Health Check Router
# =============================================================================
# Endpoints for container health checks and readiness probes.
# =============================================================================

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import Settings, get_settings
from app.services.dataset_service import get_schema_registry
from mkt_ingest.errors import SchemaDefinitionError
from mkt_ingest.registry import SchemaRegistry

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadyResponse(BaseModel):
    """Readiness check response model."""

    status: str
    services: dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the service is running.
    No authentication required for container health checks.
    """
    from app import __version__

    return HealthResponse(status="healthy", version=__version__)


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(
    settings: Settings = Depends(get_settings),
    registry: SchemaRegistry = Depends(get_schema_registry),
) -> JSONResponse:
    """
    Readiness check endpoint.

    Verifies that every schema file loads and that a login password is set.
    BigQuery is not contacted. No authentication required.
    """
    services = {
        "auth": "configured" if settings.app_login_password else "missing_password",
        "bigquery": "unchecked",
    }
    try:
        registry.datasets()
        services["schemas"] = "ok"
    except SchemaDefinitionError:
        services["schemas"] = "invalid"

    ready = services["auth"] == "configured" and services["schemas"] == "ok"
    body = ReadyResponse(status="ready" if ready else "not_ready", services=services)
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())
