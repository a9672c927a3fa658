# =============================================================================
# Upload Router
# =============================================================================
# CSV upload endpoint. Authentication is checked inside the pipeline so an
# unauthenticated attempt still gets the JSON transcript body.
# =============================================================================

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.auth.dependencies import get_auth_context
from app.auth.providers import AuthContext
from app.services.ingestion_service import IngestionOrchestrator, get_ingestion_orchestrator
from mkt_ingest.models import UploadResult

router = APIRouter(tags=["upload"])


@router.post(
    "/upload",
    response_model=UploadResult,
    responses={
        400: {"model": UploadResult, "description": "Invalid upload"},
        401: {"model": UploadResult, "description": "Not authenticated"},
        500: {"model": UploadResult, "description": "Configuration or BigQuery error"},
    },
)
async def upload_csv(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    orchestrator: IngestionOrchestrator = Depends(get_ingestion_orchestrator),
) -> JSONResponse:
    """
    Upload a CSV and append it to the dataset's BigQuery table.

    Multipart fields:
    - datasetId: one of the configured dataset ids
    - file: the CSV file

    Always answers with ``{success, logs, error?}``.
    """
    log = await orchestrator.run(request, auth)
    result = log.to_result()
    return JSONResponse(
        status_code=log.status_code,
        content=result.model_dump(exclude_none=True),
    )
