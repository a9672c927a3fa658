# =============================================================================
# FastAPI Main Application
# =============================================================================
# Entry point for the marketing data upload console.
# =============================================================================

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from app import __version__
from app.auth.dependencies import get_auth_context
from app.auth.providers import AuthContext
from app.config import get_settings
from app.routers import datasets, health, session, upload
from app.services.dataset_service import get_schema_registry
from mkt_ingest.registry import SchemaRegistry

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Application instance
app = FastAPI(
    title="Marketing Data Upload Console",
    description="Upload marketing CSV exports and append them to their BigQuery tables.",
    version=__version__,
)

# Paths
BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

# Templates
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# Mount static files if directory exists
if STATIC_DIR.exists():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Include routers
app.include_router(health.router)
app.include_router(session.router)
app.include_router(datasets.router)
app.include_router(upload.router)


@app.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
    registry: SchemaRegistry = Depends(get_schema_registry),
) -> HTMLResponse:
    """
    Upload page when logged in, login form otherwise.

    The upload page lists the datasets with their column mappings and posts
    the chosen file to /upload.
    """
    if not auth.ensure_authenticated():
        return templates.TemplateResponse(request, "login.html", {"error": None})

    return templates.TemplateResponse(
        request,
        "index.html",
        {"datasets": registry.datasets()},
    )
