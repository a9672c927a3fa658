# =============================================================================
# Session Router
# =============================================================================
# Login and logout with the shared password.
# =============================================================================

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from app.auth.dependencies import get_auth_provider
from app.auth.providers import PASSWORD_NOT_CONFIGURED, SharedPasswordProvider
from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])

# Templates
BASE_DIR = Path(__file__).resolve().parent.parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _login_error(request: Request, message: str, status_code: int) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error": message},
        status_code=status_code,
    )


@router.post("/login", response_model=None)
async def login(
    request: Request,
    password: str = Form(""),
    settings: Settings = Depends(get_settings),
    auth_provider: SharedPasswordProvider = Depends(get_auth_provider),
) -> Response:
    """
    Check the shared password and issue the session cookie.

    Redirects to the upload page on success; re-renders the login form with
    an error otherwise.
    """
    if not auth_provider.is_configured:
        logger.error("Login attempted but APP_LOGIN_PASSWORD is not configured")
        return _login_error(request, PASSWORD_NOT_CONFIGURED, 500)

    if not password:
        return _login_error(request, "Please enter the password.", 400)

    if not auth_provider.check_password(password):
        logger.info("Rejected login with an incorrect password")
        return _login_error(request, "The password is incorrect.", 401)

    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=auth_provider.session_value(),
        max_age=settings.session_max_age_seconds,
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout")
async def logout(settings: Settings = Depends(get_settings)) -> RedirectResponse:
    """Drop the session cookie and return to the login page."""
    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(key=settings.session_cookie_name, path="/")
    return response
