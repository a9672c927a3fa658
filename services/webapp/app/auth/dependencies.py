# =============================================================================
# Authentication Dependencies
# =============================================================================
# FastAPI dependencies for authentication.
# =============================================================================

from fastapi import Depends, HTTPException, Request, status

from app.auth.providers import AuthContext, SharedPasswordProvider
from app.config import Settings, get_settings


def get_auth_provider(settings: Settings = Depends(get_settings)) -> SharedPasswordProvider:
    """Get the authentication provider instance."""
    return SharedPasswordProvider(password=settings.app_login_password)


def get_auth_context(
    request: Request,
    settings: Settings = Depends(get_settings),
    auth_provider: SharedPasswordProvider = Depends(get_auth_provider),
) -> AuthContext:
    """Build the per-request AuthContext from the session cookie."""
    return AuthContext(
        session_value=request.cookies.get(settings.session_cookie_name),
        expected_value=auth_provider.session_value(),
    )


def require_session(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """
    Reject requests without a valid session cookie.

    Raises:
        HTTPException: 401 Unauthorized if the session is missing or stale.
    """
    if not auth.ensure_authenticated():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=auth.failure_reason,
        )
    return auth
