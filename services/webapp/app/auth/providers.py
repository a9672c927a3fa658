# =============================================================================
# Authentication Providers
# =============================================================================
# Shared-password authentication. A successful login issues a session cookie
# whose value is the SHA-256 hex digest of the shared password; requests are
# authorized by recomputing that digest and comparing.
# =============================================================================

import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional

PASSWORD_NOT_CONFIGURED = "APP_LOGIN_PASSWORD is not configured on the server."
SESSION_EXPIRED = "Your session has expired. Please log in again."


def compute_session_value(password: str) -> str:
    """Deterministic session cookie value for the shared password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class SharedPasswordProvider:
    """Single shared credential gating the whole console."""

    def __init__(self, password: Optional[str]) -> None:
        """
        Initialize with the expected password.

        Args:
            password: Shared password, or None/empty if not configured
        """
        self._password = password or None

    @property
    def is_configured(self) -> bool:
        return self._password is not None

    def check_password(self, candidate: str) -> bool:
        """
        Compare a submitted password with the shared one.

        Returns:
            True on an exact match, False otherwise or when unconfigured
        """
        if self._password is None:
            return False
        # Constant-time comparison
        return secrets.compare_digest(
            candidate.encode("utf-8"), self._password.encode("utf-8")
        )

    def session_value(self) -> Optional[str]:
        """Cookie value a logged-in browser carries, or None if unconfigured."""
        if self._password is None:
            return None
        return compute_session_value(self._password)


@dataclass(frozen=True)
class AuthContext:
    """
    Authentication facts for one request.

    Built from the request cookie and process settings, then handed to the
    upload pipeline instead of being read from ambient state.
    """

    session_value: Optional[str]
    expected_value: Optional[str]

    def ensure_authenticated(self) -> bool:
        if not self.expected_value or not self.session_value:
            return False
        return secrets.compare_digest(self.session_value, self.expected_value)

    @property
    def failure_reason(self) -> Optional[str]:
        """Why ensure_authenticated() fails, or None if it succeeds."""
        if not self.expected_value:
            return PASSWORD_NOT_CONFIGURED
        if not self.ensure_authenticated():
            return SESSION_EXPIRED
        return None
