"""Admin token authentication for front-desk mutations and resets."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Optional

from frontdesk.utils.config import Settings, get_settings


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when ADMIN_TOKEN is missing."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when a provided token or session is invalid."""


class AuthService:
    """Exchanges the admin token for expiring bearer sessions."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._sessions: dict[str, datetime] = {}
        self._lock = RLock()

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    def _expected_token(self) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        return self._settings.admin_token

    def login(self, provided_admin_token: str) -> str:
        expected = self._expected_token()
        if not secrets.compare_digest(provided_admin_token, expected):
            raise InvalidAdminTokenError("Invalid admin token")
        session_token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=self._settings.admin_session_ttl_minutes
        )
        with self._lock:
            self._sessions[session_token] = expires_at
        return session_token

    def logout(self, bearer_token: str) -> None:
        with self._lock:
            self._sessions.pop(bearer_token, None)

    def validate_bearer_token(self, bearer_token: str) -> None:
        if not self.auth_enabled:
            return
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [token for token, expires_at in self._sessions.items() if expires_at <= now]
            for token in expired:
                del self._sessions[token]
            if not self._sessions:
                raise InvalidAdminTokenError("No active session. Login first.")
            for token in self._sessions:
                if secrets.compare_digest(bearer_token, token):
                    return
        raise InvalidAdminTokenError("Invalid or expired bearer token")
