"""
Authentication Service for Terminal Adventure.

Checks the admin password used by `sudo` and issues opaque session tokens
that expire after a period of inactivity.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


class Authenticator(Protocol):
    """Interface for the authentication collaborator."""

    async def validate_credentials(self, secret: str) -> bool:
        """Whether the secret is the admin password."""
        ...

    async def create_session(self) -> str:
        """Issue a new session token."""
        ...

    async def validate_session(self, token: str) -> bool:
        """Whether the token belongs to a live session."""
        ...

    async def logout(self, token: str) -> None:
        """Destroy a session."""
        ...


@dataclass
class AdminSession:
    """A live admin session."""

    token: str
    created_at: datetime
    expires_at: datetime


@dataclass
class AuthService:
    """
    In-process authentication collaborator.

    Sessions slide: every successful validation pushes the expiry out by
    the full timeout.

    Args:
        password: The admin password
        timeout_minutes: Inactivity timeout for sessions
        clock: Source of the current time (tests pass a fake)
    """

    password: str
    timeout_minutes: int = 30
    clock: Callable[[], datetime] = _now
    _sessions: dict[str, AdminSession] = field(init=False, default_factory=dict)

    @property
    def timeout(self) -> timedelta:
        return timedelta(minutes=self.timeout_minutes)

    async def validate_credentials(self, secret: str) -> bool:
        """Compare the secret against the admin password in constant time."""
        valid = secrets.compare_digest(secret.encode(), self.password.encode())
        if not valid:
            logger.info("Rejected admin credentials")
        return valid

    async def create_session(self) -> str:
        """Issue a token for a new admin session."""
        now = self.clock()
        token = secrets.token_urlsafe(32)
        self._sessions[token] = AdminSession(
            token=token,
            created_at=now,
            expires_at=now + self.timeout,
        )
        logger.info("Admin session created")
        return token

    async def validate_session(self, token: str) -> bool:
        """Check a token, refreshing it when valid and dropping it when expired."""
        session = self._sessions.get(token)
        if session is None:
            return False
        if self.clock() >= session.expires_at:
            del self._sessions[token]
            logger.info("Admin session expired")
            return False
        await self.refresh_session(token)
        return True

    async def refresh_session(self, token: str) -> bool:
        """Extend a session's expiry. Returns False for unknown tokens."""
        session = self._sessions.get(token)
        if session is None:
            return False
        session.expires_at = self.clock() + self.timeout
        return True

    async def logout(self, token: str) -> None:
        """Destroy a session. Unknown tokens are ignored."""
        if self._sessions.pop(token, None) is not None:
            logger.info("Admin session closed")

    def cleanup_expired(self) -> int:
        """Drop every expired session; returns how many were removed."""
        now = self.clock()
        expired = [t for t, s in self._sessions.items() if now >= s.expires_at]
        for token in expired:
            del self._sessions[token]
        return len(expired)

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)
