"""
Session Models for Terminal Adventure.

The session context is the explicit state handed to every command handler:
which mode the user is in, whether they are authenticated, and what they
currently have selected.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class GameMode(str, Enum):
    """Session modes. The mode gates which commands resolve."""

    PLAYER = "player"
    ADMIN = "admin"


class CommandScope(str, Enum):
    """Which mode(s) a command is available in."""

    PLAYER = "player"
    ADMIN = "admin"
    BOTH = "both"

    def allows(self, mode: GameMode) -> bool:
        """Whether a command with this scope resolves in the given mode."""
        return self is CommandScope.BOTH or self.value == mode.value


class SessionContext(BaseModel):
    """Mutable state of one shell session."""

    mode: GameMode = GameMode.PLAYER
    authenticated: bool = False
    session_token: str | None = Field(
        default=None, description="Opaque token issued by the auth service"
    )
    current_location_id: str | None = Field(
        default=None, description="Where the player currently is"
    )
    selected_adventure_id: str | None = Field(
        default=None, description="Adventure selected for editing in admin mode"
    )
    selected_location_id: str | None = Field(
        default=None, description="Location selected for editing in admin mode"
    )
    running: bool = True

    def elevate(self, token: str) -> None:
        """Enter admin mode with a freshly issued session token."""
        self.mode = GameMode.ADMIN
        self.authenticated = True
        self.session_token = token

    def drop_privileges(self) -> None:
        """Return to player mode, forgetting the admin session."""
        self.mode = GameMode.PLAYER
        self.authenticated = False
        self.session_token = None
