"""
Engine Data Models for Terminal Adventure.

Defines the data structures shared by the engine and the command layer:
- ParsedCommand: a tokenized input line
- CommandResult / ErrorInfo: what a command handler returns
- ShellConfig: runtime configuration
"""

from __future__ import annotations

import os
from enum import Enum

from pydantic import BaseModel, Field


class OutputStyle(str, Enum):
    """Style tags attached to output lines."""

    NORMAL = "normal"
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    DIALOGUE = "dialogue"
    DESCRIPTION = "description"
    SYSTEM = "system"
    DIM = "dim"


class ErrorKind(str, Enum):
    """Categories of failure a command can report."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    VALIDATION_FAILED = "validation_failed"
    CANCELLED = "cancelled"
    SERVICE_UNAVAILABLE = "service_unavailable"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


class ErrorInfo(BaseModel):
    """A user-facing error with an optional actionable suggestion."""

    kind: ErrorKind
    message: str
    suggestion: str | None = None


class ParsedCommand(BaseModel):
    """Result of parsing one input line."""

    command: str = Field(description="Canonical command name, or the unknown token")
    args: list[str] = Field(default_factory=list)
    is_valid: bool = True
    error: str | None = None


class CommandResult(BaseModel):
    """Response of a command handler."""

    success: bool = True
    output: list[str] = Field(default_factory=list)
    error: ErrorInfo | None = None
    style: OutputStyle = OutputStyle.NORMAL
    cancelled: bool = Field(
        default=False, description="The user aborted; a normal termination, not a failure"
    )

    @classmethod
    def ok(cls, *lines: str, style: OutputStyle = OutputStyle.NORMAL) -> CommandResult:
        return cls(success=True, output=list(lines), style=style)

    @classmethod
    def fail(
        cls,
        kind: ErrorKind,
        message: str,
        suggestion: str | None = None,
    ) -> CommandResult:
        return cls(
            success=False,
            error=ErrorInfo(kind=kind, message=message, suggestion=suggestion),
            style=OutputStyle.ERROR,
        )

    @classmethod
    def aborted(cls, message: str) -> CommandResult:
        """A cancelled operation: reported as information, not as an error."""
        return cls(success=True, output=[message], style=OutputStyle.INFO, cancelled=True)


class ShellConfig(BaseModel):
    """Runtime configuration for a shell session."""

    history_capacity: int = Field(default=100, ge=1, description="Retained history entries")
    history_display_limit: int = Field(default=50, ge=1, description="Entries shown by `history`")
    history_collapse_duplicates: bool = True
    admin_password: str = Field(default="admin", description="Password accepted by `sudo`")
    session_timeout_minutes: int = Field(default=30, ge=1)
    api_base_url: str | None = Field(
        default=None, description="Adventure backend; in-memory storage when unset"
    )
    llm_provider: str = Field(default="openai", description="'openai' or 'mock'")
    chat_timeout_seconds: float = Field(default=30.0, gt=0)

    @classmethod
    def from_env(cls) -> ShellConfig:
        """Build configuration from environment variables, falling back to defaults."""
        values: dict[str, object] = {}
        if os.getenv("HISTORY_CAPACITY"):
            values["history_capacity"] = int(os.getenv("HISTORY_CAPACITY", "100"))
        if os.getenv("ADMIN_PASSWORD"):
            values["admin_password"] = os.getenv("ADMIN_PASSWORD")
        if os.getenv("SESSION_TIMEOUT_MINUTES"):
            values["session_timeout_minutes"] = int(os.getenv("SESSION_TIMEOUT_MINUTES", "30"))
        if os.getenv("ADVENTURE_API_URL"):
            values["api_base_url"] = os.getenv("ADVENTURE_API_URL")
        if os.getenv("LLM_PROVIDER"):
            values["llm_provider"] = os.getenv("LLM_PROVIDER")
        if os.getenv("CHAT_TIMEOUT_SECONDS"):
            values["chat_timeout_seconds"] = float(os.getenv("CHAT_TIMEOUT_SECONDS", "30"))
        return cls(**values)
