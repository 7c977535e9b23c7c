"""
Conversation Models for Terminal Adventure.

A chat with an AI-powered character is a running list of turns.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


class ConversationTurn(BaseModel):
    """One message in a chat with a character."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def as_message(self) -> dict[str, str]:
        """Render as an OpenAI-style chat message."""
        return {"role": self.role, "content": self.content}
