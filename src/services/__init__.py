"""
Services for Terminal Adventure.

- admin: the admin workspace over one adventure
- auth: admin password checks and session tokens
- llm: replies for AI-powered characters
- validators: field validators shared by forms and the workspace
"""

from __future__ import annotations

from src.services.admin import (
    AdministrationService,
    AmbiguousMatchError,
    EntityNotFoundError,
    InvalidAdventureError,
    ValidationReport,
)
from src.services.auth import AuthService, Authenticator
from src.services.llm import (
    ChatBadRequestError,
    ChatClient,
    ChatNotFoundError,
    ChatServiceError,
    ChatTimeoutError,
    ChatUnavailableError,
    LLMService,
    MockLLMProvider,
    OpenAICompatibleProvider,
    create_llm_service,
)

__all__ = [
    # Admin workspace
    "AdministrationService",
    "AmbiguousMatchError",
    "EntityNotFoundError",
    "InvalidAdventureError",
    "ValidationReport",
    # Auth
    "AuthService",
    "Authenticator",
    # Chat
    "ChatBadRequestError",
    "ChatClient",
    "ChatNotFoundError",
    "ChatServiceError",
    "ChatTimeoutError",
    "ChatUnavailableError",
    "LLMService",
    "MockLLMProvider",
    "OpenAICompatibleProvider",
    "create_llm_service",
]
