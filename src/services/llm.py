"""
LLM Service for Terminal Adventure.

Generates replies for AI-powered characters through any OpenAI-compatible
API (LM Studio, OpenRouter, OpenAI, Ollama, ...). Provider failures are
classified into ChatServiceError subclasses so the chat session can show
a distinct message for each.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Protocol

import openai
from openai import AsyncOpenAI

from src.models import Character, ConversationTurn, Location

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 150


class ChatServiceError(Exception):
    """Base class for AI chat failures."""


class ChatUnavailableError(ChatServiceError):
    """The AI service cannot be reached or is not configured."""


class ChatTimeoutError(ChatServiceError):
    """The AI service did not answer in time."""


class ChatNotFoundError(ChatServiceError):
    """The character or model was not found."""


class ChatBadRequestError(ChatServiceError):
    """The request was rejected as invalid."""


class LLMProvider(Protocol):
    """
    Interface for LLM providers.

    Supports any OpenAI-compatible API (LM Studio, OpenRouter, OpenAI, etc.)
    """

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """
        Generate a completion from messages.

        Args:
            messages: List of {"role": "user"|"assistant"|"system", "content": str}
            max_tokens: Maximum tokens in response
            temperature: Randomness (0.0 = deterministic, 2.0 = wild)

        Returns:
            Generated text response

        Raises:
            ChatServiceError: On any classified failure
        """
        ...

    @property
    def model_name(self) -> str:
        """The model being used."""
        ...

    @property
    def is_available(self) -> bool:
        """Whether the provider is configured and ready."""
        ...


@dataclass
class OpenAICompatibleProvider:
    """
    LLM provider for OpenAI-compatible chat completion endpoints.

    Defaults target a local LM Studio server, which accepts any API key.

    Configuration via environment variables:
        LLM_API_KEY: API key (falls back to OPENROUTER_API_KEY)
        LLM_MODEL: Model to use (default: "default", the server's loaded model)
        LLM_BASE_URL: API base URL (default: http://localhost:1234/v1)
        LLM_TIMEOUT: Request timeout in seconds (default: 30)
    """

    api_key: str | None = None
    model: str = "default"
    base_url: str = "http://localhost:1234/v1"
    timeout: float = 30.0
    max_retries: int = 3

    _client: AsyncOpenAI | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        """Initialize from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.getenv("LLM_API_KEY") or os.getenv("OPENROUTER_API_KEY")

        if os.getenv("LLM_MODEL"):
            self.model = os.getenv("LLM_MODEL", self.model)

        if os.getenv("LLM_BASE_URL"):
            self.base_url = os.getenv("LLM_BASE_URL", self.base_url)

        if os.getenv("LLM_TIMEOUT"):
            self.timeout = float(os.getenv("LLM_TIMEOUT", str(self.timeout)))

        if not self.base_url.startswith(("http://", "https://")):
            self.base_url = f"http://{self.base_url}"

        local = "localhost" in self.base_url or "127.0.0.1" in self.base_url
        if self.api_key or local:
            self._client = AsyncOpenAI(
                api_key=self.api_key or "lm-studio",
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )

    @property
    def model_name(self) -> str:
        """The model being used."""
        return self.model

    @property
    def is_available(self) -> bool:
        """Whether the provider is configured and ready."""
        return self._client is not None

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """
        Generate a completion from messages.

        Empty responses and rate limits are retried with exponential backoff;
        every other failure is classified immediately.

        Raises:
            ChatUnavailableError: Not configured, unreachable, or still rate limited
            ChatTimeoutError: The request timed out
            ChatNotFoundError: The server answered 404
            ChatBadRequestError: The server answered 400
        """
        if self._client is None:
            raise ChatUnavailableError(
                "LLM provider not configured. Set LLM_API_KEY or LLM_BASE_URL."
            )

        content = ""
        for attempt in range(self.max_retries):
            try:
                response = await self._client.chat.completions.create(
                    model=self.model,
                    messages=messages,  # type: ignore[arg-type]
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
                content = response.choices[0].message.content or ""
                if content.strip():
                    return content
            except openai.RateLimitError as e:
                logger.warning("Rate limited by %s (attempt %d)", self.base_url, attempt + 1)
                if attempt == self.max_retries - 1:
                    raise ChatUnavailableError("AI service is rate limited") from e
            except openai.APITimeoutError as e:
                raise ChatTimeoutError("AI service timed out") from e
            except openai.APIConnectionError as e:
                raise ChatUnavailableError(f"Cannot reach AI service at {self.base_url}") from e
            except openai.NotFoundError as e:
                raise ChatNotFoundError(str(e)) from e
            except openai.BadRequestError as e:
                raise ChatBadRequestError(str(e)) from e
            except openai.APIStatusError as e:
                raise ChatUnavailableError(f"AI service error ({e.status_code})") from e

            if attempt < self.max_retries - 1:
                await asyncio.sleep(2.0**attempt)

        return content


@dataclass
class MockLLMProvider:
    """
    Mock LLM provider for testing and offline play.

    Returns canned responses without making API calls. Set `error` to make
    every call fail with that exception.
    """

    model: str = "mock"
    responses: dict[str, str] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[list[dict[str, str]]] = field(default_factory=list)

    @property
    def model_name(self) -> str:
        """The model being used."""
        return self.model

    @property
    def is_available(self) -> bool:
        """Mock provider is always available."""
        return True

    async def complete(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """Return a mock response."""
        self.calls.append(messages)
        if self.error is not None:
            raise self.error

        if messages:
            last_user_msg = next(
                (m["content"] for m in reversed(messages) if m["role"] == "user"),
                "",
            )
            if last_user_msg in self.responses:
                return self.responses[last_user_msg]

        return "[Mock LLM response]"

    def set_response(self, trigger: str, response: str) -> None:
        """Set a custom response for a specific input."""
        self.responses[trigger] = response


def build_system_prompt(npc: Character, location: Location | None = None) -> str:
    """Describe who the character is and what surrounds them."""
    if npc.ai_config and npc.ai_config.system_prompt_template:
        return npc.ai_config.system_prompt_template.format(
            name=npc.name,
            personality=npc.personality or "",
            location=location.name if location else "",
        )

    personality = npc.personality or "a helpful character"
    prompt = f"You are {npc.name}, {personality}."

    if location is not None:
        prompt += f"\n\nYou are currently in {location.name}."
        if location.description:
            prompt += f" {location.description}"
        others = [c.name for c in location.characters if c.id != npc.id]
        if others:
            prompt += f" Other characters here: {', '.join(others)}."
        if location.items:
            prompt += f" Items you can see: {', '.join(i.name for i in location.items)}."
        if location.exits:
            prompt += f" Exits lead: {', '.join(location.exits)}."

    prompt += (
        "\n\nRespond in character, keeping your responses concise and engaging."
        " Stay true to your personality and the game world."
        " Do not use markdown formatting, bullet points, or special characters."
        " Speak naturally in plain text. One or two short sentences."
    )
    return prompt


def sanitize_response(text: str) -> str:
    """Strip markdown so replies read cleanly in a terminal."""
    cleaned = re.sub(r"^#{1,6}\s+", "", text, flags=re.MULTILINE)
    cleaned = re.sub(r"(\*\*|__)(.*?)\1", r"\2", cleaned)
    cleaned = re.sub(r"(\*|_)(.*?)\1", r"\2", cleaned)
    cleaned = re.sub(r"`([^`]*)`", r"\1", cleaned)
    cleaned = re.sub(r"^\s*[-*+]\s+", "", cleaned, flags=re.MULTILINE)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


class ChatClient(Protocol):
    """Interface for the AI chat collaborator used by chat sessions."""

    async def generate_reply(
        self,
        npc: Character,
        message: str,
        history: list[ConversationTurn],
        location: Location | None = None,
    ) -> str:
        """Generate the character's reply to a message."""
        ...


@dataclass
class LLMService:
    """
    High-level LLM service for character conversations.

    Handles prompt construction and response cleanup, and bounds every
    request by `timeout` seconds.
    """

    provider: LLMProvider
    timeout: float = 30.0

    @property
    def is_available(self) -> bool:
        """Whether LLM features are available."""
        return self.provider.is_available

    async def generate_reply(
        self,
        npc: Character,
        message: str,
        history: list[ConversationTurn],
        location: Location | None = None,
    ) -> str:
        """
        Generate an AI character's reply.

        Args:
            npc: The AI-powered character
            message: What the player just said
            history: Earlier turns of this conversation
            location: Where the conversation takes place

        Returns:
            The reply text, cleaned for terminal display

        Raises:
            ChatServiceError: On any classified failure
        """
        if not npc.is_ai_powered:
            raise ChatBadRequestError(f"{npc.name} is not AI-powered")

        config = npc.ai_config
        temperature = (
            config.temperature if config and config.temperature is not None else DEFAULT_TEMPERATURE
        )
        max_tokens = (
            config.max_tokens if config and config.max_tokens is not None else DEFAULT_MAX_TOKENS
        )

        messages = [{"role": "system", "content": build_system_prompt(npc, location)}]
        messages.extend(turn.as_message() for turn in history)
        messages.append({"role": "user", "content": message})

        try:
            reply = await asyncio.wait_for(
                self.provider.complete(
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                ),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            raise ChatTimeoutError(f"No reply from {npc.name} within {self.timeout}s") from e

        return sanitize_response(reply) or f"{npc.name} has nothing to say."


def create_llm_service(
    provider_type: str = "openai",
    timeout: float = 30.0,
    **kwargs,
) -> LLMService:
    """
    Factory function to create an LLM service.

    Args:
        provider_type: Type of provider ("openai", "mock")
        timeout: Upper bound on each reply, in seconds
        **kwargs: Provider-specific configuration

    Returns:
        Configured LLMService

    Example:
        # Auto-configure from environment
        service = create_llm_service()

        # Explicit configuration
        service = create_llm_service(
            provider_type="openai",
            base_url="https://openrouter.ai/api/v1",
            api_key="sk-or-...",
            model="anthropic/claude-3-haiku",
        )

        # Mock for testing
        service = create_llm_service(provider_type="mock")
    """
    if provider_type == "mock":
        provider = MockLLMProvider(**kwargs)
    elif provider_type == "openai":
        provider = OpenAICompatibleProvider(**kwargs)
    else:
        raise ValueError(f"Unknown provider type: {provider_type}")

    return LLMService(provider=provider, timeout=timeout)
