"""
Tests for the LLM service used by AI-powered characters.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from unittest.mock import patch

import pytest

from src.models import AiCharacterConfig, Character, ConversationTurn, Item, Location
from src.services.llm import (
    DEFAULT_MAX_TOKENS,
    ChatBadRequestError,
    ChatTimeoutError,
    ChatUnavailableError,
    LLMService,
    MockLLMProvider,
    OpenAICompatibleProvider,
    build_system_prompt,
    create_llm_service,
    sanitize_response,
)


@pytest.fixture
def owl() -> Character:
    return Character(
        id="owl",
        name="Archivist Owl",
        is_ai_powered=True,
        personality="a wise old owl who guards the library",
        ai_config=AiCharacterConfig(temperature=0.8, max_tokens=200),
    )


@pytest.fixture
def library(owl: Character) -> Location:
    return Location(
        id="library",
        name="Old Library",
        description="Dusty shelves reach into the dark.",
        exits={"south": "square"},
        characters=[owl, Character(id="cat", name="Library Cat")],
        items=[Item(id="map", name="Faded Map")],
    )


@dataclass
class StalledProvider:
    """Provider that never answers within the test's timeout."""

    model_name: str = "stalled"
    is_available: bool = True

    async def complete(self, messages, max_tokens=DEFAULT_MAX_TOKENS, temperature=0.7) -> str:
        await asyncio.sleep(10)
        return "too late"


# =============================================================================
# Mock Provider Tests
# =============================================================================


class TestMockLLMProvider:
    """Tests for MockLLMProvider."""

    @pytest.mark.asyncio
    async def test_default_response(self) -> None:
        provider = MockLLMProvider()
        response = await provider.complete([{"role": "user", "content": "Hello"}])
        assert response == "[Mock LLM response]"

    @pytest.mark.asyncio
    async def test_custom_response(self) -> None:
        provider = MockLLMProvider()
        provider.set_response("Hello", "Hoo! Welcome, reader.")
        response = await provider.complete([{"role": "user", "content": "Hello"}])
        assert response == "Hoo! Welcome, reader."

    @pytest.mark.asyncio
    async def test_records_calls(self) -> None:
        provider = MockLLMProvider()
        await provider.complete([{"role": "user", "content": "One"}])
        await provider.complete([{"role": "user", "content": "Two"}])
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_configured_error(self) -> None:
        provider = MockLLMProvider(error=ChatUnavailableError("down"))
        with pytest.raises(ChatUnavailableError):
            await provider.complete([{"role": "user", "content": "Hello"}])

    def test_properties(self) -> None:
        provider = MockLLMProvider(model="test-model")
        assert provider.model_name == "test-model"
        assert provider.is_available is True


# =============================================================================
# OpenAI-Compatible Provider Tests
# =============================================================================


class TestOpenAICompatibleProvider:
    """Tests for OpenAICompatibleProvider configuration."""

    @patch.dict(os.environ, {}, clear=True)
    def test_local_server_needs_no_key(self) -> None:
        provider = OpenAICompatibleProvider()
        assert provider.is_available is True
        assert provider.model_name == "default"

    @patch.dict(os.environ, {}, clear=True)
    def test_remote_server_without_key(self) -> None:
        provider = OpenAICompatibleProvider(base_url="https://openrouter.ai/api/v1")
        assert provider.is_available is False

    @patch.dict(os.environ, {}, clear=True)
    def test_scheme_added(self) -> None:
        provider = OpenAICompatibleProvider(base_url="localhost:1234/v1")
        assert provider.base_url == "http://localhost:1234/v1"

    @patch.dict(
        os.environ,
        {"LLM_API_KEY": "env-key", "LLM_MODEL": "env-model", "LLM_TIMEOUT": "5"},
        clear=True,
    )
    def test_environment(self) -> None:
        provider = OpenAICompatibleProvider(base_url="https://example.com/v1")
        assert provider.api_key == "env-key"
        assert provider.model_name == "env-model"
        assert provider.timeout == 5.0
        assert provider.is_available is True

    @pytest.mark.asyncio
    @patch.dict(os.environ, {}, clear=True)
    async def test_complete_without_client_raises(self) -> None:
        provider = OpenAICompatibleProvider(base_url="https://example.com/v1")
        with pytest.raises(ChatUnavailableError, match="not configured"):
            await provider.complete([{"role": "user", "content": "Hello"}])


# =============================================================================
# Prompt and Response Tests
# =============================================================================


class TestBuildSystemPrompt:
    def test_personality_and_location(self, owl: Character, library: Location) -> None:
        prompt = build_system_prompt(owl, library)
        assert prompt.startswith("You are Archivist Owl, a wise old owl who guards the library.")
        assert "You are currently in Old Library. Dusty shelves reach into the dark." in prompt
        assert "Other characters here: Library Cat." in prompt
        assert "Items you can see: Faded Map." in prompt
        assert "Exits lead: south." in prompt
        assert "Do not use markdown formatting" in prompt

    def test_without_location(self, owl: Character) -> None:
        prompt = build_system_prompt(owl)
        assert "currently in" not in prompt

    def test_template_override(self, owl: Character, library: Location) -> None:
        owl.ai_config.system_prompt_template = "{name} ({personality}) in {location}"
        assert build_system_prompt(owl, library) == (
            "Archivist Owl (a wise old owl who guards the library) in Old Library"
        )


class TestSanitizeResponse:
    def test_strips_markdown(self) -> None:
        text = "# Greetings\n**Welcome**, _traveler_. Try `look`.\n- first\n* second"
        assert sanitize_response(text) == "Greetings\nWelcome, traveler. Try look.\nfirst\nsecond"

    def test_collapses_blank_runs(self) -> None:
        assert sanitize_response("a\n\n\n\nb") == "a\n\nb"

    def test_plain_text_untouched(self) -> None:
        assert sanitize_response("  Hoo. Mind the dust.  ") == "Hoo. Mind the dust."


# =============================================================================
# LLM Service Tests
# =============================================================================


class TestLLMService:
    """Tests for LLMService."""

    @pytest.mark.asyncio
    async def test_generate_reply(self, owl: Character, library: Location) -> None:
        provider = MockLLMProvider()
        provider.set_response("Any maps?", "**Hoo.** The faded one, by the window.")
        service = LLMService(provider=provider)

        reply = await service.generate_reply(owl, "Any maps?", [], library)

        assert reply == "Hoo. The faded one, by the window."
        messages = provider.calls[0]
        assert messages[0]["role"] == "system"
        assert messages[-1] == {"role": "user", "content": "Any maps?"}

    @pytest.mark.asyncio
    async def test_history_included(self, owl: Character) -> None:
        provider = MockLLMProvider()
        service = LLMService(provider=provider)
        history = [
            ConversationTurn(role="user", content="Hello"),
            ConversationTurn(role="assistant", content="Hoo."),
        ]

        await service.generate_reply(owl, "Who are you?", history)

        assert provider.calls[0][1:] == [
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hoo."},
            {"role": "user", "content": "Who are you?"},
        ]

    @pytest.mark.asyncio
    async def test_scripted_character_rejected(self) -> None:
        service = LLMService(provider=MockLLMProvider())
        guard = Character(id="guard", name="Guard", dialogue=["Halt!"])
        with pytest.raises(ChatBadRequestError):
            await service.generate_reply(guard, "Hello", [])

    @pytest.mark.asyncio
    async def test_timeout(self, owl: Character) -> None:
        service = LLMService(provider=StalledProvider(), timeout=0.01)
        with pytest.raises(ChatTimeoutError, match="Archivist Owl"):
            await service.generate_reply(owl, "Hello", [])

    @pytest.mark.asyncio
    async def test_empty_reply_replaced(self, owl: Character) -> None:
        provider = MockLLMProvider(responses={"Hello": "   "})
        service = LLMService(provider=provider)
        assert await service.generate_reply(owl, "Hello", []) == "Archivist Owl has nothing to say."

    def test_is_available(self) -> None:
        service = LLMService(provider=MockLLMProvider())
        assert service.is_available is True


# =============================================================================
# Factory Function Tests
# =============================================================================


class TestCreateLLMService:
    """Tests for create_llm_service factory."""

    def test_create_mock_service(self) -> None:
        service = create_llm_service(provider_type="mock")
        assert service.is_available is True
        assert service.provider.model_name == "mock"

    @patch.dict(os.environ, {}, clear=True)
    def test_create_openai_service(self) -> None:
        service = create_llm_service(provider_type="openai", timeout=5.0, api_key="test-key")
        assert isinstance(service.provider, OpenAICompatibleProvider)
        assert service.timeout == 5.0

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown provider type"):
            create_llm_service(provider_type="unknown")
