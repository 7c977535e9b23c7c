"""
Tests for the REST adventure repository.

Requests are served by an httpx MockTransport, so no backend is needed.
"""

from __future__ import annotations

import json

import httpx
import pytest

from src.db import RepositoryError, RestAdventureRepository, UnsupportedKindError
from src.models import EntityKind, PlayerState, create_adventure

BASE_URL = "http://adventures.test/api"


class RecordingHandler:
    """Answers requests from a route table and remembers what it was sent."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response] | None = None) -> None:
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self.routes:
            return self.routes[key]
        return httpx.Response(404, json={"error": "Not found"})


def _repository(handler) -> RestAdventureRepository:
    return RestAdventureRepository(BASE_URL, transport=httpx.MockTransport(handler))


def _adventure_json(adventure_id: str = "islands") -> dict:
    return {
        "id": adventure_id,
        "name": "Islands",
        "description": "Sand and gulls.",
        "startLocationId": "north-island",
        "locations": {
            "north-island": {
                "id": "north-island",
                "name": "North Island",
                "description": "Palm trees.",
                "exits": {},
                "characters": [],
                "items": [],
            }
        },
        "createdAt": "2026-01-01T00:00:00Z",
        "modifiedAt": "2026-01-01T00:00:00Z",
    }


# =============================================================================
# Read Tests
# =============================================================================


class TestRead:
    @pytest.mark.asyncio
    async def test_load_adventure(self) -> None:
        handler = RecordingHandler(
            {("GET", "/api/adventures/islands"): httpx.Response(200, json=_adventure_json())}
        )
        repository = _repository(handler)

        adventure = await repository.load_entity(EntityKind.ADVENTURE, "islands")

        assert adventure.name == "Islands"
        assert adventure.start_location_id == "north-island"
        assert adventure.locations["north-island"].name == "North Island"
        await repository.close()

    @pytest.mark.asyncio
    async def test_load_missing(self) -> None:
        repository = _repository(RecordingHandler())
        assert await repository.load_entity(EntityKind.ADVENTURE, "nope") is None
        await repository.close()

    @pytest.mark.asyncio
    async def test_load_game_state(self) -> None:
        handler = RecordingHandler(
            {
                ("GET", "/api/gamestate/islands"): httpx.Response(
                    200,
                    json={
                        "adventureId": "islands",
                        "currentLocationId": "north-island",
                        "visitedLocations": ["north-island"],
                    },
                )
            }
        )
        repository = _repository(handler)

        state = await repository.load_entity(EntityKind.GAME_STATE, "islands")

        assert state == PlayerState(
            adventure_id="islands",
            current_location_id="north-island",
            visited_locations=["north-island"],
        )
        await repository.close()

    @pytest.mark.asyncio
    async def test_list_accepts_bare_array(self) -> None:
        handler = RecordingHandler(
            {("GET", "/api/adventures"): httpx.Response(200, json=[_adventure_json()])}
        )
        repository = _repository(handler)
        adventures = await repository.list_entities(EntityKind.ADVENTURE)
        assert [a.id for a in adventures] == ["islands"]
        await repository.close()

    @pytest.mark.asyncio
    async def test_list_accepts_items_envelope_and_filters(self) -> None:
        handler = RecordingHandler(
            {
                ("GET", "/api/adventures"): httpx.Response(
                    200, json={"items": [_adventure_json("a"), _adventure_json("b")]}
                )
            }
        )
        repository = _repository(handler)

        adventures = await repository.list_entities(EntityKind.ADVENTURE, {"name": "Islands"})

        assert [a.id for a in adventures] == ["a", "b"]
        assert handler.requests[0].url.params["name"] == "Islands"
        await repository.close()

    @pytest.mark.asyncio
    async def test_nested_kind_rejected(self) -> None:
        repository = _repository(RecordingHandler())
        with pytest.raises(UnsupportedKindError):
            await repository.load_entity(EntityKind.LOCATION, "north-island")
        await repository.close()


# =============================================================================
# Write Tests
# =============================================================================


class TestWrite:
    @pytest.mark.asyncio
    async def test_save_sends_camel_case_with_session(self) -> None:
        adventure = create_adventure("Islands", "Sand and gulls.")
        handler = RecordingHandler(
            {("PUT", f"/api/adventures/{adventure.id}"): httpx.Response(200, json={})}
        )
        repository = _repository(handler)
        repository.session_token = "token-1"

        await repository.save_entity(EntityKind.ADVENTURE, adventure)

        request = handler.requests[0]
        assert request.headers["X-Session-Id"] == "token-1"
        body = json.loads(request.content)
        assert body["name"] == "Islands"
        assert "startLocationId" in body
        await repository.close()

    @pytest.mark.asyncio
    async def test_no_session_header_without_token(self) -> None:
        adventure = create_adventure("Islands")
        handler = RecordingHandler(
            {("PUT", f"/api/adventures/{adventure.id}"): httpx.Response(204)}
        )
        repository = _repository(handler)

        await repository.save_entity(EntityKind.ADVENTURE, adventure)

        assert "X-Session-Id" not in handler.requests[0].headers
        await repository.close()

    @pytest.mark.asyncio
    async def test_save_game_state_path(self) -> None:
        handler = RecordingHandler({("PUT", "/api/gamestate/islands"): httpx.Response(200)})
        repository = _repository(handler)

        await repository.save_entity(
            EntityKind.GAME_STATE,
            PlayerState(adventure_id="islands", current_location_id="north-island"),
        )

        assert handler.requests[0].url.path == "/api/gamestate/islands"
        await repository.close()

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        handler = RecordingHandler({("DELETE", "/api/adventures/islands"): httpx.Response(204)})
        repository = _repository(handler)
        assert await repository.delete_entity(EntityKind.ADVENTURE, "islands") is True
        assert await repository.delete_entity(EntityKind.ADVENTURE, "other") is False
        await repository.close()


# =============================================================================
# Error Tests
# =============================================================================


class TestErrors:
    @pytest.mark.asyncio
    async def test_error_message_from_body(self) -> None:
        handler = RecordingHandler(
            {
                ("PUT", "/api/adventures/islands"): httpx.Response(
                    401, json={"error": {"message": "Session expired"}}
                )
            }
        )
        repository = _repository(handler)
        adventure = create_adventure("Islands").model_copy(update={"id": "islands"})

        with pytest.raises(RepositoryError, match="Session expired"):
            await repository.save_entity(EntityKind.ADVENTURE, adventure)
        await repository.close()

    @pytest.mark.asyncio
    async def test_status_without_body(self) -> None:
        handler = RecordingHandler(
            {("GET", "/api/adventures"): httpx.Response(500, text="boom")}
        )
        repository = _repository(handler)
        with pytest.raises(RepositoryError, match="status 500"):
            await repository.list_entities(EntityKind.ADVENTURE)
        await repository.close()

    @pytest.mark.asyncio
    async def test_connection_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        repository = _repository(refuse)
        with pytest.raises(RepositoryError, match="Unable to reach"):
            await repository.list_entities(EntityKind.ADVENTURE)
        await repository.close()

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        repository = _repository(stall)
        with pytest.raises(RepositoryError, match="took too long"):
            await repository.load_entity(EntityKind.ADVENTURE, "islands")
        await repository.close()
