"""
Tests for the player game engine.
"""

from __future__ import annotations

import pytest

from src.content.demo_adventure import DEMO_ADVENTURE_ID, create_demo_adventure
from src.db.interfaces import RepositoryError
from src.db.memory import InMemoryAdventureRepository
from src.engine.game import GameEngine
from src.engine.models import ErrorKind, OutputStyle
from src.models import Adventure, EntityKind


@pytest.fixture
def repository() -> InMemoryAdventureRepository:
    return InMemoryAdventureRepository([create_demo_adventure()])


@pytest.fixture
def engine(repository: InMemoryAdventureRepository) -> GameEngine:
    return GameEngine(repository)


@pytest.fixture
async def playing(engine: GameEngine) -> GameEngine:
    await engine.load_adventure(DEMO_ADVENTURE_ID)
    return engine


class FailingSaves(InMemoryAdventureRepository):
    """Repository whose writes always fail."""

    async def save_entity(self, kind, entity) -> None:
        raise RepositoryError("disk full")


# =============================================================================
# Loading Tests
# =============================================================================


class TestLoading:
    @pytest.mark.asyncio
    async def test_list_adventures(self, engine: GameEngine) -> None:
        adventures = await engine.list_adventures()
        assert [a.id for a in adventures] == [DEMO_ADVENTURE_ID]

    @pytest.mark.asyncio
    async def test_load_places_player_at_start(self, engine, repository) -> None:
        result = await engine.load_adventure(DEMO_ADVENTURE_ID)

        assert result.success
        assert result.style == OutputStyle.DESCRIPTION
        assert result.output[0] == "Loading adventure: The Quiet Village"
        assert "\n=== Village Square ===" in result.output
        assert engine.current_location().id == "village-square"

        state = await repository.load_entity(EntityKind.GAME_STATE, DEMO_ADVENTURE_ID)
        assert state.current_location_id == "village-square"

    @pytest.mark.asyncio
    async def test_load_unknown(self, engine: GameEngine) -> None:
        result = await engine.load_adventure("nope")
        assert not result.success
        assert result.error.kind == ErrorKind.NOT_FOUND
        assert result.error.message == "Adventure not found: nope"

    @pytest.mark.asyncio
    async def test_load_without_start(self, repository, engine) -> None:
        await repository.save_entity(
            EntityKind.ADVENTURE, Adventure(id="broken", name="Broken")
        )
        result = await engine.load_adventure("broken")
        assert not result.success
        assert "no valid start location" in result.error.message

    @pytest.mark.asyncio
    async def test_save_failure_does_not_block_play(self) -> None:
        engine = GameEngine(FailingSaves([create_demo_adventure()]))
        result = await engine.load_adventure(DEMO_ADVENTURE_ID)
        assert result.success


# =============================================================================
# Action Tests
# =============================================================================


class TestActions:
    def test_look_without_adventure(self, engine: GameEngine) -> None:
        result = engine.look()
        assert result.error.message == "No adventure loaded"

    @pytest.mark.asyncio
    async def test_look(self, playing: GameEngine) -> None:
        result = playing.look()
        assert result.output[0] == "\n=== Village Square ==="
        assert "\nCharacters here: Elder Mira" in result.output

    @pytest.mark.asyncio
    async def test_move(self, playing: GameEngine, repository) -> None:
        result = await playing.move("NORTH")

        assert result.success
        assert result.output[0] == "\n=== Old Library ==="
        assert playing.state.visited_locations == ["village-square", "old-library"]

        state = await repository.load_entity(EntityKind.GAME_STATE, DEMO_ADVENTURE_ID)
        assert state.current_location_id == "old-library"

    @pytest.mark.asyncio
    async def test_revisit_not_duplicated(self, playing: GameEngine) -> None:
        await playing.move("east")
        await playing.move("west")
        assert playing.state.visited_locations == ["village-square", "tavern"]

    @pytest.mark.asyncio
    async def test_move_blocked(self, playing: GameEngine) -> None:
        result = await playing.move("west")
        assert result.error.message == "You cannot go west from here."
        assert result.error.suggestion == "Available exits: north, east, south"

    @pytest.mark.asyncio
    async def test_broken_exit(self, playing: GameEngine) -> None:
        playing.adventure.locations["village-square"].exits["down"] = "cellar"
        result = await playing.move("down")
        assert result.error.message == "Target location not found"

    @pytest.mark.asyncio
    async def test_talk_lists_characters(self, playing: GameEngine) -> None:
        result = playing.talk()
        assert result.output == ["You can talk to: Elder Mira"]

    @pytest.mark.asyncio
    async def test_talk_cycles_dialogue(self, playing: GameEngine) -> None:
        first = playing.talk("elder mira")
        assert first.style == OutputStyle.DIALOGUE
        assert first.output == [
            "\nElder Mira says:",
            '"Welcome, traveler. Few find their way to our village these days."',
        ]
        second = playing.talk("Elder Mira")
        assert second.output[1] != first.output[1]

    @pytest.mark.asyncio
    async def test_talk_to_absent_character(self, playing: GameEngine) -> None:
        result = playing.talk("Barkeep Tom")
        assert result.error.message == "Barkeep Tom is not here."
        assert result.error.suggestion == "Available characters: Elder Mira"

    @pytest.mark.asyncio
    async def test_talk_in_empty_location(self, playing: GameEngine) -> None:
        await playing.move("south")
        result = playing.talk()
        assert result.error.message == "There is no one here to talk to."

    @pytest.mark.asyncio
    async def test_ai_characters_here(self, playing: GameEngine) -> None:
        assert playing.ai_characters_here() == []
        await playing.move("north")
        assert [c.id for c in playing.ai_characters_here()] == ["librarian-owl"]

    @pytest.mark.asyncio
    async def test_find_character(self, playing: GameEngine) -> None:
        location, character = playing.find_character("barkeep-tom")
        assert location.id == "tavern"
        assert character.name == "Barkeep Tom"
        assert playing.find_character("nobody") is None
