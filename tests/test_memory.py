"""
Tests for the in-memory adventure repository.
"""

from __future__ import annotations

import pytest

from src.content.demo_adventure import DEMO_ADVENTURE_ID, create_demo_adventure
from src.db import InMemoryAdventureRepository, UnsupportedKindError
from src.models import EntityKind, Item, PlayerState, create_adventure


@pytest.fixture
def repository() -> InMemoryAdventureRepository:
    return InMemoryAdventureRepository([create_demo_adventure()])


# =============================================================================
# Adventure Tests
# =============================================================================


class TestAdventures:
    """Adventures are stored whole."""

    @pytest.mark.asyncio
    async def test_load(self, repository: InMemoryAdventureRepository) -> None:
        adventure = await repository.load_entity(EntityKind.ADVENTURE, DEMO_ADVENTURE_ID)
        assert adventure.name == "The Quiet Village"
        assert len(adventure.locations) == 4

    @pytest.mark.asyncio
    async def test_load_missing(self, repository: InMemoryAdventureRepository) -> None:
        assert await repository.load_entity(EntityKind.ADVENTURE, "missing") is None

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, repository: InMemoryAdventureRepository) -> None:
        adventure = await repository.load_entity(EntityKind.ADVENTURE, DEMO_ADVENTURE_ID)
        adventure.name = "Changed"
        adventure.locations.clear()

        again = await repository.load_entity(EntityKind.ADVENTURE, DEMO_ADVENTURE_ID)
        assert again.name == "The Quiet Village"
        assert len(again.locations) == 4

    @pytest.mark.asyncio
    async def test_saved_records_are_copies(self, repository: InMemoryAdventureRepository) -> None:
        adventure = create_adventure("Islands")
        await repository.save_entity(EntityKind.ADVENTURE, adventure)
        adventure.name = "Changed"

        stored = await repository.load_entity(EntityKind.ADVENTURE, adventure.id)
        assert stored.name == "Islands"

    @pytest.mark.asyncio
    async def test_save_wrong_record_type(self, repository: InMemoryAdventureRepository) -> None:
        with pytest.raises(ValueError):
            await repository.save_entity(EntityKind.ADVENTURE, Item(id="x", name="X"))

    @pytest.mark.asyncio
    async def test_delete(self, repository: InMemoryAdventureRepository) -> None:
        assert await repository.delete_entity(EntityKind.ADVENTURE, DEMO_ADVENTURE_ID)
        assert not await repository.delete_entity(EntityKind.ADVENTURE, DEMO_ADVENTURE_ID)
        assert await repository.list_entities(EntityKind.ADVENTURE) == []

    @pytest.mark.asyncio
    async def test_list_with_filter(self, repository: InMemoryAdventureRepository) -> None:
        await repository.save_entity(EntityKind.ADVENTURE, create_adventure("Islands"))

        matching = await repository.list_entities(EntityKind.ADVENTURE, {"name": "Islands"})
        assert [a.name for a in matching] == ["Islands"]
        assert len(await repository.list_entities(EntityKind.ADVENTURE)) == 2


# =============================================================================
# Game State Tests
# =============================================================================


class TestGameState:
    @pytest.mark.asyncio
    async def test_round_trip(self, repository: InMemoryAdventureRepository) -> None:
        state = PlayerState(
            adventure_id=DEMO_ADVENTURE_ID,
            current_location_id="tavern",
            visited_locations=["village-square", "tavern"],
        )
        await repository.save_entity(EntityKind.GAME_STATE, state)

        loaded = await repository.load_entity(EntityKind.GAME_STATE, DEMO_ADVENTURE_ID)
        assert loaded == state

    @pytest.mark.asyncio
    async def test_wrong_record_type(self, repository: InMemoryAdventureRepository) -> None:
        with pytest.raises(ValueError):
            await repository.save_entity(EntityKind.GAME_STATE, create_adventure("Nope"))


# =============================================================================
# Nested Record Tests
# =============================================================================


class TestNestedRecords:
    """Locations, characters and items are read through their adventure."""

    @pytest.mark.asyncio
    async def test_load_location(self, repository: InMemoryAdventureRepository) -> None:
        tavern = await repository.load_entity(EntityKind.LOCATION, "tavern")
        assert tavern.name == "The Crooked Lantern"

    @pytest.mark.asyncio
    async def test_list_characters(self, repository: InMemoryAdventureRepository) -> None:
        characters = await repository.list_entities(EntityKind.CHARACTER)
        assert {c.id for c in characters} == {"elder-mira", "barkeep-tom", "librarian-owl"}

    @pytest.mark.asyncio
    async def test_filter_ai_characters(self, repository: InMemoryAdventureRepository) -> None:
        ai = await repository.list_entities(EntityKind.CHARACTER, {"is_ai_powered": "True"})
        assert [c.id for c in ai] == ["librarian-owl"]

    @pytest.mark.asyncio
    async def test_list_items(self, repository: InMemoryAdventureRepository) -> None:
        items = await repository.list_entities(EntityKind.ITEM)
        assert len(items) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", [EntityKind.LOCATION, EntityKind.CHARACTER, EntityKind.ITEM])
    async def test_nested_kinds_are_read_only(
        self, repository: InMemoryAdventureRepository, kind: EntityKind
    ) -> None:
        with pytest.raises(UnsupportedKindError):
            await repository.save_entity(kind, Item(id="x", name="X"))
        with pytest.raises(UnsupportedKindError):
            await repository.delete_entity(kind, "x")
