"""
In-memory implementation of the adventure repository.

Stores everything in dictionaries, making tests fast and isolated
from the REST backend. Returned records are deep copies, so callers
never mutate stored state by accident.

Locations, characters and items live inside their adventure: they can be
loaded and listed here, but are written only by saving the adventure.
"""

from __future__ import annotations

from copy import deepcopy

from src.db.interfaces import UnsupportedKindError
from src.models import Adventure, EntityKind, PlayerState

_NESTED = (EntityKind.LOCATION, EntityKind.CHARACTER, EntityKind.ITEM)


class InMemoryAdventureRepository:
    """In-memory implementation of AdventureRepository."""

    def __init__(self, adventures: list[Adventure] | None = None) -> None:
        self.session_token: str | None = None
        self._adventures: dict[str, Adventure] = {}
        self._game_states: dict[str, PlayerState] = {}
        for adventure in adventures or []:
            self._adventures[adventure.id] = deepcopy(adventure)

    def _table(self, kind: EntityKind) -> dict:
        if kind == EntityKind.ADVENTURE:
            return self._adventures
        if kind == EntityKind.GAME_STATE:
            return self._game_states
        raise UnsupportedKindError(
            f"{kind.value} records are stored inside their adventure"
        )

    def _nested(self, kind: EntityKind) -> list:
        records: list = []
        for adventure in self._adventures.values():
            if kind == EntityKind.LOCATION:
                records.extend(adventure.locations.values())
            elif kind == EntityKind.CHARACTER:
                records.extend(c for _, c in adventure.iter_characters())
            else:
                records.extend(i for _, i in adventure.iter_items())
        return records

    async def load_entity(self, kind: EntityKind, entity_id: str):
        """Load a record by id."""
        if kind in _NESTED:
            record = next((r for r in self._nested(kind) if r.id == entity_id), None)
        else:
            record = self._table(kind).get(entity_id)
        return deepcopy(record) if record is not None else None

    async def save_entity(self, kind: EntityKind, entity) -> None:
        """Insert or replace a record."""
        table = self._table(kind)
        if kind == EntityKind.ADVENTURE and not isinstance(entity, Adventure):
            raise ValueError("Expected an Adventure record")
        if kind == EntityKind.GAME_STATE and not isinstance(entity, PlayerState):
            raise ValueError("Expected a PlayerState record")
        table[entity.id] = deepcopy(entity)

    async def delete_entity(self, kind: EntityKind, entity_id: str) -> bool:
        """Delete a record by id."""
        return self._table(kind).pop(entity_id, None) is not None

    async def list_entities(self, kind: EntityKind, filters: dict[str, str] | None = None):
        """List records, keeping those whose attributes equal every filter value."""
        if kind in _NESTED:
            records = self._nested(kind)
        else:
            records = list(self._table(kind).values())
        if filters:
            records = [
                r
                for r in records
                if all(str(getattr(r, key, None)) == value for key, value in filters.items())
            ]
        return [deepcopy(r) for r in records]
