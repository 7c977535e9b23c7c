"""
Repository interface definitions for Terminal Adventure.

Uses Protocol classes to define the contract for adventure storage.
Implementations can talk to the REST backend or keep everything in memory
for testing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Union

if TYPE_CHECKING:
    from src.models import Adventure, EntityKind, PlayerState

    Record = Union[Adventure, PlayerState]


class RepositoryError(Exception):
    """A storage request failed."""


class UnsupportedKindError(RepositoryError):
    """The repository does not store records of this kind directly."""


class AdventureRepository(Protocol):
    """
    Interface for the persistence / game-state collaborator.

    Adventures are stored whole: locations, characters and items travel
    inside their adventure. Player progress is stored per adventure as a
    game-state record. No atomicity is assumed across calls.

    `session_token` is the admin session attached to write requests, or None.
    """

    session_token: str | None

    async def load_entity(self, kind: EntityKind, entity_id: str) -> Record | None:
        """Load a record by id, or None if it does not exist."""
        ...

    async def save_entity(self, kind: EntityKind, entity: Record) -> None:
        """Insert or replace a record. Raises RepositoryError on failure."""
        ...

    async def delete_entity(self, kind: EntityKind, entity_id: str) -> bool:
        """Delete a record. Returns False if nothing was deleted."""
        ...

    async def list_entities(
        self, kind: EntityKind, filters: dict[str, str] | None = None
    ) -> list[Record]:
        """List records of a kind, optionally filtered by field values."""
        ...
