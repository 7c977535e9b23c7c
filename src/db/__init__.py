"""
Storage layer for Terminal Adventure.

Provides the repository interface and implementations for:
- REST: the adventure backend over HTTP
- InMemory: for testing and offline play (no external dependencies)
"""

from __future__ import annotations

from src.db.interfaces import (
    AdventureRepository,
    RepositoryError,
    UnsupportedKindError,
)
from src.db.memory import InMemoryAdventureRepository
from src.db.rest import RestAdventureRepository

__all__ = [
    # Protocol interface
    "AdventureRepository",
    # Errors
    "RepositoryError",
    "UnsupportedKindError",
    # Implementations
    "InMemoryAdventureRepository",
    "RestAdventureRepository",
]
