"""
Core Data Models for Terminal Adventure.

These models define the structure of adventures and their contents,
plus the per-session state the command layer works with.
"""

from src.models.conversation import ConversationTurn
from src.models.entity import (
    VALID_DIRECTIONS,
    Adventure,
    AiCharacterConfig,
    Character,
    EntityKind,
    Item,
    Location,
    PlayerState,
    create_adventure,
    create_character,
    create_item,
    create_location,
    generate_id,
)
from src.models.session import CommandScope, GameMode, SessionContext

__all__ = [
    # Entities
    "VALID_DIRECTIONS",
    "Adventure",
    "AiCharacterConfig",
    "Character",
    "EntityKind",
    "Item",
    "Location",
    "PlayerState",
    "create_adventure",
    "create_character",
    "create_item",
    "create_location",
    "generate_id",
    # Session
    "CommandScope",
    "GameMode",
    "SessionContext",
    # Conversation
    "ConversationTurn",
]
