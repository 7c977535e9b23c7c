"""
Entity Models for Terminal Adventure.

Defines the core data structures of an adventure:
Adventures, Locations, Characters, and Items.

Adventures own their locations; locations own their characters and items.
These records are what the adventure repository stores and what the admin
workspace edits.
"""

from __future__ import annotations

import re
import time
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

VALID_DIRECTIONS = (
    "north",
    "south",
    "east",
    "west",
    "up",
    "down",
    "northeast",
    "northwest",
    "southeast",
    "southwest",
)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class EntityKind(str, Enum):
    """Kinds of records held by the adventure repository."""

    ADVENTURE = "adventure"
    LOCATION = "location"
    CHARACTER = "character"
    ITEM = "item"
    GAME_STATE = "game_state"


class _Record(BaseModel):
    """Base for stored records; serialized with camelCase keys over the API."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class AiCharacterConfig(_Record):
    """Generation settings for an AI-powered character."""

    temperature: float | None = Field(
        default=None, description="Sampling temperature, 0.0 to 2.0"
    )
    max_tokens: int | None = Field(
        default=None, description="Maximum reply length in tokens, 1 to 500"
    )
    system_prompt_template: str | None = Field(
        default=None, description="Optional override for the system prompt"
    )


class Character(_Record):
    """A character placed in a location."""

    id: str
    name: str
    dialogue: list[str] = Field(default_factory=list)
    current_dialogue_index: int = Field(default=0, ge=0)
    is_ai_powered: bool = False
    personality: str | None = None
    ai_config: AiCharacterConfig | None = None

    def next_dialogue(self) -> str:
        """Return the current dialogue line and advance, wrapping around."""
        if not self.dialogue:
            return f"{self.name} has nothing to say."
        index = self.current_dialogue_index % len(self.dialogue)
        line = self.dialogue[index]
        self.current_dialogue_index = (index + 1) % len(self.dialogue)
        return line


class Item(_Record):
    """An item lying in a location."""

    id: str
    name: str
    description: str = ""


class Location(_Record):
    """A location with directional exits to other locations."""

    id: str
    name: str
    description: str = ""
    exits: dict[str, str] = Field(
        default_factory=dict, description="Direction -> target location id"
    )
    characters: list[Character] = Field(default_factory=list)
    items: list[Item] = Field(default_factory=list)

    def has_exit(self, direction: str) -> bool:
        return direction.lower() in self.exits

    def find_character(self, name: str) -> Character | None:
        """Find a character here by name, case-insensitive."""
        lowered = name.lower()
        return next((c for c in self.characters if c.name.lower() == lowered), None)

    def formatted_description(self) -> list[str]:
        """Render the location the way `look` shows it."""
        lines = [f"\n=== {self.name} ===", self.description]

        if self.exits:
            lines.append(f"\nExits: {', '.join(self.exits)}")
        else:
            lines.append("\nNo visible exits.")

        if self.characters:
            lines.append(f"\nCharacters here: {', '.join(c.name for c in self.characters)}")

        if self.items:
            lines.append(f"\nItems here: {', '.join(i.name for i in self.items)}")

        return lines


class Adventure(_Record):
    """A complete adventure: its locations and where play starts."""

    id: str
    name: str
    description: str = ""
    start_location_id: str = ""
    locations: dict[str, Location] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    modified_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def touch(self) -> None:
        """Mark the adventure as modified."""
        self.modified_at = datetime.now(UTC)

    def get_location(self, location_id: str) -> Location | None:
        return self.locations.get(location_id)

    def iter_characters(self):
        """Yield (location, character) pairs across the adventure."""
        for location in self.locations.values():
            for character in location.characters:
                yield location, character

    def iter_items(self):
        """Yield (location, item) pairs across the adventure."""
        for location in self.locations.values():
            for item in location.items:
                yield location, item


class PlayerState(_Record):
    """Saved progress of a player through one adventure."""

    adventure_id: str
    current_location_id: str
    visited_locations: list[str] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.adventure_id


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_id(name: str, timestamp_ms: int | None = None) -> str:
    """
    Generate an id from a display name.

    The name is slugged (lowercase, runs of other characters collapsed to
    '-') and suffixed with the base-36 millisecond timestamp.

    Example:
        generate_id("Temple Entrance") -> "temple-entrance-lq2x9k1a"
    """
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    suffix = _to_base36(timestamp_ms)
    return f"{base}-{suffix}" if base else suffix


def create_adventure(name: str, description: str = "") -> Adventure:
    """Factory function to create an empty adventure."""
    return Adventure(id=generate_id(name), name=name, description=description)


def create_location(name: str, description: str = "") -> Location:
    """Factory function to create a location with no exits."""
    return Location(id=generate_id(name), name=name, description=description)


def create_character(
    name: str,
    dialogue: list[str] | None = None,
    *,
    personality: str | None = None,
    ai_config: AiCharacterConfig | None = None,
) -> Character:
    """Factory function to create a character (AI-powered when a personality is given)."""
    return Character(
        id=generate_id(name),
        name=name,
        dialogue=dialogue or [],
        is_ai_powered=personality is not None,
        personality=personality,
        ai_config=ai_config,
    )


def create_item(name: str, description: str = "") -> Item:
    """Factory function to create an item."""
    return Item(id=generate_id(name), name=name, description=description)
