"""
Administration Service for Terminal Adventure.

The admin workspace: an in-memory working copy of the adventure being
edited. Structural edits (locations, exits, characters, items) happen on
the copy; `save_adventure` validates it and writes it back through the
repository in one request.

Domain errors raise ValueError (or one of its subclasses below) with a
message suitable for display.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from src.db.interfaces import AdventureRepository
from src.models import (
    VALID_DIRECTIONS,
    Adventure,
    AiCharacterConfig,
    Character,
    EntityKind,
    Item,
    Location,
    create_adventure,
    generate_id,
)
from src.services.validators import MAX_PERSONALITY

logger = logging.getLogger(__name__)


class EntityNotFoundError(ValueError):
    """No entity matches the given reference."""


class AmbiguousMatchError(ValueError):
    """More than one entity matches a name query."""

    def __init__(self, message: str, candidates: list[str]) -> None:
        super().__init__(message)
        self.candidates = candidates


@dataclass
class ValidationReport:
    """Outcome of validating a whole adventure before saving."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class InvalidAdventureError(ValueError):
    """Raised by save when the adventure fails validation."""

    def __init__(self, report: ValidationReport) -> None:
        super().__init__("Cannot save invalid adventure: " + ", ".join(report.errors))
        self.report = report


class AdministrationService:
    """
    Admin workspace over one adventure at a time.

    Example:
        admin = AdministrationService(repository)
        admin.create_adventure("The Lost Temple")
        hall = admin.add_location("Great Hall", "A vaulted hall of cold stone.")
        await admin.save_adventure()
    """

    def __init__(self, repository: AdventureRepository) -> None:
        self.repository = repository
        self.adventure: Adventure | None = None
        self.current_location_id: str | None = None

    # =========================================================================
    # Workspace lifecycle
    # =========================================================================

    def require_adventure(self) -> Adventure:
        if self.adventure is None:
            raise ValueError("No adventure is currently being edited")
        return self.adventure

    def create_adventure(self, name: str, description: str = "") -> Adventure:
        """Start editing a brand-new adventure."""
        if not name.strip():
            raise ValueError("Adventure name cannot be empty")
        self.adventure = create_adventure(name.strip(), description.strip())
        self.current_location_id = None
        logger.info("Created adventure %s", self.adventure.id)
        return self.adventure

    async def list_adventures(self) -> list[Adventure]:
        return await self.repository.list_entities(EntityKind.ADVENTURE)

    async def select_adventure(self, adventure_id: str) -> Adventure:
        """Load a stored adventure into the workspace."""
        adventure = await self.repository.load_entity(EntityKind.ADVENTURE, adventure_id)
        if adventure is None:
            raise EntityNotFoundError(f"Adventure not found: {adventure_id}")
        self.adventure = adventure
        self.current_location_id = adventure.start_location_id or None
        return adventure

    def deselect_adventure(self) -> None:
        self.adventure = None
        self.current_location_id = None

    async def delete_adventure(self, adventure_id: str) -> bool:
        """Delete a stored adventure; clears the workspace if it was selected."""
        deleted = await self.repository.delete_entity(EntityKind.ADVENTURE, adventure_id)
        if deleted:
            logger.info("Deleted adventure %s", adventure_id)
            if self.adventure is not None and self.adventure.id == adventure_id:
                self.deselect_adventure()
        return deleted

    def validate(self) -> ValidationReport:
        """Check the working copy for errors (block saving) and warnings."""
        report = ValidationReport()
        adventure = self.adventure
        if adventure is None:
            report.errors.append("No adventure is currently being edited")
            return report

        if not adventure.name.strip():
            report.errors.append("Adventure must have a name")
        if not adventure.locations:
            report.errors.append("Adventure must have at least one location")
        if not adventure.start_location_id:
            report.errors.append("Adventure must have a starting location")
        elif adventure.start_location_id not in adventure.locations:
            report.errors.append("Starting location does not exist in adventure")

        for location in adventure.locations.values():
            for direction, target in location.exits.items():
                if target not in adventure.locations:
                    report.errors.append(
                        f'Exit "{direction}" from "{location.name}" leads to a missing location'
                    )

        if adventure.locations and adventure.start_location_id in adventure.locations:
            reachable = self._reachable_from(adventure.start_location_id)
            unreachable = [
                loc.name for loc_id, loc in adventure.locations.items() if loc_id not in reachable
            ]
            if unreachable:
                report.warnings.append(
                    f"Some locations are not reachable from start: {', '.join(unreachable)}"
                )

        for location in adventure.locations.values():
            if not location.description.strip():
                report.warnings.append(f'Location "{location.name}" has no description')
            if not location.exits and len(adventure.locations) > 1:
                report.warnings.append(f'Location "{location.name}" has no exits')

        ai_names: set[str] = set()
        for _, character in adventure.iter_characters():
            if not character.is_ai_powered:
                continue
            lowered = character.name.lower()
            if lowered in ai_names:
                report.errors.append(f'Duplicate AI character name: "{character.name}"')
            ai_names.add(lowered)

            personality = character.personality or ""
            if len(personality) > MAX_PERSONALITY:
                report.errors.append(
                    f'AI character "{character.name}" has personality description '
                    f"exceeding {MAX_PERSONALITY} characters"
                )
            if not personality.strip():
                report.warnings.append(
                    f'AI character "{character.name}" has no personality description'
                )

            config = character.ai_config
            if config is not None:
                if config.temperature is not None and not 0 <= config.temperature <= 2:
                    report.errors.append(
                        f'AI character "{character.name}" has invalid temperature '
                        f"(must be 0-2): {config.temperature}"
                    )
                if config.max_tokens is not None and not 1 <= config.max_tokens <= 500:
                    report.errors.append(
                        f'AI character "{character.name}" has invalid max tokens '
                        f"(must be 1-500): {config.max_tokens}"
                    )

        return report

    def _reachable_from(self, start_id: str) -> set[str]:
        adventure = self.require_adventure()
        reachable: set[str] = set()
        queue = deque([start_id])
        while queue:
            location_id = queue.popleft()
            if location_id in reachable:
                continue
            reachable.add(location_id)
            location = adventure.get_location(location_id)
            if location is not None:
                queue.extend(t for t in location.exits.values() if t not in reachable)
        return reachable

    async def save_adventure(self) -> ValidationReport:
        """Validate and persist the working copy. Warnings do not block saving."""
        adventure = self.require_adventure()
        report = self.validate()
        if not report.is_valid:
            raise InvalidAdventureError(report)
        adventure.touch()
        await self.repository.save_entity(EntityKind.ADVENTURE, adventure)
        logger.info("Saved adventure %s", adventure.id)
        return report

    # =========================================================================
    # Lookups
    # =========================================================================

    def _new_id(self, name: str) -> str:
        adventure = self.require_adventure()
        taken = set(adventure.locations)
        taken.update(c.id for _, c in adventure.iter_characters())
        taken.update(i.id for _, i in adventure.iter_items())
        entity_id = generate_id(name)
        suffix = 2
        candidate = entity_id
        while candidate in taken:
            candidate = f"{entity_id}-{suffix}"
            suffix += 1
        return candidate

    def locations(self) -> list[Location]:
        if self.adventure is None:
            return []
        return list(self.adventure.locations.values())

    def characters(self) -> list[Character]:
        if self.adventure is None:
            return []
        return [c for _, c in self.adventure.iter_characters()]

    def items(self, location_id: str | None = None) -> list[Item]:
        if self.adventure is None:
            return []
        return [
            i
            for loc, i in self.adventure.iter_items()
            if location_id is None or loc.id == location_id
        ]

    def get_location(self, location_id: str) -> Location:
        location = self.require_adventure().get_location(location_id)
        if location is None:
            raise EntityNotFoundError(f"Location not found: {location_id}")
        return location

    def find_location(self, reference: str) -> Location | None:
        """Find a location by id, falling back to a case-insensitive name match."""
        adventure = self.require_adventure()
        if reference in adventure.locations:
            return adventure.locations[reference]
        lowered = reference.lower()
        return next(
            (loc for loc in adventure.locations.values() if loc.name.lower() == lowered),
            None,
        )

    def find_character(self, character_id: str) -> tuple[Location, Character]:
        for location, character in self.require_adventure().iter_characters():
            if character.id == character_id:
                return location, character
        raise EntityNotFoundError(f"Character not found: {character_id}")

    def find_item(self, reference: str) -> tuple[Location, Item]:
        """
        Find an item by id, exact name, or name substring.

        Substring queries that match several items raise AmbiguousMatchError
        listing the candidates instead of picking one.
        """
        adventure = self.require_adventure()
        pairs = list(adventure.iter_items())
        for location, item in pairs:
            if item.id == reference:
                return location, item

        lowered = reference.lower()
        exact = [(loc, i) for loc, i in pairs if i.name.lower() == lowered]
        if len(exact) == 1:
            return exact[0]

        matches = exact or [(loc, i) for loc, i in pairs if lowered in i.name.lower()]
        if not matches:
            raise EntityNotFoundError(f"Item not found: {reference}")
        if len(matches) > 1:
            candidates = [f"{i.name} ({i.id})" for _, i in matches]
            raise AmbiguousMatchError(f'"{reference}" matches several items', candidates)
        return matches[0]

    def select_location(self, reference: str) -> Location:
        location = self.find_location(reference)
        if location is None:
            raise EntityNotFoundError(f"Location not found: {reference}")
        self.current_location_id = location.id
        return location

    # =========================================================================
    # Structure
    # =========================================================================

    def add_location(self, name: str, description: str) -> Location:
        """Add a location; the first one becomes the start location."""
        adventure = self.require_adventure()
        location = Location(id=self._new_id(name), name=name, description=description)
        adventure.locations[location.id] = location
        if not adventure.start_location_id:
            adventure.start_location_id = location.id
        self.current_location_id = location.id
        adventure.touch()
        return location

    def connect(self, from_id: str, to_id: str, direction: str) -> None:
        """Add a one-way exit from one location to another."""
        normalized = direction.lower()
        if normalized not in VALID_DIRECTIONS:
            raise ValueError(
                f"Invalid direction: {direction}. Valid directions: {', '.join(VALID_DIRECTIONS)}"
            )
        source = self.get_location(from_id)
        self.get_location(to_id)
        source.exits[normalized] = to_id
        self.require_adventure().touch()

    def remove_connection(self, location_id: str, direction: str) -> None:
        location = self.get_location(location_id)
        normalized = direction.lower()
        if normalized not in location.exits:
            raise ValueError(f'No exit in direction "{direction}" from location "{location.name}"')
        del location.exits[normalized]
        self.require_adventure().touch()

    def delete_location(self, location_id: str) -> Location:
        """Delete a location and every exit leading into it."""
        adventure = self.require_adventure()
        location = self.get_location(location_id)
        if location_id == adventure.start_location_id:
            raise ValueError("Cannot delete the starting location")

        del adventure.locations[location_id]
        for other in adventure.locations.values():
            other.exits = {d: t for d, t in other.exits.items() if t != location_id}
        if self.current_location_id == location_id:
            self.current_location_id = adventure.start_location_id
        adventure.touch()
        return location

    # =========================================================================
    # Characters
    # =========================================================================

    def add_character(self, location_id: str, name: str, dialogue: list[str]) -> Character:
        location = self.get_location(location_id)
        character = Character(id=self._new_id(name), name=name, dialogue=dialogue)
        location.characters.append(character)
        self.require_adventure().touch()
        return character

    def add_ai_character(
        self,
        location_id: str,
        name: str,
        personality: str,
        ai_config: AiCharacterConfig | None = None,
    ) -> Character:
        if len(personality) > MAX_PERSONALITY:
            raise ValueError(
                f"Personality description must be {MAX_PERSONALITY} characters or less"
            )
        location = self.get_location(location_id)
        character = Character(
            id=self._new_id(name),
            name=name,
            is_ai_powered=True,
            personality=personality,
            ai_config=ai_config,
        )
        location.characters.append(character)
        self.require_adventure().touch()
        return character

    def update_character(
        self,
        character_id: str,
        *,
        name: str | None = None,
        dialogue: list[str] | None = None,
        personality: str | None = None,
    ) -> Character:
        _, character = self.find_character(character_id)
        if personality is not None:
            if not character.is_ai_powered:
                raise ValueError(f'Character "{character.name}" is not AI-powered')
            if len(personality) > MAX_PERSONALITY:
                raise ValueError(
                    f"Personality description must be {MAX_PERSONALITY} characters or less"
                )
            character.personality = personality
        if name is not None:
            character.name = name
        if dialogue is not None:
            character.dialogue = dialogue
            character.current_dialogue_index = 0
        self.require_adventure().touch()
        return character

    def update_ai_config(
        self,
        character_id: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Character:
        _, character = self.find_character(character_id)
        if not character.is_ai_powered:
            raise ValueError(f'Character "{character.name}" is not AI-powered')
        if temperature is not None and not 0 <= temperature <= 2:
            raise ValueError("Temperature must be between 0 and 2")
        if max_tokens is not None and not 1 <= max_tokens <= 500:
            raise ValueError("Max tokens must be between 1 and 500")

        config = character.ai_config or AiCharacterConfig()
        if temperature is not None:
            config.temperature = temperature
        if max_tokens is not None:
            config.max_tokens = max_tokens
        character.ai_config = config
        self.require_adventure().touch()
        return character

    def delete_character(self, character_id: str) -> Character:
        location, character = self.find_character(character_id)
        location.characters = [c for c in location.characters if c.id != character_id]
        self.require_adventure().touch()
        return character

    # =========================================================================
    # Items and text
    # =========================================================================

    def add_item(self, location_id: str, name: str, description: str) -> Item:
        location = self.get_location(location_id)
        item = Item(id=self._new_id(name), name=name, description=description)
        location.items.append(item)
        self.require_adventure().touch()
        return item

    def update_item(
        self, item_id: str, *, name: str | None = None, description: str | None = None
    ) -> Item:
        _, item = self.find_item(item_id)
        if name is not None:
            item.name = name
        if description is not None:
            item.description = description
        self.require_adventure().touch()
        return item

    def delete_item(self, item_id: str) -> Item:
        location, item = self.find_item(item_id)
        location.items = [i for i in location.items if i.id != item.id]
        self.require_adventure().touch()
        return item

    def update_title(self, title: str) -> None:
        if not title.strip():
            raise ValueError("Adventure title cannot be empty")
        adventure = self.require_adventure()
        adventure.name = title.strip()
        adventure.touch()

    def update_description(self, description: str) -> None:
        adventure = self.require_adventure()
        adventure.description = description.strip()
        adventure.touch()

    def update_location(
        self,
        location_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Location:
        location = self.get_location(location_id)
        if name is not None:
            if not name.strip():
                raise ValueError("Location name cannot be empty")
            location.name = name.strip()
        if description is not None:
            location.description = description
        self.require_adventure().touch()
        return location
