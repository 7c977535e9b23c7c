"""
Game Engine for Terminal Adventure.

The player-side layer: loads an adventure, tracks where the player is,
and answers movement, look, and talk requests. Progress is written to the
repository's game-state store after every move.
"""

from __future__ import annotations

import logging

from src.db.interfaces import AdventureRepository, RepositoryError
from src.engine.map import NO_VISITS, render_player_map
from src.engine.models import CommandResult, ErrorKind, OutputStyle
from src.models import Adventure, Character, EntityKind, Location, PlayerState

logger = logging.getLogger(__name__)

_NO_ADVENTURE = ("No adventure loaded", "Use \"adventures\" to list them, then \"load <id>\"")


class GameEngine:
    """
    Player game engine.

    Holds the loaded adventure and the player's progress through it.
    Every public operation returns a CommandResult ready for display.
    """

    def __init__(self, repository: AdventureRepository) -> None:
        self.repository = repository
        self.adventure: Adventure | None = None
        self.state: PlayerState | None = None

    # =========================================================================
    # Loading
    # =========================================================================

    async def list_adventures(self) -> list[Adventure]:
        """List adventures available to play."""
        return await self.repository.list_entities(EntityKind.ADVENTURE)

    async def load_adventure(self, adventure_id: str) -> CommandResult:
        """Load an adventure and place the player at its start location."""
        adventure = await self.repository.load_entity(EntityKind.ADVENTURE, adventure_id)
        if adventure is None:
            return CommandResult.fail(
                ErrorKind.NOT_FOUND,
                f"Adventure not found: {adventure_id}",
                "Use \"adventures\" to see available adventures",
            )

        start = adventure.get_location(adventure.start_location_id)
        if start is None:
            return CommandResult.fail(
                ErrorKind.INVALID_INPUT,
                f"Adventure \"{adventure.name}\" has no valid start location",
                "An administrator needs to fix this adventure",
            )

        self.adventure = adventure
        self.state = PlayerState(
            adventure_id=adventure.id,
            current_location_id=start.id,
            visited_locations=[start.id],
        )
        await self._save_state()
        logger.info("Loaded adventure %s", adventure.id)

        return CommandResult(
            output=[f"Loading adventure: {adventure.name}", *start.formatted_description()],
            style=OutputStyle.DESCRIPTION,
        )

    async def _save_state(self) -> None:
        if self.state is None:
            return
        try:
            await self.repository.save_entity(EntityKind.GAME_STATE, self.state)
        except RepositoryError as e:
            logger.warning("Failed to save game state: %s", e)

    # =========================================================================
    # Queries
    # =========================================================================

    def current_location(self) -> Location | None:
        """The location the player is standing in, if an adventure is loaded."""
        if self.adventure is None or self.state is None:
            return None
        return self.adventure.get_location(self.state.current_location_id)

    def ai_characters_here(self) -> list[Character]:
        location = self.current_location()
        if location is None:
            return []
        return [c for c in location.characters if c.is_ai_powered]

    def find_character(self, character_id: str) -> tuple[Location, Character] | None:
        """Find a character anywhere in the loaded adventure by id."""
        if self.adventure is None:
            return None
        for location, character in self.adventure.iter_characters():
            if character.id == character_id:
                return location, character
        return None

    # =========================================================================
    # Actions
    # =========================================================================

    def look(self) -> CommandResult:
        location = self.current_location()
        if location is None:
            return CommandResult.fail(ErrorKind.NOT_FOUND, *_NO_ADVENTURE)
        return CommandResult(output=location.formatted_description(), style=OutputStyle.DESCRIPTION)

    def map(self) -> CommandResult:
        """Grid of the locations visited so far, with the current one marked."""
        if self.adventure is None or self.state is None:
            return CommandResult.fail(ErrorKind.NOT_FOUND, *_NO_ADVENTURE)
        if not self.state.visited_locations:
            return CommandResult.ok(NO_VISITS)
        return CommandResult.ok(
            *render_player_map(
                self.adventure.locations,
                self.state.visited_locations,
                self.state.current_location_id,
            )
        )

    async def move(self, direction: str) -> CommandResult:
        """Move the player through an exit of the current location."""
        location = self.current_location()
        if location is None or self.state is None or self.adventure is None:
            return CommandResult.fail(ErrorKind.NOT_FOUND, *_NO_ADVENTURE)

        normalized = direction.lower()
        if not location.has_exit(normalized):
            available = ", ".join(location.exits)
            return CommandResult.fail(
                ErrorKind.INVALID_INPUT,
                f"You cannot go {direction} from here.",
                f"Available exits: {available}" if available else "There are no exits from this location.",
            )

        target = self.adventure.get_location(location.exits[normalized])
        if target is None:
            return CommandResult.fail(
                ErrorKind.NOT_FOUND,
                "Target location not found",
                "This exit is not properly configured",
            )

        self.state.current_location_id = target.id
        if target.id not in self.state.visited_locations:
            self.state.visited_locations.append(target.id)
        await self._save_state()
        logger.debug("Moved %s to %s", normalized, target.id)

        return CommandResult(output=target.formatted_description(), style=OutputStyle.DESCRIPTION)

    def talk(self, character_name: str | None = None) -> CommandResult:
        """List who is here, or get the next scripted line from one character."""
        location = self.current_location()
        if location is None:
            return CommandResult.fail(ErrorKind.NOT_FOUND, *_NO_ADVENTURE)

        names = ", ".join(c.name for c in location.characters)
        if not character_name:
            if not location.characters:
                return CommandResult.fail(
                    ErrorKind.NOT_FOUND,
                    "There is no one here to talk to.",
                    "Try exploring other locations",
                )
            return CommandResult.ok(f"You can talk to: {names}")

        character = location.find_character(character_name)
        if character is None:
            return CommandResult.fail(
                ErrorKind.NOT_FOUND,
                f"{character_name} is not here.",
                f"Available characters: {names}" if names else "There is no one here to talk to.",
            )

        line = character.next_dialogue()
        return CommandResult(
            output=[f"\n{character.name} says:", f'"{line}"'],
            style=OutputStyle.DIALOGUE,
        )
