"""
Command registry and parser.

Turns an input line into a command invocation: tokenizes it (honoring
quotes), matches the longest registered command name (up to three words),
and resolves names and aliases against the commands of the current mode.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from src.engine.models import ParsedCommand
from src.models import CommandScope, GameMode

if TYPE_CHECKING:
    from src.cli.session import CommandContext
    from src.engine.models import CommandResult

logger = logging.getLogger(__name__)

MAX_COMMAND_WORDS = 3

Handler = Callable[[list[str], "CommandContext"], Awaitable["CommandResult"]]


class RegistryError(Exception):
    """A command name or alias collides with one already registered."""


class SlotKind(str, Enum):
    """Kinds of identifiers an argument can be completed against."""

    LOCATION = "location"
    CHARACTER = "character"
    ITEM = "item"


@dataclass(frozen=True)
class CompletionSlot:
    """Declares which argument positions complete against which identifiers."""

    kind: SlotKind
    arg_indexes: tuple[int, ...] = (0,)


@dataclass
class Command:
    """A registered shell command."""

    name: str
    aliases: list[str]
    description: str
    handler: Handler
    syntax: str = ""
    examples: list[str] = field(default_factory=list)
    mode: CommandScope = CommandScope.BOTH
    slot: CompletionSlot | None = None
    details: str = ""
    see_also: list[str] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [self.name, *self.aliases]


def tokenize(line: str) -> list[str]:
    """
    Split a line on whitespace, keeping quoted substrings together.

    A quote opens only at the start of a token, so apostrophes inside
    words ("don't") are literal. The quotes themselves are dropped; an
    unterminated quote runs to the end of the line. An explicitly quoted
    empty string yields an empty token.
    """
    tokens: list[str] = []
    current: list[str] = []
    quote: str | None = None
    quoted = False

    for char in line:
        if quote is not None:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in ("'", '"') and not current:
            quote = char
            quoted = True
        elif char.isspace():
            if current or quoted:
                tokens.append("".join(current))
            current = []
            quoted = False
        else:
            current.append(char)

    if current or quoted:
        tokens.append("".join(current))
    return tokens


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def similarity(typed: str, candidate: str) -> float:
    """Similarity in [0, 1]; a prefix match scores 0.9."""
    if not typed or not candidate:
        return 0.0
    if candidate.startswith(typed) or typed.startswith(candidate):
        return 0.9
    longest = max(len(typed), len(candidate))
    return 1 - levenshtein(typed, candidate) / longest


class CommandRegistry:
    """
    Mode-scoped command table.

    Each mode has its own name/alias table; a command scoped to BOTH is
    entered into both. Collisions within one table are a configuration
    error raised at registration.
    """

    def __init__(self) -> None:
        self._commands: list[Command] = []
        self._tables: dict[GameMode, dict[str, Command]] = {mode: {} for mode in GameMode}

    def __iter__(self):
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def register(self, command: Command) -> None:
        """Add a command. Raises RegistryError on any name or alias collision."""
        modes = [m for m in GameMode if command.mode.allows(m)]
        keys = command.names
        if len(set(keys)) != len(keys):
            raise RegistryError(f"Command '{command.name}' lists a duplicate alias")

        for mode in modes:
            table = self._tables[mode]
            for key in keys:
                if key in table:
                    raise RegistryError(
                        f"'{key}' of command '{command.name}' is already registered "
                        f"by '{table[key].name}' in {mode.value} mode"
                    )

        for mode in modes:
            for key in keys:
                self._tables[mode][key] = command
        self._commands.append(command)
        logger.debug("Registered command %s", command.name)

    def resolve(self, name: str, mode: GameMode) -> Command | None:
        """Exact, case-sensitive lookup of a name or alias in one mode's table."""
        return self._tables[mode].get(name)

    def lookup(self, name: str) -> Command | None:
        """Exact lookup across every mode."""
        for table in self._tables.values():
            if name in table:
                return table[name]
        return None

    def parse(self, line: str) -> ParsedCommand:
        """
        Parse a line into a command token and its arguments.

        The first three, two, then one lowercased tokens are tried against
        every registered name and alias; the longest match wins.
        """
        tokens = tokenize(line.strip())
        if not tokens:
            return ParsedCommand(command="", is_valid=False, error="Empty command")

        for count in range(min(MAX_COMMAND_WORDS, len(tokens)), 0, -1):
            candidate = " ".join(tokens[:count]).lower()
            if self.lookup(candidate) is not None:
                return ParsedCommand(command=candidate, args=tokens[count:])

        unknown = tokens[0].lower()
        return ParsedCommand(
            command=unknown,
            args=tokens[1:],
            is_valid=False,
            error=f"Unknown command: {tokens[0]}",
        )

    def available(self, mode: GameMode) -> list[Command]:
        """Commands resolvable in a mode, in registration order."""
        return [c for c in self._commands if c.mode.allows(mode)]

    def suggest(self, typed: str, mode: GameMode, limit: int = 3) -> list[str]:
        """Command names similar to an unknown command, best first."""
        typed = typed.lower()
        scored: dict[str, float] = {}
        for command in self.available(mode):
            best = max(similarity(typed, key) for key in command.names)
            if best > 0.5:
                scored[command.name] = max(best, scored.get(command.name, 0.0))
        ranked = sorted(scored.items(), key=lambda kv: (-kv[1], kv[0]))
        return [name for name, _ in ranked[:limit]]
