"""
Tab completion for the shell.

Completes command names while no command has been typed yet, and
identifiers (location, character, item ids) in the argument slots that
commands declare. Completion only happens with the cursor at the end of
the input.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from src.cli.registry import MAX_COMMAND_WORDS, Command, CommandRegistry, SlotKind, tokenize
from src.models import GameMode

# (id, display name) pairs for a slot kind
CandidateSource = Callable[[SlotKind], list[tuple[str, str]]]


@dataclass(frozen=True)
class AutocompleteResult:
    """
    Outcome of a Tab press.

    Either a single completion to apply (replacing the text from `start` to
    the end of the line), a list of candidates to display, or nothing.
    """

    completion: str | None = None
    start: int = 0
    candidates: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.completion is not None and self.candidates:
            raise ValueError("A result carries a completion or candidates, not both")

    @property
    def empty(self) -> bool:
        return self.completion is None and not self.candidates

    def apply(self, text: str) -> str:
        """The input line after applying the completion (unchanged otherwise)."""
        if self.completion is None:
            return text
        return text[: self.start] + self.completion


EMPTY = AutocompleteResult()


def matches_partial(partial: str, identifier: str, display_name: str) -> bool:
    """Prefix of the id, or of any word of the display name, case-insensitive."""
    lowered = partial.lower()
    if identifier.lower().startswith(lowered):
        return True
    return any(word.lower().startswith(lowered) for word in display_name.split())


def resolve_candidates(
    partial: str, candidates: list[tuple[str, str]], start: int
) -> AutocompleteResult:
    """Apply the resolution policy: one match completes, several list, none is empty."""
    matched = [cid for cid, name in candidates if matches_partial(partial, cid, name)]
    if len(matched) == 1:
        return AutocompleteResult(completion=matched[0], start=start)
    if len(matched) > 1:
        return AutocompleteResult(candidates=tuple(matched))
    return EMPTY


class AutocompleteResolver:
    """
    Computes completions for the current input line.

    Args:
        registry: Commands to complete and to read slot declarations from
        source: Supplies identifier candidates per slot kind; it must return
            an empty list (not raise) when nothing is selected
    """

    def __init__(self, registry: CommandRegistry, source: CandidateSource) -> None:
        self.registry = registry
        self.source = source

    def resolve(self, text: str, cursor: int, mode: GameMode) -> AutocompleteResult:
        if cursor != len(text):
            return EMPTY

        at_boundary = not text or text[-1].isspace()
        tokens = tokenize(text)
        partial = "" if at_boundary else tokens[-1]
        complete = tokens if at_boundary else tokens[:-1]
        if not text.endswith(partial):
            # The partial token is still inside an open quote.
            return EMPTY
        start = len(text) - len(partial)

        matched = self._match_command(complete, mode)
        if matched is None:
            if len(complete) >= MAX_COMMAND_WORDS:
                return EMPTY
            return self._complete_command_name(text, complete, partial, mode)

        # A partial word after a matched prefix may still spell a longer
        # command name ("show lo" -> "show locations", where "show" is an alias).
        if partial:
            named = self._complete_command_name(text, complete, partial, mode)
            if not named.empty:
                return named

        command, words = matched
        if command.slot is None:
            return EMPTY
        arg_index = len(complete) - words
        if arg_index not in command.slot.arg_indexes:
            return EMPTY
        return resolve_candidates(partial, self.source(command.slot.kind), start)

    def _match_command(self, tokens: list[str], mode: GameMode) -> tuple[Command, int] | None:
        for count in range(min(MAX_COMMAND_WORDS, len(tokens)), 0, -1):
            command = self.registry.resolve(" ".join(tokens[:count]).lower(), mode)
            if command is not None:
                return command, count
        return None

    def _complete_command_name(
        self, text: str, complete: list[str], partial: str, mode: GameMode
    ) -> AutocompleteResult:
        typed = " ".join([*complete, partial]).lower()
        by_command: dict[str, list[str]] = {}
        for command in self.registry.available(mode):
            keys = [k for k in command.names if k.startswith(typed)]
            if keys:
                by_command[command.name] = keys

        if not by_command:
            return EMPTY

        start = len(text) - len(text.lstrip())
        if len(by_command) == 1:
            name, keys = next(iter(by_command.items()))
            return AutocompleteResult(completion=name if name in keys else keys[0], start=start)

        return AutocompleteResult(candidates=tuple(sorted(by_command)))
