"""
Command history for the shell.

A bounded, navigable log of executed commands. Up/Down arrow navigation
walks a cursor over the retained entries; the cursor rests "past the end"
whenever nothing is selected.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum


class HistorySignal(str, Enum):
    """Non-text navigation outcomes."""

    CLEAR = "clear"
    """Navigated past the newest entry: clear the input line."""


@dataclass(frozen=True)
class HistoryEntry:
    """One executed command."""

    sequence: int
    text: str


@dataclass
class HistoryListing:
    """A numbered slice of history for display, oldest first."""

    entries: list[tuple[int, str]] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.entries

    def format(self) -> list[str]:
        if self.empty:
            return ["No commands in history."]
        width = len(str(self.entries[-1][0]))
        return [f"{number:>{width}}  {text}" for number, text in self.entries]


class CommandHistory:
    """
    Bounded command history with cursor navigation.

    Args:
        capacity: Most entries retained; the oldest is evicted on overflow
        collapse_duplicates: Skip a record identical to the newest entry
    """

    def __init__(self, capacity: int = 100, *, collapse_duplicates: bool = False) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self.capacity = capacity
        self.collapse_duplicates = collapse_duplicates
        self._entries: deque[HistoryEntry] = deque(maxlen=capacity)
        self._next_sequence = 1
        self._cursor: int | None = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    @property
    def cursor(self) -> int | None:
        """Index of the selected entry, or None when past the end."""
        return self._cursor

    def record(self, line: str) -> None:
        """Append a command. Blank lines are ignored."""
        self.reset_cursor()
        if not line.strip():
            return
        if self.collapse_duplicates and self._entries and self._entries[-1].text == line:
            return
        self._entries.append(HistoryEntry(sequence=self._next_sequence, text=line))
        self._next_sequence += 1

    def reset_cursor(self) -> None:
        self._cursor = None

    def navigate_up(self) -> str | None:
        """Step toward older entries. Returns None when there is no history."""
        if not self._entries:
            return None
        if self._cursor is None:
            self._cursor = len(self._entries) - 1
        elif self._cursor > 0:
            self._cursor -= 1
        return self._entries[self._cursor].text

    def navigate_down(self) -> str | HistorySignal:
        """Step toward newer entries; past the newest, signal a clear."""
        if self._cursor is None:
            return HistorySignal.CLEAR
        if self._cursor >= len(self._entries) - 1:
            self._cursor = None
            return HistorySignal.CLEAR
        self._cursor += 1
        return self._entries[self._cursor].text

    def list(self, limit: int = 50) -> HistoryListing:
        """The most recent `limit` entries, numbered from 1."""
        recent = list(self._entries)[-limit:] if limit > 0 else []
        return HistoryListing(entries=[(i, e.text) for i, e in enumerate(recent, start=1)])

    def clear(self) -> None:
        self._entries.clear()
        self.reset_cursor()
