"""
Output surfaces for the shell.

Everything the session writes goes through a Display: a rich console for
the interactive terminal, or an in-memory buffer for tests and headless use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from rich.console import Console
from rich.text import Text

from src.engine.models import OutputStyle

STYLE_MAP: dict[OutputStyle, str] = {
    OutputStyle.NORMAL: "",
    OutputStyle.SUCCESS: "green",
    OutputStyle.ERROR: "bold red",
    OutputStyle.INFO: "cyan",
    OutputStyle.DIALOGUE: "yellow",
    OutputStyle.DESCRIPTION: "white",
    OutputStyle.SYSTEM: "magenta",
    OutputStyle.DIM: "dim",
}


class Display(Protocol):
    """Interface for the output side of the line editor."""

    def write_line(self, text: str, style: OutputStyle = OutputStyle.NORMAL) -> None:
        """Write one line of output with a style tag."""
        ...

    def clear(self) -> None:
        """Clear the screen."""
        ...


@dataclass
class BufferedDisplay:
    """Display that records lines in memory."""

    lines: list[tuple[str, OutputStyle]] = field(default_factory=list)
    clears: int = 0

    def write_line(self, text: str, style: OutputStyle = OutputStyle.NORMAL) -> None:
        self.lines.append((text, style))

    def clear(self) -> None:
        self.lines.clear()
        self.clears += 1

    @property
    def text(self) -> list[str]:
        """Recorded lines without their styles."""
        return [line for line, _ in self.lines]

    def styled(self, style: OutputStyle) -> list[str]:
        return [line for line, s in self.lines if s == style]

    def contains(self, fragment: str) -> bool:
        return any(fragment in line for line, _ in self.lines)

    def reset(self) -> None:
        self.lines.clear()


class RichDisplay:
    """Display that renders through a rich Console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)

    def write_line(self, text: str, style: OutputStyle = OutputStyle.NORMAL) -> None:
        self.console.print(Text(text, style=STYLE_MAP.get(style, "")))

    def clear(self) -> None:
        self.console.clear()
