"""
Awaiting input lines.

Interactive steps (password, confirmation, form fields) suspend the
running command until the shell submits the next line. A LineAwaiter holds
that one pending wait; `feed` resolves it and `cancel` rejects it with
PromptCancelled.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from src.engine.models import OutputStyle

AFFIRMATIVE = ("y", "yes")


class PromptCancelled(Exception):
    """The user interrupted a pending prompt."""


def is_affirmative(answer: str) -> bool:
    return answer.strip().lower() in AFFIRMATIVE


class Prompter(Protocol):
    """What interactive code needs: write output, await a line."""

    def write_line(self, text: str, style: OutputStyle = OutputStyle.NORMAL) -> None:
        ...

    async def prompt_line(self, prompt: str = "> ", *, masked: bool = False) -> str:
        """Wait for the next line. Raises PromptCancelled on interrupt."""
        ...


class LineAwaiter:
    """
    A single pending line request.

    `parked` is set while a coroutine is suspended waiting for a line, so
    the driver can tell "waiting for input" apart from "still working".
    """

    def __init__(self) -> None:
        self._waiter: asyncio.Future[str] | None = None
        self.prompt = ""
        self.masked = False
        self.parked = asyncio.Event()

    @property
    def pending(self) -> bool:
        return self._waiter is not None and not self._waiter.done()

    async def read_line(self, prompt: str = "> ", *, masked: bool = False) -> str:
        if self.pending:
            raise RuntimeError("A line is already being awaited")
        loop = asyncio.get_running_loop()
        self._waiter = loop.create_future()
        self.prompt = prompt
        self.masked = masked
        self.parked.set()
        try:
            return await self._waiter
        finally:
            self._waiter = None
            self.prompt = ""
            self.masked = False

    def feed(self, line: str) -> bool:
        """Resolve the pending wait. Returns False if nothing was waiting."""
        if not self.pending:
            return False
        self.parked.clear()
        self._waiter.set_result(line)
        return True

    def cancel(self) -> bool:
        """Reject the pending wait with PromptCancelled. Idempotent."""
        if not self.pending:
            return False
        self.parked.clear()
        self._waiter.set_exception(PromptCancelled())
        return True
