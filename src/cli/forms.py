"""
Interactive form engine.

Walks the user through an ordered set of fields, one prompt at a time,
and produces a change set. Nothing is saved here: the caller receives the
collected values only after the user confirms the summary.

Conventions at every prompt:
- Enter on an empty line keeps the current value
- "cancel" aborts the whole form
- multi-line fields read lines until a line reading END
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from src.cli.interaction import PromptCancelled, Prompter, is_affirmative
from src.engine.models import OutputStyle
from src.models import EntityKind
from src.services.validators import ValidationResult, Validator, Value

logger = logging.getLogger(__name__)

CANCEL_KEYWORD = "cancel"
TERMINATOR = "END"
CANCELLED_MESSAGE = "Edit cancelled. No changes were saved."


@dataclass
class FieldDescriptor:
    """One editable property of an entity."""

    name: str
    label: str
    current_value: Value = ""
    help_text: str = ""
    required: bool = False
    validator: Validator | None = None
    multi_line: bool = False
    dialogue: bool = False

    def is_empty(self) -> bool:
        if isinstance(self.current_value, list):
            return not any(line.strip() for line in self.current_value)
        return not self.current_value.strip()


@dataclass
class FormSession:
    """A titled, ordered set of fields over one entity."""

    title: str
    fields: list[FieldDescriptor]
    entity_kind: EntityKind | None = None
    entity_id: str | None = None


@dataclass
class FormResult:
    """Outcome of a form: either cancelled, or values plus what changed."""

    cancelled: bool
    values: dict[str, Value] = field(default_factory=dict)
    changed_fields: list[str] = field(default_factory=list)

    @classmethod
    def cancel(cls) -> FormResult:
        return cls(cancelled=True)

    @property
    def has_changes(self) -> bool:
        return not self.cancelled and bool(self.changed_fields)


ProgressCallback = Callable[[int, dict[str, Value]], None]


def _check_cancel(text: str) -> str:
    if text.strip().lower() == CANCEL_KEYWORD:
        raise PromptCancelled()
    return text


def format_value(value: Value, limit: int = 60) -> str:
    if isinstance(value, list):
        text = " / ".join(value)
    else:
        text = value
    if not text:
        return "(empty)"
    return text if len(text) <= limit else text[: limit - 3] + "..."


class FormEngine:
    """
    Drives a FormSession against a Prompter.

    Args:
        prompter: Where output goes and input comes from
        on_progress: Called with (field_index, collected_values) as the form advances
    """

    def __init__(self, prompter: Prompter, on_progress: ProgressCallback | None = None) -> None:
        self.prompter = prompter
        self.on_progress = on_progress

    def _write(self, text: str, style: OutputStyle = OutputStyle.NORMAL) -> None:
        self.prompter.write_line(text, style)

    async def _ask(self, prompt: str) -> str:
        return _check_cancel(await self.prompter.prompt_line(prompt))

    def _reject(self, result: ValidationResult) -> None:
        self._write(f"✗ {result.message}", OutputStyle.ERROR)

    async def run(self, form: FormSession) -> FormResult:
        """
        Collect, summarize, confirm.

        Cancellation (the keyword, a "no" at the summary, or an interrupt)
        returns a cancelled result; the caller reports it.
        """
        try:
            return await self._run(form)
        except PromptCancelled:
            logger.debug("Form %r cancelled", form.title)
            return FormResult.cancel()

    async def _run(self, form: FormSession) -> FormResult:
        total = len(form.fields)
        self._write(f"\n=== {form.title} ===", OutputStyle.SYSTEM)
        self._write(
            f"Press Enter to keep a value. Type '{CANCEL_KEYWORD}' at any prompt to abort.",
            OutputStyle.DIM,
        )

        values: dict[str, Value] = {}
        changed: list[str] = []
        for index, descriptor in enumerate(form.fields):
            self._report(index, values)
            self._show_field(descriptor, index, total)
            value = await self._collect(descriptor)
            values[descriptor.name] = value
            if value != descriptor.current_value:
                changed.append(descriptor.name)
        self._report(total, values)

        self._show_summary(form, values, changed)
        answer = await self._ask("Save these changes? (y/n): ")
        if not is_affirmative(answer):
            raise PromptCancelled()
        return FormResult(cancelled=False, values=values, changed_fields=changed)

    def _report(self, index: int, values: dict[str, Value]) -> None:
        if self.on_progress is not None:
            self.on_progress(index, dict(values))

    def _show_field(self, descriptor: FieldDescriptor, index: int, total: int) -> None:
        self._write(f"\nField {index + 1} of {total}: {descriptor.label}", OutputStyle.INFO)
        if descriptor.help_text:
            self._write(descriptor.help_text, OutputStyle.DIM)
        self._show_current(descriptor.current_value)

    def _show_current(self, value: Value) -> None:
        if isinstance(value, list):
            if not value:
                self._write("Current: (empty)", OutputStyle.DIM)
                return
            self._write("Current:", OutputStyle.DIM)
            for number, line in enumerate(value, start=1):
                self._write(f"  {number}. {line}", OutputStyle.DIM)
        else:
            self._write(f"Current: {value or '(empty)'}", OutputStyle.DIM)

    async def _collect(self, descriptor: FieldDescriptor) -> Value:
        """Prompt until the field holds a valid value (or is kept)."""
        while True:
            candidate: Value | None
            if descriptor.dialogue:
                candidate = await self._dialogue_flow(descriptor)
            elif descriptor.multi_line:
                lines = await self._multi_line()
                if not lines:
                    candidate = None
                elif isinstance(descriptor.current_value, str):
                    candidate = "\n".join(lines)
                else:
                    candidate = lines
            else:
                candidate = await self._ask("New value: ") or None

            if candidate is None:
                if descriptor.required and descriptor.is_empty():
                    self._reject(ValidationResult.error("This field is required"))
                    continue
                return descriptor.current_value

            if candidate == descriptor.current_value:
                return candidate

            if descriptor.validator is not None:
                result = descriptor.validator(candidate)
                if not result.valid:
                    self._reject(result)
                    continue
            return candidate

    async def _multi_line(self) -> list[str]:
        """Read lines verbatim until the terminator. An empty result means keep."""
        self._write(f"Enter text line by line. Type {TERMINATOR} on its own line to finish.", OutputStyle.DIM)
        lines: list[str] = []
        while True:
            line = _check_cancel(await self.prompter.prompt_line("... "))
            if line == TERMINATOR:
                return lines
            lines.append(line)

    async def _dialogue_flow(self, descriptor: FieldDescriptor) -> list[str] | None:
        """Keep, edit one line by number, or replace all. Returns None to keep."""
        current = list(descriptor.current_value) if isinstance(descriptor.current_value, list) else []
        while True:
            choice = (await self._ask("Keep (k), edit a line (e), or replace all (r)? ")).strip().lower()
            if choice in ("", "k", "keep"):
                return None
            if choice in ("r", "replace"):
                return await self._multi_line() or None
            if choice in ("e", "edit"):
                if not current:
                    self._write("There are no lines to edit. Choose r to write new dialogue.", OutputStyle.INFO)
                    continue
                return await self._edit_line(current)
            self._reject(ValidationResult.error("Choose k, e, or r"))

    async def _edit_line(self, current: list[str]) -> list[str] | None:
        count = len(current)
        while True:
            raw = (await self._ask(f"Line number (1-{count}): ")).strip()
            if raw.isdigit() and 1 <= int(raw) <= count:
                index = int(raw) - 1
                break
            self._reject(ValidationResult.error(f"Enter a number between 1 and {count}"))

        self._write(f"Line {index + 1}: {current[index]}", OutputStyle.DIM)
        text = await self._ask("New text (Enter keeps, '-' deletes the line): ")
        updated = list(current)
        if text == "":
            return None
        if text.strip() == "-":
            del updated[index]
        else:
            updated[index] = text
        return updated

    def _show_summary(self, form: FormSession, values: dict[str, Value], changed: list[str]) -> None:
        self._write("\nSummary of changes:", OutputStyle.SYSTEM)
        for descriptor in form.fields:
            if descriptor.name in changed:
                old = format_value(descriptor.current_value)
                new = format_value(values[descriptor.name])
                self._write(f"  {descriptor.label}: {old} → {new}", OutputStyle.SUCCESS)
            else:
                self._write(f"  {descriptor.label}: (kept)", OutputStyle.DIM)
