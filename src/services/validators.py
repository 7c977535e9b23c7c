"""
Field validators for adventure content.

Validators never raise: each returns a ValidationResult the caller can show.
Multi-line values arrive as a list of lines; scalars as a string.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

MAX_LOCATION_NAME = 100
MAX_CHARACTER_NAME = 50
MAX_ADVENTURE_NAME = 100
MAX_ITEM_NAME = 100
MAX_PERSONALITY = 500
MIN_DESCRIPTION = 10


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one value."""

    valid: bool
    message: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def error(cls, message: str) -> ValidationResult:
        return cls(valid=False, message=message)


Value = str | list[str]
Validator = Callable[[Value], ValidationResult]


def as_text(value: Value) -> str:
    """Join multi-line values into one string."""
    if isinstance(value, list):
        return "\n".join(value)
    return value


def validate_location_name(value: Value) -> ValidationResult:
    name = as_text(value).strip()
    if not name:
        return ValidationResult.error("Location name cannot be empty")
    if len(name) > MAX_LOCATION_NAME:
        return ValidationResult.error(
            f"Location name must be {MAX_LOCATION_NAME} characters or less"
        )
    return ValidationResult.ok()


def validate_location_description(value: Value) -> ValidationResult:
    description = as_text(value).strip()
    if len(description) < MIN_DESCRIPTION:
        return ValidationResult.error(
            f"Description must be at least {MIN_DESCRIPTION} characters"
        )
    return ValidationResult.ok()


def validate_character_name(value: Value) -> ValidationResult:
    name = as_text(value).strip()
    if not name:
        return ValidationResult.error("Character name cannot be empty")
    if len(name) > MAX_CHARACTER_NAME:
        return ValidationResult.error(
            f"Character name must be {MAX_CHARACTER_NAME} characters or less"
        )
    return ValidationResult.ok()


def validate_dialogue(value: Value) -> ValidationResult:
    """Dialogue needs at least one non-empty line."""
    lines = value if isinstance(value, list) else [value]
    if not any(line.strip() for line in lines):
        return ValidationResult.error("Character must have at least one line of dialogue")
    return ValidationResult.ok()


def validate_personality(value: Value) -> ValidationResult:
    personality = as_text(value).strip()
    if not personality:
        return ValidationResult.error("Personality cannot be empty")
    if len(personality) > MAX_PERSONALITY:
        return ValidationResult.error(
            f"Personality must be {MAX_PERSONALITY} characters or less "
            f"(currently {len(personality)} characters)"
        )
    return ValidationResult.ok()


def validate_adventure_name(value: Value) -> ValidationResult:
    name = as_text(value).strip()
    if not name:
        return ValidationResult.error("Adventure name cannot be empty")
    if len(name) > MAX_ADVENTURE_NAME:
        return ValidationResult.error(
            f"Adventure name must be {MAX_ADVENTURE_NAME} characters or less"
        )
    return ValidationResult.ok()


def validate_adventure_description(value: Value) -> ValidationResult:
    """Optional, but at least MIN_DESCRIPTION characters when given."""
    description = as_text(value).strip()
    if description and len(description) < MIN_DESCRIPTION:
        return ValidationResult.error(
            f"Description must be at least {MIN_DESCRIPTION} characters if provided"
        )
    return ValidationResult.ok()


def validate_item_name(value: Value) -> ValidationResult:
    name = as_text(value).strip()
    if not name:
        return ValidationResult.error("Item name is required")
    if len(name) > MAX_ITEM_NAME:
        return ValidationResult.error(f"Item name must be {MAX_ITEM_NAME} characters or less")
    return ValidationResult.ok()


def validate_item_description(value: Value) -> ValidationResult:
    description = as_text(value).strip()
    if len(description) < MIN_DESCRIPTION:
        return ValidationResult.error(
            f"Item description must be at least {MIN_DESCRIPTION} characters"
        )
    return ValidationResult.ok()
