"""
Entity edit sessions.

Builds the form for each entity kind and applies a confirmed form result
back to the admin workspace. Dispatch is by EntityKind; each kind has a
field builder and an applier.
"""

from __future__ import annotations

from collections.abc import Callable

from src.cli.forms import CANCELLED_MESSAGE, FieldDescriptor, FormResult, FormSession
from src.engine.models import CommandResult, OutputStyle
from src.models import EntityKind
from src.services.admin import AdministrationService, EntityNotFoundError
from src.services.validators import (
    as_text,
    validate_adventure_description,
    validate_adventure_name,
    validate_character_name,
    validate_dialogue,
    validate_item_description,
    validate_item_name,
    validate_location_description,
    validate_location_name,
    validate_personality,
)

KIND_LABELS = {
    EntityKind.ADVENTURE: "Adventure",
    EntityKind.LOCATION: "Location",
    EntityKind.CHARACTER: "Character",
    EntityKind.ITEM: "Item",
}


def _location_form(admin: AdministrationService, reference: str | None) -> FormSession:
    if not reference:
        raise ValueError("Usage: edit location <id>")
    location = admin.find_location(reference)
    if location is None:
        raise EntityNotFoundError(f"Location not found: {reference}")
    return FormSession(
        title=f"Editing location: {location.name}",
        entity_kind=EntityKind.LOCATION,
        entity_id=location.id,
        fields=[
            FieldDescriptor(
                name="name",
                label="Location Name",
                current_value=location.name,
                help_text="Up to 100 characters.",
                required=True,
                validator=validate_location_name,
            ),
            FieldDescriptor(
                name="description",
                label="Description",
                current_value=location.description,
                help_text="What the player sees on arrival. At least 10 characters.",
                validator=validate_location_description,
                multi_line=True,
            ),
        ],
    )


def _character_form(admin: AdministrationService, reference: str | None) -> FormSession:
    if not reference:
        raise ValueError("Usage: edit character <id>")
    _, character = admin.find_character(reference)
    fields = [
        FieldDescriptor(
            name="name",
            label="Character Name",
            current_value=character.name,
            help_text="Up to 50 characters.",
            required=True,
            validator=validate_character_name,
        )
    ]
    if character.is_ai_powered:
        fields.append(
            FieldDescriptor(
                name="personality",
                label="Personality",
                current_value=character.personality or "",
                help_text="How the AI should play this character. Up to 500 characters.",
                validator=validate_personality,
                multi_line=True,
            )
        )
    else:
        fields.append(
            FieldDescriptor(
                name="dialogue",
                label="Dialogue",
                current_value=list(character.dialogue),
                help_text="Lines spoken in turn when the player talks to this character.",
                validator=validate_dialogue,
                dialogue=True,
            )
        )
    return FormSession(
        title=f"Editing character: {character.name}",
        entity_kind=EntityKind.CHARACTER,
        entity_id=character.id,
        fields=fields,
    )


def _adventure_form(admin: AdministrationService, reference: str | None) -> FormSession:
    adventure = admin.require_adventure()
    if reference and reference != adventure.id:
        raise ValueError(
            f"Adventure {reference} is not selected. Use \"select adventure {reference}\" first."
        )
    return FormSession(
        title=f"Editing adventure: {adventure.name}",
        entity_kind=EntityKind.ADVENTURE,
        entity_id=adventure.id,
        fields=[
            FieldDescriptor(
                name="name",
                label="Adventure Name",
                current_value=adventure.name,
                help_text="Up to 100 characters.",
                required=True,
                validator=validate_adventure_name,
            ),
            FieldDescriptor(
                name="description",
                label="Description",
                current_value=adventure.description,
                help_text="Optional. At least 10 characters if given.",
                validator=validate_adventure_description,
            ),
        ],
    )


def _item_fields(name: str = "", description: str = "") -> list[FieldDescriptor]:
    return [
        FieldDescriptor(
            name="name",
            label="Item Name",
            current_value=name,
            help_text="Up to 100 characters.",
            required=True,
            validator=validate_item_name,
        ),
        FieldDescriptor(
            name="description",
            label="Description",
            current_value=description,
            help_text="What the player sees when examining it. At least 10 characters.",
            required=True,
            validator=validate_item_description,
            multi_line=True,
        ),
    ]


def _item_form(admin: AdministrationService, reference: str | None) -> FormSession:
    if not reference:
        raise ValueError("Usage: edit item <id|name>")
    _, item = admin.find_item(reference)
    return FormSession(
        title=f"Editing item: {item.name}",
        entity_kind=EntityKind.ITEM,
        entity_id=item.id,
        fields=_item_fields(item.name, item.description),
    )


def new_item_form(location_name: str) -> FormSession:
    """Form for creating an item; every field starts empty."""
    return FormSession(
        title=f"New item in {location_name}",
        entity_kind=EntityKind.ITEM,
        fields=_item_fields(),
    )


_BUILDERS: dict[EntityKind, Callable[[AdministrationService, str | None], FormSession]] = {
    EntityKind.LOCATION: _location_form,
    EntityKind.CHARACTER: _character_form,
    EntityKind.ADVENTURE: _adventure_form,
    EntityKind.ITEM: _item_form,
}


def build_form(kind: EntityKind, admin: AdministrationService, reference: str | None) -> FormSession:
    """
    Build the edit form for an entity.

    Raises EntityNotFoundError (or ValueError) before any prompting when the
    entity cannot be edited.
    """
    if kind not in _BUILDERS:
        raise ValueError(f"{kind.value} records cannot be edited")
    return _BUILDERS[kind](admin, reference)


def apply_form(admin: AdministrationService, form: FormSession, result: FormResult) -> str:
    """Write the changed fields to the workspace; returns the entity's display name."""
    changes = {name: result.values[name] for name in result.changed_fields}
    kind, entity_id = form.entity_kind, form.entity_id or ""

    if kind == EntityKind.LOCATION:
        location = admin.update_location(
            entity_id,
            name=as_text(changes["name"]) if "name" in changes else None,
            description=as_text(changes["description"]) if "description" in changes else None,
        )
        return location.name
    if kind == EntityKind.CHARACTER:
        dialogue = changes.get("dialogue")
        character = admin.update_character(
            entity_id,
            name=as_text(changes["name"]) if "name" in changes else None,
            dialogue=[line for line in dialogue if line.strip()] if isinstance(dialogue, list) else None,
            personality=as_text(changes["personality"]) if "personality" in changes else None,
        )
        return character.name
    if kind == EntityKind.ADVENTURE:
        if "name" in changes:
            admin.update_title(as_text(changes["name"]))
        if "description" in changes:
            admin.update_description(as_text(changes["description"]))
        return admin.require_adventure().name
    if kind == EntityKind.ITEM:
        item = admin.update_item(
            entity_id,
            name=as_text(changes["name"]) if "name" in changes else None,
            description=as_text(changes["description"]) if "description" in changes else None,
        )
        return item.name
    raise ValueError(f"{kind} records cannot be edited")


def report_edit(admin: AdministrationService, form: FormSession, result: FormResult) -> CommandResult:
    """Apply a finished form and describe the outcome."""
    if result.cancelled:
        return CommandResult.aborted(CANCELLED_MESSAGE)
    if not result.changed_fields:
        return CommandResult.ok("No changes made.", style=OutputStyle.INFO)

    name = apply_form(admin, form, result)
    label = KIND_LABELS.get(form.entity_kind, "Entity")
    return CommandResult.ok(
        f'{label} "{name}" updated successfully.',
        f"Changed fields: {', '.join(result.changed_fields)}",
        style=OutputStyle.SUCCESS,
    )
