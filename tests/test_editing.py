"""
Tests for entity edit forms and applying their results.
"""

from __future__ import annotations

import pytest

from src.cli.editing import apply_form, build_form, new_item_form, report_edit
from src.cli.forms import CANCELLED_MESSAGE, FormResult
from src.content.demo_adventure import DEMO_ADVENTURE_ID, create_demo_adventure
from src.db.memory import InMemoryAdventureRepository
from src.engine.models import OutputStyle
from src.models import EntityKind
from src.services.admin import AdministrationService, AmbiguousMatchError, EntityNotFoundError


@pytest.fixture
async def admin() -> AdministrationService:
    service = AdministrationService(InMemoryAdventureRepository([create_demo_adventure()]))
    await service.select_adventure(DEMO_ADVENTURE_ID)
    return service


# =============================================================================
# Form Building Tests
# =============================================================================


class TestBuildForm:
    """Each entity kind gets its own field set."""

    @pytest.mark.asyncio
    async def test_location_form(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.LOCATION, admin, "village-square")
        assert [f.name for f in form.fields] == ["name", "description"]
        assert form.fields[0].current_value == "Village Square"
        assert form.fields[0].required
        assert form.fields[1].multi_line
        assert form.entity_id == "village-square"

    @pytest.mark.asyncio
    async def test_location_by_name(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.LOCATION, admin, "old library")
        assert form.entity_id == "old-library"

    @pytest.mark.asyncio
    async def test_missing_location(self, admin: AdministrationService) -> None:
        with pytest.raises(EntityNotFoundError):
            build_form(EntityKind.LOCATION, admin, "nowhere")

    @pytest.mark.asyncio
    async def test_scripted_character_edits_dialogue(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.CHARACTER, admin, "elder-mira")
        assert [f.name for f in form.fields] == ["name", "dialogue"]
        assert form.fields[1].dialogue
        assert len(form.fields[1].current_value) == 3

    @pytest.mark.asyncio
    async def test_ai_character_edits_personality(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.CHARACTER, admin, "librarian-owl")
        assert [f.name for f in form.fields] == ["name", "personality"]
        assert form.fields[1].multi_line

    @pytest.mark.asyncio
    async def test_item_by_partial_name(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.ITEM, admin, "lantern")
        assert form.entity_id == "brass-lantern"

    @pytest.mark.asyncio
    async def test_ambiguous_item(self, admin: AdministrationService) -> None:
        admin.add_item("tavern", "Iron Key", "A heavy iron key on a ring.")
        with pytest.raises(AmbiguousMatchError) as exc:
            build_form(EntityKind.ITEM, admin, "key")
        assert len(exc.value.candidates) == 2

    @pytest.mark.asyncio
    async def test_adventure_form_requires_selected(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.ADVENTURE, admin, None)
        assert form.fields[0].current_value == "The Quiet Village"
        with pytest.raises(ValueError):
            build_form(EntityKind.ADVENTURE, admin, "some-other-adventure")

    @pytest.mark.asyncio
    async def test_game_state_not_editable(self, admin: AdministrationService) -> None:
        with pytest.raises(ValueError):
            build_form(EntityKind.GAME_STATE, admin, "x")

    def test_new_item_form_starts_empty(self) -> None:
        form = new_item_form("Tavern")
        assert all(f.current_value == "" for f in form.fields)
        assert all(f.required for f in form.fields)
        assert form.entity_id is None


# =============================================================================
# Apply / Report Tests
# =============================================================================


class TestApplyForm:
    """Confirmed results are written to the workspace."""

    @pytest.mark.asyncio
    async def test_only_changed_fields_written(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.LOCATION, admin, "tavern")
        result = FormResult(
            cancelled=False,
            values={"name": "The Bent Lantern", "description": "ignored"},
            changed_fields=["name"],
        )
        assert apply_form(admin, form, result) == "The Bent Lantern"
        location = admin.get_location("tavern")
        assert location.name == "The Bent Lantern"
        assert location.description.startswith("A low-ceilinged tavern")

    @pytest.mark.asyncio
    async def test_dialogue_drops_blank_lines(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.CHARACTER, admin, "barkeep-tom")
        result = FormResult(
            cancelled=False,
            values={"name": "Barkeep Tom", "dialogue": ["Evening.", "  ", "Sit anywhere."]},
            changed_fields=["dialogue"],
        )
        apply_form(admin, form, result)
        _, character = admin.find_character("barkeep-tom")
        assert character.dialogue == ["Evening.", "Sit anywhere."]

    @pytest.mark.asyncio
    async def test_adventure_fields(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.ADVENTURE, admin, None)
        result = FormResult(
            cancelled=False,
            values={"name": "The Loud Village", "description": "Nobody sleeps here anymore."},
            changed_fields=["name", "description"],
        )
        apply_form(admin, form, result)
        assert admin.adventure.name == "The Loud Village"
        assert admin.adventure.description == "Nobody sleeps here anymore."


class TestReportEdit:
    @pytest.mark.asyncio
    async def test_cancelled(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.ITEM, admin, "faded-map")
        result = report_edit(admin, form, FormResult.cancel())
        assert result.success
        assert result.cancelled
        assert result.output == [CANCELLED_MESSAGE]

    @pytest.mark.asyncio
    async def test_no_changes(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.ITEM, admin, "faded-map")
        result = report_edit(admin, form, FormResult(cancelled=False, values={}, changed_fields=[]))
        assert result.output == ["No changes made."]
        assert result.style == OutputStyle.INFO

    @pytest.mark.asyncio
    async def test_changed(self, admin: AdministrationService) -> None:
        form = build_form(EntityKind.ITEM, admin, "faded-map")
        result = report_edit(
            admin,
            form,
            FormResult(
                cancelled=False,
                values={"name": "Torn Map", "description": "Half of a map, torn along a fold."},
                changed_fields=["name", "description"],
            ),
        )
        assert result.output == [
            'Item "Torn Map" updated successfully.',
            "Changed fields: name, description",
        ]
