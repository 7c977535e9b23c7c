"""
Default command set for the terminal shell.

Every handler is an async callable taking the argument tokens and the
CommandContext, and returning a CommandResult. Handlers that need input
beyond their arguments (passwords, confirmations, forms) await it through
`ctx.interaction`.
"""

from __future__ import annotations

import functools
import logging

from src.cli.editing import build_form, new_item_form, report_edit
from src.cli.forms import CANCELLED_MESSAGE
from src.cli.help import command_list, find_help_topic, man_page
from src.cli.registry import Command, CommandRegistry, CompletionSlot, Handler, SlotKind
from src.cli.session import CommandContext
from src.db.interfaces import RepositoryError
from src.engine.map import render_admin_map
from src.engine.models import CommandResult, ErrorInfo, ErrorKind, OutputStyle
from src.models import (
    VALID_DIRECTIONS,
    Adventure,
    Character,
    CommandScope,
    EntityKind,
    GameMode,
    Item,
    Location,
)
from src.services.admin import (
    AmbiguousMatchError,
    EntityNotFoundError,
    InvalidAdventureError,
)
from src.services.validators import (
    validate_character_name,
    validate_location_name,
    validate_personality,
)

logger = logging.getLogger(__name__)

SAVE_HINT = 'Use "save adventure" to persist your changes.'
_NO_SELECTION = (
    "No adventure selected",
    'Use "list adventures" to see available adventures, then "select adventure <id>" to select one.',
)

SHORTCUTS = {
    "north": "n",
    "south": "s",
    "east": "e",
    "west": "w",
    "up": "u",
    "down": "d",
}


def _usage(message: str, usage: str) -> CommandResult:
    return CommandResult.fail(ErrorKind.INVALID_INPUT, message, f"Usage: {usage}")


def workspace_command(handler: Handler | None = None, *, needs_adventure: bool = True):
    """
    Wrap an admin handler: require a selected adventure and translate
    domain errors raised by the workspace into results.
    """

    def decorate(func: Handler) -> Handler:
        @functools.wraps(func)
        async def wrapper(args: list[str], ctx: CommandContext) -> CommandResult:
            if needs_adventure and ctx.services.workspace.adventure is None:
                return CommandResult.fail(ErrorKind.NOT_FOUND, *_NO_SELECTION)
            try:
                return await func(args, ctx)
            except AmbiguousMatchError as e:
                return CommandResult.fail(
                    ErrorKind.INVALID_INPUT,
                    str(e),
                    f"Be more specific, or use an id: {', '.join(e.candidates)}",
                )
            except EntityNotFoundError as e:
                return CommandResult.fail(ErrorKind.NOT_FOUND, str(e))
            except RepositoryError as e:
                return CommandResult.fail(
                    ErrorKind.SERVICE_UNAVAILABLE,
                    str(e),
                    "Please try again or check the server connection",
                )
            except ValueError as e:
                return CommandResult.fail(ErrorKind.INVALID_INPUT, str(e))

        return wrapper

    if handler is not None:
        return decorate(handler)
    return decorate


# =============================================================================
# Both modes
# =============================================================================


async def cmd_help(args: list[str], ctx: CommandContext) -> CommandResult:
    mode = ctx.session.mode
    if not args:
        return CommandResult.ok(*command_list(ctx.registry, mode))
    command = find_help_topic(ctx.registry, args, mode)
    if command is None:
        return CommandResult.fail(
            ErrorKind.NOT_FOUND,
            f"No manual entry for {' '.join(args)}",
            'Type "help" to see available commands',
        )
    return CommandResult.ok(*man_page(command))


async def cmd_clear(args: list[str], ctx: CommandContext) -> CommandResult:
    ctx.interaction.clear()
    return CommandResult.ok()


async def cmd_history(args: list[str], ctx: CommandContext) -> CommandResult:
    listing = ctx.history.list(ctx.services.config.history_display_limit)
    return CommandResult.ok(*listing.format(), style=OutputStyle.INFO if listing.empty else OutputStyle.NORMAL)


async def cmd_map(args: list[str], ctx: CommandContext) -> CommandResult:
    """Visited locations in player mode, the whole adventure in admin mode."""
    if ctx.session.mode == GameMode.ADMIN:
        workspace = ctx.services.workspace
        if workspace.adventure is None:
            return CommandResult.fail(ErrorKind.NOT_FOUND, *_NO_SELECTION)
        return CommandResult.ok(
            *render_admin_map(workspace.adventure.locations, workspace.current_location_id)
        )
    return ctx.services.engine.map()


async def cmd_exit(args: list[str], ctx: CommandContext) -> CommandResult:
    """Leave admin mode, or (in player mode, after confirming) stop the shell."""
    session = ctx.session
    if session.mode == GameMode.ADMIN:
        if session.session_token:
            await ctx.services.auth.logout(session.session_token)
        session.drop_privileges()
        session.selected_location_id = None
        ctx.services.repository.session_token = None
        return CommandResult.ok(
            "Exiting admin mode. Returning to player mode...", style=OutputStyle.INFO
        )

    if not await ctx.interaction.prompt_confirm("Are you sure you want to exit?"):
        return CommandResult.aborted("Exit cancelled.")
    session.running = False
    return CommandResult.ok("Thanks for playing!", style=OutputStyle.SUCCESS)


# =============================================================================
# Player
# =============================================================================


async def cmd_adventures(args: list[str], ctx: CommandContext) -> CommandResult:
    try:
        adventures = await ctx.services.engine.list_adventures()
    except RepositoryError as e:
        return CommandResult.fail(
            ErrorKind.SERVICE_UNAVAILABLE, str(e), "Please try again or check the server connection"
        )
    if not adventures:
        return CommandResult.ok("No adventures available.", style=OutputStyle.INFO)

    output = ["Available Adventures:", ""]
    for number, adventure in enumerate(adventures, start=1):
        output.append(f"{number}. {adventure.name}")
        output.append(f"   ID: {adventure.id}")
        output.append(f"   {adventure.description or 'No description'}")
        output.append(f"   Locations: {len(adventure.locations)}")
        output.append("")
    output.append('Use "load <adventure-id>" to play an adventure.')
    return CommandResult.ok(*output)


async def cmd_load(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return CommandResult.fail(
            ErrorKind.INVALID_INPUT,
            "Adventure ID required",
            'Usage: load <adventure-id>. Use "adventures" to see available adventures.',
        )
    engine = ctx.services.engine
    try:
        result = await engine.load_adventure(args[0])
    except RepositoryError as e:
        return CommandResult.fail(
            ErrorKind.SERVICE_UNAVAILABLE, str(e), "Please try again or check the server connection"
        )
    if result.success and engine.state is not None:
        ctx.session.current_location_id = engine.state.current_location_id
    return result


async def cmd_look(args: list[str], ctx: CommandContext) -> CommandResult:
    return ctx.services.engine.look()


async def _move(direction: str, ctx: CommandContext) -> CommandResult:
    engine = ctx.services.engine
    result = await engine.move(direction)
    if result.success and engine.state is not None:
        ctx.session.current_location_id = engine.state.current_location_id
    return result


async def cmd_move(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return CommandResult.fail(
            ErrorKind.INVALID_INPUT,
            "Direction required",
            "Usage: move <direction> (e.g., move north)",
        )
    return await _move(args[0], ctx)


def _shortcut(direction: str) -> Handler:
    async def handler(args: list[str], ctx: CommandContext) -> CommandResult:
        return await _move(direction, ctx)

    handler.__name__ = f"cmd_{direction}"
    return handler


async def cmd_talk(args: list[str], ctx: CommandContext) -> CommandResult:
    return ctx.services.engine.talk(" ".join(args) or None)


async def cmd_chat(args: list[str], ctx: CommandContext) -> CommandResult:
    """Start a conversation with an AI-powered character at the player's location."""
    location = ctx.services.engine.current_location()
    if location is None:
        return CommandResult.fail(ErrorKind.NOT_FOUND, "No adventure loaded", "Load an adventure first")
    if ctx.services.chat is None:
        return CommandResult.fail(
            ErrorKind.SERVICE_UNAVAILABLE,
            "Unable to connect to AI service",
            "Start the shell with an AI provider configured.",
        )

    ai_here = [c for c in location.characters if c.is_ai_powered]
    if args:
        name = " ".join(args)
        npc = location.find_character(name)
        if npc is None:
            names = ", ".join(c.name for c in ai_here)
            return CommandResult.fail(
                ErrorKind.NOT_FOUND,
                f"{name} is not here.",
                f"Available AI characters: {names}" if names else "There are no AI characters here.",
            )
        if not npc.is_ai_powered:
            return CommandResult.fail(
                ErrorKind.INVALID_INPUT,
                f"{npc.name} is not an AI-powered character.",
                'Use "talk" for scripted conversations with regular characters.',
            )
    elif not ai_here:
        return CommandResult.fail(
            ErrorKind.NOT_FOUND,
            "There are no AI-powered characters here to chat with.",
            'Try using "talk" for scripted conversations with regular characters.'
            if location.characters
            else "Try exploring other locations.",
        )
    elif len(ai_here) > 1:
        return CommandResult.fail(
            ErrorKind.INVALID_INPUT,
            "Multiple AI characters are present.",
            f"Please specify who to chat with: {', '.join(c.name for c in ai_here)}",
        )
    else:
        npc = ai_here[0]

    ctx.interaction.start_chat(npc, location)
    return CommandResult.ok(
        f"Starting conversation with {npc.name}...",
        "",
        "You are now in chat mode. Your messages will be sent to the character.",
        'Type "exit" or "quit" to end the conversation.',
        style=OutputStyle.INFO,
    )


async def cmd_sudo(args: list[str], ctx: CommandContext) -> CommandResult:
    """Authenticate and enter admin mode. An interrupt aborts without validating."""
    password = await ctx.interaction.prompt_secret("[sudo] password: ")
    auth = ctx.services.auth
    if not await auth.validate_credentials(password):
        return CommandResult.fail(
            ErrorKind.UNAUTHORIZED,
            "Authentication failed",
            "Incorrect password. Please try again.",
        )
    token = await auth.create_session()
    ctx.session.elevate(token)
    ctx.services.repository.session_token = token
    return CommandResult.ok(
        "Authentication successful. Entering admin mode...",
        'Type "help" to see available admin commands.',
        style=OutputStyle.SUCCESS,
    )


# =============================================================================
# Admin: adventure lifecycle
# =============================================================================


@workspace_command(needs_adventure=False)
async def cmd_create_adventure(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Adventure name required", 'create adventure <name> ["description"]')
    adventure = ctx.services.workspace.create_adventure(args[0], " ".join(args[1:]))
    ctx.session.selected_adventure_id = adventure.id
    ctx.session.selected_location_id = None
    return CommandResult.ok(
        f'Created new adventure: "{adventure.name}"',
        f"Adventure ID: {adventure.id}",
        "",
        'Use "add location <name> <description>" to add locations.',
        SAVE_HINT,
        style=OutputStyle.SUCCESS,
    )


@workspace_command(needs_adventure=False)
async def cmd_list_adventures(args: list[str], ctx: CommandContext) -> CommandResult:
    adventures = await ctx.services.workspace.list_adventures()
    if not adventures:
        return CommandResult.ok(
            "No adventures found.", "", 'Use "create adventure" to create a new adventure.'
        )
    output = ["Available Adventures:", ""]
    for number, adventure in enumerate(adventures, start=1):
        output.append(f"{number}. {adventure.name}")
        output.append(f"   ID: {adventure.id}")
        output.append(f"   Locations: {len(adventure.locations)}")
        output.append(f"   Created: {adventure.created_at:%Y-%m-%d}")
        output.append("")
    return CommandResult.ok(*output)


@workspace_command(needs_adventure=False)
async def cmd_select_adventure(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Adventure ID required", "select adventure <adventure-id>")
    adventure = await ctx.services.workspace.select_adventure(args[0])
    ctx.session.selected_adventure_id = adventure.id
    ctx.session.selected_location_id = None
    return CommandResult.ok(
        f'Selected adventure: "{adventure.name}"',
        f"Adventure ID: {adventure.id}",
        f"Locations: {len(adventure.locations)}",
        "",
        'Use "show adventure" to view full adventure details.',
        'Use "save adventure" when you are ready to save your changes.',
    )


def _describe_adventure(adventure: Adventure) -> list[str]:
    output = [
        f"Adventure: {adventure.name}",
        f"ID: {adventure.id}",
        f"Description: {adventure.description or '(no description)'}",
        f"Starting Location: {adventure.start_location_id or '(none)'}",
        "",
        f"Locations ({len(adventure.locations)}):",
    ]
    for location in adventure.locations.values():
        start = " [START]" if location.id == adventure.start_location_id else ""
        output.append(f"  • {location.name}{start}")
        output.append(f"    ID: {location.id}")
        if location.exits:
            exits = ", ".join(f"{d} → {t}" for d, t in location.exits.items())
            output.append(f"    Exits: {exits}")
        if location.characters:
            names = ", ".join(_character_label(c) for c in location.characters)
            output.append(f"    Characters: {names}")
        if location.items:
            output.append(f"    Items: {', '.join(i.name for i in location.items)}")
        output.append("")
    output.append(f"Created: {adventure.created_at:%Y-%m-%d}")
    output.append(f"Modified: {adventure.modified_at:%Y-%m-%d}")
    return output


@workspace_command
async def cmd_show_adventure(args: list[str], ctx: CommandContext) -> CommandResult:
    return CommandResult.ok(*_describe_adventure(ctx.services.workspace.require_adventure()))


@workspace_command
async def cmd_deselect_adventure(args: list[str], ctx: CommandContext) -> CommandResult:
    workspace = ctx.services.workspace
    name = workspace.require_adventure().name
    workspace.deselect_adventure()
    ctx.session.selected_adventure_id = None
    ctx.session.selected_location_id = None
    return CommandResult.ok(
        f'Deselected adventure: "{name}"',
        "",
        "You can now select a different adventure or create a new one.",
    )


@workspace_command
async def cmd_save_adventure(args: list[str], ctx: CommandContext) -> CommandResult:
    workspace = ctx.services.workspace
    try:
        report = await workspace.save_adventure()
    except InvalidAdventureError as e:
        return CommandResult(
            success=False,
            output=[f"  ✗ {error}" for error in e.report.errors],
            error=ErrorInfo(
                kind=ErrorKind.VALIDATION_FAILED,
                message="Adventure validation failed",
                suggestion="Fix the errors above, then save again.",
            ),
            style=OutputStyle.ERROR,
        )

    output = [f'Adventure "{workspace.require_adventure().name}" saved successfully!']
    if report.warnings:
        output.append("")
        output.append("Warnings:")
        output.extend(f"  ⚠ {warning}" for warning in report.warnings)
    return CommandResult.ok(*output, style=OutputStyle.SUCCESS)


@workspace_command(needs_adventure=False)
async def cmd_delete_adventure(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Adventure ID required", "delete adventure <adventure-id>")
    adventure_id = args[0]
    adventure = await ctx.services.repository.load_entity(EntityKind.ADVENTURE, adventure_id)
    if adventure is None:
        return CommandResult.fail(
            ErrorKind.NOT_FOUND,
            f"Adventure '{adventure_id}' not found",
            'Use "list adventures" to see available adventures.',
        )

    if not await ctx.interaction.prompt_confirm(f'Delete adventure "{adventure.name}" ({adventure.id})?'):
        return CommandResult.aborted("Deletion cancelled.")

    if not await ctx.services.workspace.delete_adventure(adventure_id):
        return CommandResult.fail(ErrorKind.NOT_FOUND, f"Adventure '{adventure_id}' not found")
    if ctx.session.selected_adventure_id == adventure_id:
        ctx.session.selected_adventure_id = None
        ctx.session.selected_location_id = None
    return CommandResult.ok(
        f'✓ Adventure "{adventure.name}" deleted successfully', style=OutputStyle.SUCCESS
    )


# =============================================================================
# Admin: structure
# =============================================================================


def _resolve_location(ctx: CommandContext, reference: str) -> Location:
    location = ctx.services.workspace.find_location(reference)
    if location is None:
        raise EntityNotFoundError(f"Location not found: {reference}")
    return location


@workspace_command
async def cmd_add_location(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Location name required", 'add location "<name>" "<description>"')
    if len(args) < 2:
        return _usage("Location description required", 'add location "<name>" "<description>"')
    name, description = args[0], " ".join(args[1:])
    check = validate_location_name(name)
    if not check.valid:
        return CommandResult.fail(ErrorKind.VALIDATION_FAILED, check.message)

    workspace = ctx.services.workspace
    location = workspace.add_location(name, description)
    output = [f'Added location: "{location.name}"', f"Location ID: {location.id}"]
    if workspace.require_adventure().start_location_id == location.id:
        output.append("This is the starting location.")
    return CommandResult.ok(*output, style=OutputStyle.SUCCESS)


@workspace_command
async def cmd_connect(args: list[str], ctx: CommandContext) -> CommandResult:
    if len(args) < 3:
        return CommandResult.fail(
            ErrorKind.INVALID_INPUT,
            "Three arguments required: from-id, to-id, direction",
            f"Usage: connect <from-id> <to-id> <direction>. Directions: {', '.join(VALID_DIRECTIONS)}",
        )
    source = _resolve_location(ctx, args[0])
    target = _resolve_location(ctx, args[1])
    ctx.services.workspace.connect(source.id, target.id, args[2])
    return CommandResult.ok(
        "Connected locations:",
        f"  {source.name} --{args[2].lower()}--> {target.name}",
        style=OutputStyle.SUCCESS,
    )


@workspace_command
async def cmd_remove_connection(args: list[str], ctx: CommandContext) -> CommandResult:
    if len(args) < 2:
        return CommandResult.fail(
            ErrorKind.INVALID_INPUT,
            "Two arguments required: from-location-id, direction",
            "Usage: remove connection <location-id> <direction>",
        )
    location = _resolve_location(ctx, args[0])
    ctx.services.workspace.remove_connection(location.id, args[1])
    return CommandResult.ok(
        f"Removed {args[1].lower()} exit from location {location.id}", style=OutputStyle.SUCCESS
    )


@workspace_command
async def cmd_delete_location(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Location ID required", "delete location <location-id>")
    workspace = ctx.services.workspace
    location = _resolve_location(ctx, args[0])
    if location.id == workspace.require_adventure().start_location_id:
        return CommandResult.fail(
            ErrorKind.INVALID_INPUT,
            "Cannot delete the starting location",
            "Add another location and make it the start first.",
        )

    question = (
        f'Delete location "{location.name}" ({location.id})? '
        "This will also remove all connections to this location."
    )
    if not await ctx.interaction.prompt_confirm(question):
        return CommandResult.aborted("Deletion cancelled.")

    workspace.delete_location(location.id)
    if ctx.session.selected_location_id == location.id:
        ctx.session.selected_location_id = None
    return CommandResult.ok(f'✓ Location "{location.name}" deleted', style=OutputStyle.SUCCESS)


@workspace_command
async def cmd_select_location(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Location identifier required", "select location <id|name>")
    workspace = ctx.services.workspace
    location = workspace.select_location(" ".join(args))
    ctx.session.selected_location_id = location.id
    return CommandResult.ok(*_describe_location(location, workspace.require_adventure()))


def _preview(text: str, limit: int = 50) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _describe_location(location: Location, adventure: Adventure) -> list[str]:
    output = [
        f'Selected location: "{location.name}"',
        f"ID: {location.id}",
        f"Description: {location.description}",
        "",
    ]
    if location.exits:
        output.append(f"Exits ({len(location.exits)}):")
        for direction, target_id in location.exits.items():
            target = adventure.get_location(target_id)
            output.append(f"  {direction} → {target.name if target else 'Unknown'} ({target_id})")
    else:
        output.append("Exits (0): None")
    output.append("")

    if location.characters:
        output.append(f"Characters ({len(location.characters)}):")
        for character in location.characters:
            output.append(f"  • {_character_label(character)}")
            if character.is_ai_powered and character.personality:
                output.append(f"    {_preview(character.personality)}")
            elif character.dialogue:
                output.append(f'    "{_preview(character.dialogue[0])}"')
    else:
        output.append("Characters (0): None")
    output.append("")

    if location.items:
        output.append(f"Items ({len(location.items)}):")
        output.extend(f"  • {item.name} ({item.id})" for item in location.items)
    else:
        output.append("Items (0): None")
    return output


@workspace_command
async def cmd_show_locations(args: list[str], ctx: CommandContext) -> CommandResult:
    adventure = ctx.services.workspace.require_adventure()
    output = [f'Locations in "{adventure.name}" ({len(adventure.locations)} total):', ""]
    for number, location in enumerate(adventure.locations.values(), start=1):
        start = " [START]" if location.id == adventure.start_location_id else ""
        output.append(f"{number}. {location.name}{start}")
        output.append(f"   ID: {location.id}")
        output.append(f"   Description: {location.description}")
        if location.exits:
            exits = []
            for direction, target_id in location.exits.items():
                target = adventure.get_location(target_id)
                exits.append(f"{direction} → {target.name if target else 'Unknown'}")
            output.append(f"   Exits: {', '.join(exits)}")
        else:
            output.append("   Exits: None")
        output.append("")
    return CommandResult.ok(*output)


# =============================================================================
# Admin: characters
# =============================================================================


def _character_label(character: Character) -> str:
    return f"{character.name} [AI]" if character.is_ai_powered else character.name


def _selected_scope(ctx: CommandContext) -> Location | None:
    selected = ctx.session.selected_location_id
    if selected is None:
        return None
    return ctx.services.workspace.require_adventure().get_location(selected)


@workspace_command
async def cmd_add_character(args: list[str], ctx: CommandContext) -> CommandResult:
    usage = 'add character <location-id> "<name>" "<line>" ["<line>" ...]'
    if len(args) < 2:
        return _usage("Character name required", usage)
    if len(args) < 3:
        return _usage("At least one dialogue line required", usage)
    check = validate_character_name(args[1])
    if not check.valid:
        return CommandResult.fail(ErrorKind.VALIDATION_FAILED, check.message)

    location = _resolve_location(ctx, args[0])
    character = ctx.services.workspace.add_character(location.id, args[1], args[2:])
    return CommandResult.ok(
        f'Added character: "{character.name}"',
        f"Character ID: {character.id}",
        f"Location: {location.name}",
        f"Dialogue lines: {len(character.dialogue)}",
        style=OutputStyle.SUCCESS,
    )


@workspace_command
async def cmd_create_ai_character(args: list[str], ctx: CommandContext) -> CommandResult:
    usage = 'create ai character <location-id> "<name>" "<personality>"'
    if len(args) < 2:
        return _usage("Character name required", usage)
    if len(args) < 3:
        return _usage("Personality description required", usage)
    personality = " ".join(args[2:])
    for check in (validate_character_name(args[1]), validate_personality(personality)):
        if not check.valid:
            return CommandResult.fail(ErrorKind.VALIDATION_FAILED, check.message)

    location = _resolve_location(ctx, args[0])
    character = ctx.services.workspace.add_ai_character(location.id, args[1], personality)
    return CommandResult.ok(
        f'Created AI character: "{character.name}"',
        f"Character ID: {character.id}",
        f"Location: {location.name}",
        "",
        f'Use "set ai config {character.id} temperature=<0-2> max-tokens=<1-500>" to tune replies.',
        style=OutputStyle.SUCCESS,
    )


@workspace_command
async def cmd_edit_personality(args: list[str], ctx: CommandContext) -> CommandResult:
    usage = 'edit character personality <character-id> "<personality>"'
    if not args:
        return _usage("Character ID required", usage)
    if len(args) < 2:
        return _usage("New personality description required", usage)
    personality = " ".join(args[1:])
    check = validate_personality(personality)
    if not check.valid:
        return CommandResult.fail(ErrorKind.VALIDATION_FAILED, check.message)
    character = ctx.services.workspace.update_character(args[0], personality=personality)
    return CommandResult.ok(
        f"Updated personality for character: {character.id}", SAVE_HINT, style=OutputStyle.SUCCESS
    )


@workspace_command
async def cmd_set_ai_config(args: list[str], ctx: CommandContext) -> CommandResult:
    usage = "set ai config <character-id> [temperature=<value>] [max-tokens=<value>]"
    if not args:
        return _usage("Character ID required", usage)
    if len(args) < 2:
        return _usage("At least one configuration parameter required", usage)

    temperature: float | None = None
    max_tokens: int | None = None
    for param in args[1:]:
        key, _, raw = param.partition("=")
        if key == "temperature":
            try:
                temperature = float(raw)
            except ValueError:
                return CommandResult.fail(
                    ErrorKind.INVALID_INPUT,
                    "Invalid temperature value",
                    "Temperature must be a number between 0 and 2",
                )
        elif key == "max-tokens":
            try:
                max_tokens = int(raw)
            except ValueError:
                return CommandResult.fail(
                    ErrorKind.INVALID_INPUT,
                    "Invalid max-tokens value",
                    "Max tokens must be an integer between 1 and 500",
                )
        else:
            return CommandResult.fail(
                ErrorKind.INVALID_INPUT,
                f"Unknown parameter: {param}",
                "Valid parameters: temperature=<value>, max-tokens=<value>",
            )

    character = ctx.services.workspace.update_ai_config(args[0], temperature, max_tokens)
    output = [f"Updated AI configuration for character: {character.id}"]
    if temperature is not None:
        output.append(f"  Temperature: {temperature}")
    if max_tokens is not None:
        output.append(f"  Max Tokens: {max_tokens}")
    output += ["", SAVE_HINT]
    return CommandResult.ok(*output, style=OutputStyle.SUCCESS)


@workspace_command
async def cmd_delete_character(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Character ID required", "delete character <character-id>")
    workspace = ctx.services.workspace
    _, character = workspace.find_character(args[0])
    if not await ctx.interaction.prompt_confirm(f'Delete character "{character.name}" ({character.id})?'):
        return CommandResult.aborted("Deletion cancelled.")
    workspace.delete_character(character.id)
    return CommandResult.ok(f'✓ Character "{character.name}" deleted', style=OutputStyle.SUCCESS)


@workspace_command
async def cmd_show_characters(args: list[str], ctx: CommandContext) -> CommandResult:
    adventure = ctx.services.workspace.require_adventure()
    scope = _selected_scope(ctx)
    if scope is not None:
        pairs = [(scope, c) for c in scope.characters]
        title = scope.name
    else:
        pairs = list(adventure.iter_characters())
        title = adventure.name

    output = [f'Characters in "{title}" ({len(pairs)} total):', ""]
    if not pairs:
        output.append("No characters found.")
    for location, character in pairs:
        output.append(f"• {_character_label(character)}")
        output.append(f"  ID: {character.id}")
        if scope is None:
            output.append(f"  Location: {location.name}")
        if character.is_ai_powered:
            output.append(f"  Personality: {_preview(character.personality or '')}")
        else:
            output.append(f"  Dialogue lines: {len(character.dialogue)}")
    return CommandResult.ok(*output)


# =============================================================================
# Admin: items
# =============================================================================


@workspace_command
async def cmd_create_item(args: list[str], ctx: CommandContext) -> CommandResult:
    workspace = ctx.services.workspace
    if args:
        location = _resolve_location(ctx, " ".join(args))
    else:
        location_id = ctx.session.selected_location_id or workspace.current_location_id
        if location_id is None:
            return _usage("Location required", "create item <location-id>")
        location = workspace.get_location(location_id)

    result = await ctx.interaction.run_form(new_item_form(location.name))
    if result.cancelled:
        return CommandResult.aborted(CANCELLED_MESSAGE)
    item = workspace.add_item(location.id, str(result.values["name"]), str(result.values["description"]))
    return CommandResult.ok(
        f'Created item: "{item.name}"',
        f"Item ID: {item.id}",
        f"Location: {location.name}",
        style=OutputStyle.SUCCESS,
    )


@workspace_command
async def cmd_delete_item(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Item ID required", "delete item <item-id|name>")
    workspace = ctx.services.workspace
    _, item = workspace.find_item(" ".join(args))
    if not await ctx.interaction.prompt_confirm(f'Delete item "{item.name}" ({item.id})?'):
        return CommandResult.aborted("Deletion cancelled.")
    workspace.delete_item(item.id)
    return CommandResult.ok(f'✓ Item "{item.name}" deleted', style=OutputStyle.SUCCESS)


def _item_line(item: Item) -> str:
    return f"• {item.name} ({item.id})"


@workspace_command
async def cmd_show_items(args: list[str], ctx: CommandContext) -> CommandResult:
    adventure = ctx.services.workspace.require_adventure()
    scope = _selected_scope(ctx)
    if scope is not None:
        pairs = [(scope, i) for i in scope.items]
        title = scope.name
    else:
        pairs = list(adventure.iter_items())
        title = adventure.name

    output = [f'Items in "{title}" ({len(pairs)} total):', ""]
    if not pairs:
        output.append("No items found.")
    for location, item in pairs:
        output.append(_item_line(item))
        if scope is None:
            output.append(f"  Location: {location.name}")
        output.append(f"  {_preview(item.description)}")
    return CommandResult.ok(*output)


# =============================================================================
# Admin: editing
# =============================================================================


@workspace_command
async def cmd_edit_title(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("New title required", 'edit title "<new-title>"')
    title = " ".join(args)
    ctx.services.workspace.update_title(title)
    return CommandResult.ok(f'Updated adventure title to: "{title}"', "", SAVE_HINT, style=OutputStyle.SUCCESS)


@workspace_command
async def cmd_edit_description(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("New description required", 'edit description "<new-description>"')
    description = " ".join(args)
    ctx.services.workspace.update_description(description)
    return CommandResult.ok("Updated adventure description.", "", SAVE_HINT, style=OutputStyle.SUCCESS)


async def _edit_with_form(kind: EntityKind, reference: str | None, ctx: CommandContext) -> CommandResult:
    workspace = ctx.services.workspace
    form = build_form(kind, workspace, reference)
    result = await ctx.interaction.run_form(form)
    return report_edit(workspace, form, result)


@workspace_command
async def cmd_edit_location(args: list[str], ctx: CommandContext) -> CommandResult:
    """Direct edit with a property and value, or the form with only an id."""
    usage = "edit location <location-id> [name|description <value>]"
    if not args:
        return _usage("Location ID required", usage)
    if len(args) == 1:
        return await _edit_with_form(EntityKind.LOCATION, args[0], ctx)
    if len(args) == 2:
        return CommandResult.fail(
            ErrorKind.INVALID_INPUT,
            "Three arguments required: location-id, property, value",
            f"Usage: {usage}. Or give only the id to edit interactively.",
        )

    prop, value = args[1].lower(), " ".join(args[2:])
    if prop not in ("name", "description"):
        return CommandResult.fail(
            ErrorKind.INVALID_INPUT,
            f"Invalid property: {args[1]}",
            "Valid properties: name, description",
        )
    location = _resolve_location(ctx, args[0])
    ctx.services.workspace.update_location(location.id, **{prop: value})
    return CommandResult.ok(f'Updated location {prop}: "{value}"', "", SAVE_HINT, style=OutputStyle.SUCCESS)


@workspace_command
async def cmd_edit_character(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Character ID required", "edit character <character-id>")
    return await _edit_with_form(EntityKind.CHARACTER, args[0], ctx)


@workspace_command
async def cmd_edit_item(args: list[str], ctx: CommandContext) -> CommandResult:
    if not args:
        return _usage("Item ID required", "edit item <item-id|name>")
    return await _edit_with_form(EntityKind.ITEM, " ".join(args), ctx)


@workspace_command
async def cmd_edit_adventure(args: list[str], ctx: CommandContext) -> CommandResult:
    return await _edit_with_form(EntityKind.ADVENTURE, args[0] if args else None, ctx)


# =============================================================================
# Registration
# =============================================================================

_LOCATION = CompletionSlot(SlotKind.LOCATION)
_CHARACTER = CompletionSlot(SlotKind.CHARACTER)
_ITEM = CompletionSlot(SlotKind.ITEM)


def default_commands() -> list[Command]:
    """The full command set, in help order."""
    both, player, admin = CommandScope.BOTH, CommandScope.PLAYER, CommandScope.ADMIN
    commands = [
        Command(
            name="help",
            aliases=["?", "man"],
            description="Show available commands or a command's manual page",
            handler=cmd_help,
            syntax="help [command]",
            examples=["help", "help move", "man edit location"],
            mode=both,
        ),
        Command(
            name="clear",
            aliases=["cls"],
            description="Clear the screen",
            handler=cmd_clear,
            syntax="clear",
            mode=both,
        ),
        Command(
            name="history",
            aliases=[],
            description="Show previously entered commands",
            handler=cmd_history,
            syntax="history",
            details="Lists recent commands, oldest first. Use the Up and Down keys to recall them.",
            mode=both,
        ),
        Command(
            name="map",
            aliases=["m"],
            description="Display a map of visited locations (player) or the whole adventure (admin)",
            handler=cmd_map,
            syntax="map",
            details=(
                "In player mode, draws the locations you have visited; [@] marks where you are.\n"
                "In admin mode, lists every location of the selected adventure as a tree; "
                "[*] marks the selected location."
            ),
            see_also=["look", "show locations"],
            mode=both,
        ),
        Command(
            name="exit",
            aliases=["quit", "q"],
            description="Exit the game or admin mode",
            handler=cmd_exit,
            syntax="exit",
            details=(
                "In player mode, asks for confirmation and ends the game.\n"
                "In admin mode, returns to player mode without exiting the game."
            ),
            mode=both,
        ),
        # Player
        Command(
            name="adventures",
            aliases=[],
            description="List all available adventures",
            handler=cmd_adventures,
            syntax="adventures",
            see_also=["load"],
            mode=player,
        ),
        Command(
            name="load",
            aliases=["play"],
            description="Load and play an adventure",
            handler=cmd_load,
            syntax="load <adventure-id>",
            examples=["load demo-adventure", "play my-adventure"],
            see_also=["adventures", "look"],
            mode=player,
        ),
        Command(
            name="look",
            aliases=["l", "examine"],
            description="Look around the current location",
            handler=cmd_look,
            syntax="look",
            mode=player,
        ),
        Command(
            name="move",
            aliases=["go"],
            description="Move in a direction",
            handler=cmd_move,
            syntax="move <direction>",
            examples=["move north", "go east", "n"],
            details=(
                "Moves through an exit of the current location.\n"
                f"Directions: {', '.join(VALID_DIRECTIONS)}.\n"
                "Shortcuts: n, s, e, w, u, d."
            ),
            see_also=["look"],
            mode=player,
        ),
        *(
            Command(
                name=direction,
                aliases=[short],
                description=f"Move {direction}",
                handler=_shortcut(direction),
                syntax=short,
                see_also=["move"],
                mode=player,
            )
            for direction, short in SHORTCUTS.items()
        ),
        Command(
            name="talk",
            aliases=["speak", "t"],
            description="Talk to a character",
            handler=cmd_talk,
            syntax="talk [character-name]",
            examples=["talk", 'talk "Old Sage"'],
            see_also=["chat"],
            mode=player,
        ),
        Command(
            name="chat",
            aliases=["talk-ai", "converse"],
            description="Start a conversation with an AI-powered character",
            handler=cmd_chat,
            syntax="chat [character-name]",
            examples=["chat", 'chat "Wise Owl"'],
            details=(
                "Every line you type is sent to the character until you type\n"
                '"exit" or "quit".'
            ),
            see_also=["talk"],
            mode=player,
        ),
        Command(
            name="sudo",
            aliases=[],
            description="Enter admin mode",
            handler=cmd_sudo,
            syntax="sudo",
            details="Prompts for the admin password. The password is never shown or recorded.",
            mode=player,
        ),
        # Admin: adventure lifecycle
        Command(
            name="create adventure",
            aliases=["create", "create-adventure"],
            description="Create a new adventure",
            handler=cmd_create_adventure,
            syntax='create adventure "<name>" ["<description>"]',
            examples=['create adventure "The Lost Temple" "Ruins deep in the jungle."'],
            see_also=["add location", "save adventure"],
            mode=admin,
        ),
        Command(
            name="list adventures",
            aliases=["list", "ls", "list-adventures"],
            description="List all adventures",
            handler=cmd_list_adventures,
            syntax="list adventures",
            mode=admin,
        ),
        Command(
            name="select adventure",
            aliases=["select", "select-adventure"],
            description="Select an adventure for editing",
            handler=cmd_select_adventure,
            syntax="select adventure <adventure-id>",
            examples=["select adventure demo-adventure"],
            see_also=["show adventure", "deselect adventure"],
            mode=admin,
        ),
        Command(
            name="show adventure",
            aliases=["show", "view-adventure", "show-adventure"],
            description="Display current adventure details",
            handler=cmd_show_adventure,
            syntax="show adventure",
            mode=admin,
        ),
        Command(
            name="deselect adventure",
            aliases=["deselect", "deselect-adventure"],
            description="Deselect current adventure",
            handler=cmd_deselect_adventure,
            syntax="deselect adventure",
            mode=admin,
        ),
        Command(
            name="save adventure",
            aliases=["save", "save-adventure"],
            description="Validate and save the current adventure",
            handler=cmd_save_adventure,
            syntax="save adventure",
            details="Saving is refused while the adventure has validation errors. Warnings are listed.",
            mode=admin,
        ),
        Command(
            name="delete adventure",
            aliases=["delete-adventure"],
            description="Delete an adventure (asks for confirmation)",
            handler=cmd_delete_adventure,
            syntax="delete adventure <adventure-id>",
            mode=admin,
        ),
        # Admin: structure
        Command(
            name="add location",
            aliases=["addloc", "add-location"],
            description="Add a location to the current adventure",
            handler=cmd_add_location,
            syntax='add location "<name>" "<description>"',
            examples=['add location "Temple Entrance" "Vines cover a crumbling doorway."'],
            details="The first location added becomes the starting location.",
            see_also=["connect", "edit location"],
            mode=admin,
        ),
        Command(
            name="connect",
            aliases=["link"],
            description="Connect two locations with a one-way exit",
            handler=cmd_connect,
            syntax="connect <from-id> <to-id> <direction>",
            examples=["connect temple-entrance temple-hall north"],
            details=f"Directions: {', '.join(VALID_DIRECTIONS)}.",
            see_also=["remove connection"],
            mode=admin,
            slot=CompletionSlot(SlotKind.LOCATION, arg_indexes=(0, 1)),
        ),
        Command(
            name="remove connection",
            aliases=["remove-exit", "remove-connection"],
            description="Remove an exit from a location",
            handler=cmd_remove_connection,
            syntax="remove connection <location-id> <direction>",
            mode=admin,
            slot=_LOCATION,
        ),
        Command(
            name="delete location",
            aliases=["del-location", "delete-location"],
            description="Delete a location and every exit into it",
            handler=cmd_delete_location,
            syntax="delete location <location-id>",
            details="The starting location cannot be deleted.",
            mode=admin,
            slot=_LOCATION,
        ),
        Command(
            name="select location",
            aliases=["select-location"],
            description="Select a location to view details and set context",
            handler=cmd_select_location,
            syntax="select location <id|name>",
            details='"show characters" and "show items" are filtered by the selected location.',
            mode=admin,
            slot=_LOCATION,
        ),
        Command(
            name="show locations",
            aliases=["show-locations"],
            description="Display all locations in the selected adventure",
            handler=cmd_show_locations,
            syntax="show locations",
            mode=admin,
        ),
        # Admin: characters
        Command(
            name="add character",
            aliases=["addchar", "add-character"],
            description="Add a scripted character to a location",
            handler=cmd_add_character,
            syntax='add character <location-id> "<name>" "<line>" ["<line>" ...]',
            examples=['add character temple-hall "Guard" "Halt!" "Move along."'],
            mode=admin,
            slot=_LOCATION,
        ),
        Command(
            name="create ai character",
            aliases=["create-ai-npc", "create-ai-character"],
            description="Create an AI-powered character",
            handler=cmd_create_ai_character,
            syntax='create ai character <location-id> "<name>" "<personality>"',
            examples=['create ai character temple-hall "Sage" "A patient, cryptic scholar."'],
            see_also=["set ai config", "edit character personality"],
            mode=admin,
            slot=_LOCATION,
        ),
        Command(
            name="edit character personality",
            aliases=["edit-personality", "edit-character-personality"],
            description="Change an AI character's personality",
            handler=cmd_edit_personality,
            syntax='edit character personality <character-id> "<personality>"',
            mode=admin,
            slot=_CHARACTER,
        ),
        Command(
            name="set ai config",
            aliases=["config-ai", "set-ai-config"],
            description="Tune an AI character's replies",
            handler=cmd_set_ai_config,
            syntax="set ai config <character-id> [temperature=<0-2>] [max-tokens=<1-500>]",
            examples=["set ai config sage temperature=0.9 max-tokens=200"],
            mode=admin,
            slot=_CHARACTER,
        ),
        Command(
            name="edit character",
            aliases=["edit-character"],
            description="Edit a character interactively",
            handler=cmd_edit_character,
            syntax="edit character <character-id>",
            mode=admin,
            slot=_CHARACTER,
        ),
        Command(
            name="delete character",
            aliases=["del-character", "delete-character"],
            description="Delete a character (asks for confirmation)",
            handler=cmd_delete_character,
            syntax="delete character <character-id>",
            mode=admin,
            slot=_CHARACTER,
        ),
        Command(
            name="show characters",
            aliases=["show-characters"],
            description="Display characters (filtered by selected location)",
            handler=cmd_show_characters,
            syntax="show characters",
            mode=admin,
        ),
        # Admin: items
        Command(
            name="create item",
            aliases=["create-item"],
            description="Create an item interactively",
            handler=cmd_create_item,
            syntax="create item [location-id]",
            details="Uses the selected location when none is given.",
            mode=admin,
            slot=_LOCATION,
        ),
        Command(
            name="edit item",
            aliases=["edit-item"],
            description="Edit an item interactively",
            handler=cmd_edit_item,
            syntax="edit item <item-id|name>",
            mode=admin,
            slot=_ITEM,
        ),
        Command(
            name="delete item",
            aliases=["del-item", "delete-item"],
            description="Delete an item (asks for confirmation)",
            handler=cmd_delete_item,
            syntax="delete item <item-id|name>",
            mode=admin,
            slot=_ITEM,
        ),
        Command(
            name="show items",
            aliases=["show-items"],
            description="Display items (filtered by selected location)",
            handler=cmd_show_items,
            syntax="show items",
            mode=admin,
        ),
        # Admin: editing
        Command(
            name="edit title",
            aliases=["edit-title"],
            description="Edit the title of the current adventure",
            handler=cmd_edit_title,
            syntax='edit title "<new-title>"',
            mode=admin,
        ),
        Command(
            name="edit description",
            aliases=["edit-description"],
            description="Edit the description of the current adventure",
            handler=cmd_edit_description,
            syntax='edit description "<new-description>"',
            mode=admin,
        ),
        Command(
            name="edit location",
            aliases=["edit-location"],
            description="Edit a location directly or interactively",
            handler=cmd_edit_location,
            syntax="edit location <location-id> [name|description <value>]",
            examples=[
                'edit location temple-entrance name "Temple Gate"',
                "edit location temple-entrance",
            ],
            details="With only an id, opens an interactive form for every field.",
            mode=admin,
            slot=_LOCATION,
        ),
        Command(
            name="edit adventure",
            aliases=["edit-adventure"],
            description="Edit the current adventure interactively",
            handler=cmd_edit_adventure,
            syntax="edit adventure",
            mode=admin,
        ),
    ]
    return commands


def register_default_commands(registry: CommandRegistry) -> CommandRegistry:
    for command in default_commands():
        registry.register(command)
    return registry
