"""
Session dispatcher for the terminal shell.

Owns the session context and the active sub-session, routes every
submitted line (to a pending prompt, to a chat, or to the parser), and
renders command results to the display.

Handlers run as asyncio tasks. A handler that prompts for input suspends
on the LineAwaiter; `submit_line` returns to the shell as soon as the
handler either finishes or parks on a prompt, and the next submitted line
resumes it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

from src.cli.autocomplete import EMPTY, AutocompleteResolver, AutocompleteResult
from src.cli.display import Display
from src.cli.forms import TERMINATOR, FormEngine, FormResult, FormSession
from src.cli.history import CommandHistory, HistorySignal
from src.cli.interaction import LineAwaiter, PromptCancelled, is_affirmative
from src.cli.registry import CommandRegistry, SlotKind
from src.db.interfaces import AdventureRepository
from src.engine.game import GameEngine
from src.engine.models import CommandResult, ErrorKind, OutputStyle, ShellConfig
from src.models import Character, CommandScope, ConversationTurn, GameMode, Location, SessionContext
from src.services.admin import AdministrationService
from src.services.auth import Authenticator
from src.services.llm import (
    ChatBadRequestError,
    ChatClient,
    ChatNotFoundError,
    ChatTimeoutError,
    ChatUnavailableError,
)
from src.services.validators import Value

logger = logging.getLogger(__name__)

CHAT_EXIT_WORDS = ("exit", "quit")

# (kind, message, suggestion) for each chat failure class
_CHAT_ERRORS: dict[type[Exception], tuple[ErrorKind, str, str]] = {
    ChatUnavailableError: (
        ErrorKind.SERVICE_UNAVAILABLE,
        "Unable to connect to AI service",
        "Please ensure the AI service is running and try again.",
    ),
    ChatTimeoutError: (
        ErrorKind.TIMEOUT,
        "The AI is taking too long to respond",
        "Please try sending your message again. If the problem persists, try a shorter message.",
    ),
    ChatNotFoundError: (
        ErrorKind.NOT_FOUND,
        "Character not found",
        'The character may have been removed. Try using the "look" command.',
    ),
    ChatBadRequestError: (
        ErrorKind.INVALID_INPUT,
        "Invalid request",
        "Please try again with a different message.",
    ),
}


# --- Sub-sessions ---


@dataclass
class Idle:
    """Input lines are parsed as commands."""


@dataclass
class AwaitingPassword:
    prompt: str


@dataclass
class AwaitingConfirmation:
    question: str
    on_result: Callable[[bool], None] | None = None


@dataclass
class InChat:
    """Input lines are messages to an AI-powered character."""

    npc_id: str
    npc_name: str
    location_id: str
    history: list[ConversationTurn] = field(default_factory=list)


@dataclass
class InForm:
    form: FormSession
    field_index: int = 0
    collected_values: dict[str, Value] = field(default_factory=dict)


SubSession = Idle | AwaitingPassword | AwaitingConfirmation | InChat | InForm


# --- Handler context ---


@dataclass
class Services:
    """Collaborators shared by every command handler."""

    engine: GameEngine
    workspace: AdministrationService
    auth: Authenticator
    repository: AdventureRepository
    chat: ChatClient | None = None
    config: ShellConfig = field(default_factory=ShellConfig)


@dataclass
class CommandContext:
    """Everything a handler receives besides its arguments."""

    session: SessionContext
    services: Services
    interaction: Interaction
    registry: CommandRegistry
    history: CommandHistory


class Interaction:
    """
    Prompt facade handed to handlers.

    Every interactive input goes through here, so the dispatcher always
    knows which sub-session a suspended handler is in.
    """

    def __init__(self, dispatcher: SessionDispatcher) -> None:
        self._dispatcher = dispatcher

    def write_line(self, text: str, style: OutputStyle = OutputStyle.NORMAL) -> None:
        self._dispatcher.display.write_line(text, style)

    def clear(self) -> None:
        self._dispatcher.display.clear()

    async def prompt_line(self, prompt: str = "> ", *, masked: bool = False) -> str:
        """Suspend until the next submitted line. Raises PromptCancelled on interrupt."""
        return await self._dispatcher.awaiter.read_line(prompt, masked=masked)

    async def prompt_secret(self, prompt: str) -> str:
        """Read a masked line (never recorded in history)."""
        self._dispatcher.enter(AwaitingPassword(prompt=prompt))
        try:
            return await self.prompt_line(prompt, masked=True)
        finally:
            self._dispatcher.enter(Idle())

    async def prompt_confirm(
        self, question: str, on_result: Callable[[bool], None] | None = None
    ) -> bool:
        """Ask a yes/no question; only "y" or "yes" count as yes."""
        self._dispatcher.enter(AwaitingConfirmation(question=question, on_result=on_result))
        try:
            answer = await self.prompt_line(f"{question} (y/n): ")
        finally:
            self._dispatcher.enter(Idle())
        confirmed = is_affirmative(answer)
        if on_result is not None:
            on_result(confirmed)
        return confirmed

    async def prompt_multi_line(self, prompt: str = "... ") -> list[str]:
        """Read lines until a line reading END."""
        lines: list[str] = []
        while True:
            line = await self.prompt_line(prompt)
            if line == TERMINATOR:
                return lines
            lines.append(line)

    async def run_form(self, form: FormSession) -> FormResult:
        """Run a form to completion; cancellation comes back as a cancelled result."""
        state = InForm(form=form)

        def track(index: int, values: dict[str, Value]) -> None:
            state.field_index = index
            state.collected_values = values

        self._dispatcher.enter(state)
        try:
            return await FormEngine(self, on_progress=track).run(form)
        finally:
            self._dispatcher.enter(Idle())

    def start_chat(self, npc: Character, location: Location) -> None:
        """Switch the session into a conversation with an AI-powered character."""
        self._dispatcher.enter(
            InChat(npc_id=npc.id, npc_name=npc.name, location_id=location.id)
        )
        logger.info("Chat started with %s", npc.id)


# --- Dispatcher ---


class SessionDispatcher:
    """
    State machine between the shell and the command handlers.

    Args:
        registry: Commands available to the session
        services: Collaborators handed to handlers
        display: Where output goes
    """

    def __init__(
        self,
        registry: CommandRegistry,
        services: Services,
        display: Display,
    ) -> None:
        config = services.config
        self.registry = registry
        self.services = services
        self.display = display
        self.session = SessionContext()
        self.history = CommandHistory(
            config.history_capacity,
            collapse_duplicates=config.history_collapse_duplicates,
        )
        self.awaiter = LineAwaiter()
        self.interaction = Interaction(self)
        self.context = CommandContext(
            session=self.session,
            services=services,
            interaction=self.interaction,
            registry=registry,
            history=self.history,
        )
        self.autocomplete = AutocompleteResolver(registry, self._candidates)
        self._state: SubSession = Idle()
        self._task: asyncio.Task | None = None

    # =========================================================================
    # Observable state
    # =========================================================================

    @property
    def state(self) -> SubSession:
        return self._state

    @property
    def busy(self) -> bool:
        """A handler is running and not waiting for input."""
        return self._task is not None and not self._task.done() and not self.awaiter.pending

    @property
    def prompt(self) -> str:
        if self.awaiter.pending:
            return self.awaiter.prompt
        if isinstance(self._state, InChat):
            return f"[{self._state.npc_name}] > "
        return "# " if self.session.mode == GameMode.ADMIN else "$ "

    @property
    def masked(self) -> bool:
        return self.awaiter.pending and self.awaiter.masked

    def enter(self, state: SubSession) -> None:
        """Switch sub-session; the history cursor starts over."""
        logger.debug("Sub-session %s -> %s", type(self._state).__name__, type(state).__name__)
        self._state = state
        self.history.reset_cursor()

    # =========================================================================
    # Input
    # =========================================================================

    async def submit_line(self, text: str) -> None:
        """Process one line of input."""
        if self.awaiter.pending:
            self.awaiter.feed(text)
            await self._drive()
            return

        if self.busy:
            self.display.write_line("Please wait for the current command to finish.", OutputStyle.INFO)
            return

        if isinstance(self._state, InChat):
            if text.strip().lower() in CHAT_EXIT_WORDS:
                self.end_chat()
                return
            if not text.strip():
                return
            self._task = asyncio.create_task(self._send_chat(self._state, text))
            await self._drive()
            return

        if not text.strip():
            return
        self._task = asyncio.create_task(self._execute(text))
        await self._drive()

    async def interrupt(self) -> None:
        """Abort the active sub-session. A no-op while idle."""
        if self.awaiter.cancel():
            logger.debug("Pending prompt cancelled")
            await self._drive()
            return
        if isinstance(self._state, InChat):
            self.end_chat()
            if self._task is not None and not self._task.done():
                logger.debug("Cancelling pending chat reply")
                self._task.cancel()

    def request_tab_completion(self, text: str, cursor: int) -> AutocompleteResult:
        if self.awaiter.pending or not isinstance(self._state, Idle):
            return EMPTY
        return self.autocomplete.resolve(text, cursor, self.session.mode)

    def request_history(self, direction: Literal["up", "down"]) -> str | HistorySignal | None:
        """Recall history while idle. Up returns None when there is nothing to recall."""
        if self.awaiter.pending or not isinstance(self._state, Idle):
            return None
        if direction == "up":
            return self.history.navigate_up()
        return self.history.navigate_down()

    async def _drive(self) -> None:
        """Run the current task until it finishes or parks on a prompt."""
        task = self._task
        if task is None:
            return
        parked = asyncio.create_task(self.awaiter.parked.wait())
        try:
            await asyncio.wait({task, parked}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            parked.cancel()
        if task.done():
            self._task = None
            if not task.cancelled():
                task.result()

    # =========================================================================
    # Commands
    # =========================================================================

    async def _execute(self, line: str) -> None:
        parsed = self.registry.parse(line)
        if not parsed.is_valid:
            self.render(self._unknown_command(parsed.command, parsed.error))
            return

        command = self.registry.resolve(parsed.command, self.session.mode)
        if command is None:
            self.render(self._wrong_mode(parsed.command))
            return

        if command.mode == CommandScope.ADMIN and not await self._admin_session_valid():
            return

        logger.debug("Dispatching %s %s", command.name, parsed.args)
        try:
            result = await command.handler(parsed.args, self.context)
        except PromptCancelled:
            logger.debug("Command %s interrupted", command.name)
            return
        except Exception:
            logger.exception("Command %s failed", command.name)
            result = CommandResult.fail(ErrorKind.INTERNAL, "An unexpected error occurred")
        finally:
            if not isinstance(self._state, InChat):
                self.enter(Idle())

        self.render(result)
        if result.success:
            self.history.record(line)

    def _unknown_command(self, typed: str, error: str | None) -> CommandResult:
        if not typed:
            return CommandResult.fail(ErrorKind.INVALID_INPUT, error or "Empty command")
        suggestions = self.registry.suggest(typed, self.session.mode)
        hint = (
            f"Did you mean: {', '.join(suggestions)}?"
            if suggestions
            else 'Type "help" to see available commands'
        )
        return CommandResult.fail(ErrorKind.INVALID_INPUT, error or f"Unknown command: {typed}", hint)

    def _wrong_mode(self, name: str) -> CommandResult:
        mode = self.session.mode
        hint = (
            'Use "sudo" to enter admin mode'
            if mode == GameMode.PLAYER
            else 'Use "exit" to return to player mode'
        )
        return CommandResult.fail(
            ErrorKind.UNAUTHORIZED,
            f'Command "{name}" is not available in {mode.value} mode',
            hint,
        )

    async def _admin_session_valid(self) -> bool:
        token = self.session.session_token
        if token and await self.services.auth.validate_session(token):
            return True
        logger.info("Admin session expired")
        self.session.drop_privileges()
        self.services.repository.session_token = None
        self.render(
            CommandResult.fail(
                ErrorKind.UNAUTHORIZED,
                "Session expired",
                'Use "sudo" to authenticate again',
            )
        )
        return False

    # =========================================================================
    # Chat
    # =========================================================================

    def end_chat(self) -> None:
        state = self._state
        if not isinstance(state, InChat):
            return
        self.enter(Idle())
        logger.info("Chat ended with %s after %d turns", state.npc_id, len(state.history))
        self.display.write_line(f"You ended your conversation with {state.npc_name}.", OutputStyle.INFO)
        self.display.write_line("You can now use regular commands again.", OutputStyle.INFO)

    async def _send_chat(self, chat: InChat, message: str) -> None:
        engine = self.services.engine
        found = engine.find_character(chat.npc_id)
        client = self.services.chat
        try:
            if found is None:
                raise ChatNotFoundError(f"Character not found: {chat.npc_id}")
            if client is None:
                raise ChatUnavailableError("No chat service configured")
            location, npc = found
            reply = await client.generate_reply(npc, message, list(chat.history), location)
        except (ChatUnavailableError, ChatTimeoutError, ChatNotFoundError, ChatBadRequestError) as e:
            logger.warning("Chat with %s failed: %s", chat.npc_id, e)
            kind, text, hint = next(v for cls, v in _CHAT_ERRORS.items() if isinstance(e, cls))
            self.render(CommandResult.fail(kind, text, hint))
            return
        except Exception:
            logger.exception("Chat with %s failed", chat.npc_id)
            self.render(
                CommandResult.fail(
                    ErrorKind.INTERNAL,
                    "Failed to send message",
                    "An unexpected error occurred. Please try again.",
                )
            )
            return

        if self._state is not chat:
            logger.debug("Discarding reply from %s: chat already ended", chat.npc_id)
            return
        chat.history.append(ConversationTurn(role="user", content=message))
        chat.history.append(ConversationTurn(role="assistant", content=reply))
        self.display.write_line(f"{chat.npc_name}: {reply}", OutputStyle.DIALOGUE)

    # =========================================================================
    # Output
    # =========================================================================

    def render(self, result: CommandResult) -> None:
        """Write a result's lines, then its error and suggestion."""
        for line in result.output:
            self.display.write_line(line, result.style)
        if result.error is not None:
            self.display.write_line(f"Error: {result.error.message}", OutputStyle.ERROR)
            if result.error.suggestion:
                self.display.write_line(result.error.suggestion, OutputStyle.INFO)

    def _candidates(self, kind: SlotKind) -> list[tuple[str, str]]:
        workspace = self.services.workspace
        if kind == SlotKind.LOCATION:
            return [(loc.id, loc.name) for loc in workspace.locations()]
        if kind == SlotKind.CHARACTER:
            return [(c.id, c.name) for c in workspace.characters()]
        return [(i.id, i.name) for i in workspace.items()]
