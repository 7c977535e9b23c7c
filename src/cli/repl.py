"""
Interactive shell for Terminal Adventure.

Wires the line editor (prompt_toolkit) and the console (rich) to the
session dispatcher. The shell owns keystrokes only: Enter submits a line,
Tab asks for completion, Up/Down recall history, Ctrl-C interrupts.
Everything else lives in the dispatcher.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal

from prompt_toolkit import PromptSession
from prompt_toolkit.application import run_in_terminal
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from rich.console import Console

from src.cli.commands import register_default_commands
from src.cli.display import Display, RichDisplay
from src.cli.history import HistorySignal
from src.cli.registry import CommandRegistry
from src.cli.session import CHAT_EXIT_WORDS, InChat, Services, SessionDispatcher
from src.content.demo_adventure import create_demo_adventure
from src.db.interfaces import AdventureRepository
from src.db.memory import InMemoryAdventureRepository
from src.db.rest import RestAdventureRepository
from src.engine.game import GameEngine
from src.engine.models import OutputStyle, ShellConfig
from src.services.admin import AdministrationService
from src.services.auth import AuthService
from src.services.llm import ChatClient, create_llm_service

logger = logging.getLogger(__name__)


def create_repository(config: ShellConfig) -> AdventureRepository:
    """REST backend when a URL is configured, otherwise in-memory with the demo adventure."""
    if config.api_base_url:
        logger.info("Using adventure API at %s", config.api_base_url)
        return RestAdventureRepository(config.api_base_url)
    logger.info("Using in-memory adventure storage")
    return InMemoryAdventureRepository([create_demo_adventure()])


def create_dispatcher(
    config: ShellConfig,
    display: Display,
    *,
    repository: AdventureRepository | None = None,
    chat: ChatClient | None = None,
) -> SessionDispatcher:
    """
    Assemble a dispatcher with every collaborator.

    Args:
        config: Shell configuration
        display: Output surface
        repository: Storage backend (built from config when omitted)
        chat: Chat service (built from config when omitted)
    """
    repository = repository or create_repository(config)
    if chat is None:
        chat = create_llm_service(config.llm_provider, timeout=config.chat_timeout_seconds)

    services = Services(
        engine=GameEngine(repository),
        workspace=AdministrationService(repository),
        auth=AuthService(
            password=config.admin_password,
            timeout_minutes=config.session_timeout_minutes,
        ),
        repository=repository,
        chat=chat,
        config=config,
    )
    registry = register_default_commands(CommandRegistry())
    return SessionDispatcher(registry, services, display)


class GameShell:
    """
    Interactive shell for playing and editing adventures.

    Handles keystrokes and the prompt; lines go to the dispatcher.
    """

    def __init__(self, dispatcher: SessionDispatcher, console: Console | None = None) -> None:
        self.dispatcher = dispatcher
        self.console = console or Console(highlight=False)
        self.session: PromptSession[str] = PromptSession(
            key_bindings=self._key_bindings(),
            is_password=Condition(lambda: self.dispatcher.masked),
        )

    def _key_bindings(self) -> KeyBindings:
        """Tab, Up and Down are routed to the dispatcher."""
        kb = KeyBindings()
        dispatcher = self.dispatcher
        recall_enabled = Condition(lambda: not dispatcher.masked)

        @kb.add("tab")
        def _complete(event) -> None:
            buf = event.current_buffer
            result = dispatcher.request_tab_completion(buf.text, buf.cursor_position)
            if result.completion is not None:
                buf.text = result.apply(buf.text)
                buf.cursor_position = len(buf.text)
            elif result.candidates:
                candidates = "  ".join(result.candidates)

                def show() -> None:
                    self.console.print(candidates, style="dim")

                run_in_terminal(show)

        @kb.add("up", filter=recall_enabled)
        def _history_up(event) -> None:
            recalled = dispatcher.request_history("up")
            if isinstance(recalled, str):
                buf = event.current_buffer
                buf.text = recalled
                buf.cursor_position = len(recalled)

        @kb.add("down", filter=recall_enabled)
        def _history_down(event) -> None:
            recalled = dispatcher.request_history("down")
            buf = event.current_buffer
            if recalled == HistorySignal.CLEAR:
                buf.reset()
            elif isinstance(recalled, str):
                buf.text = recalled
                buf.cursor_position = len(recalled)

        return kb

    def _print_banner(self) -> None:
        """Print the game banner."""
        banner = r"""
  _____                   _             _
 |_   _|__ _ __ _ __ ___ (_)_ __   __ _| |
   | |/ _ \ '__| '_ ` _ \| | '_ \ / _` | |
   | |  __/ |  | | | | | | | | | | (_| | |
   |_|\___|_|  |_| |_| |_|_|_| |_|\__,_|_|

        A D V E N T U R E
"""
        self.console.print(banner, style="bold cyan", highlight=False)
        self.console.print('Type "help" for commands, or "adventures" to begin.\n')

    async def _submit(self, line: str) -> None:
        state = self.dispatcher.state
        chatting = (
            isinstance(state, InChat)
            and not self.dispatcher.awaiter.pending
            and line.strip()
            and line.strip().lower() not in CHAT_EXIT_WORDS
        )
        if chatting:
            # The line editor is not reading keys here, so Ctrl-C arrives as SIGINT
            loop = asyncio.get_running_loop()
            previous = signal.getsignal(signal.SIGINT)
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(
                    signal.SIGINT, lambda: loop.create_task(self.dispatcher.interrupt())
                )
            try:
                with self.console.status(f"{state.npc_name} is thinking..."):
                    await self.dispatcher.submit_line(line)
            finally:
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(signal.SIGINT)
                    signal.signal(signal.SIGINT, previous)
        else:
            await self.dispatcher.submit_line(line)

    async def run(self) -> None:
        """Run the interactive shell."""
        self._print_banner()
        session = self.dispatcher.session

        while session.running:
            try:
                line = await self.session.prompt_async(self.dispatcher.prompt)
            except KeyboardInterrupt:
                # Aborts a prompt or chat; at the command prompt it only clears the line
                await self.dispatcher.interrupt()
                continue
            except EOFError:
                self.console.print()
                self.console.print("Thanks for playing!")
                break

            await self._submit(line)

        repository = self.dispatcher.services.repository
        if isinstance(repository, RestAdventureRepository):
            await repository.close()


def configure_logging(level: str = "WARNING", log_file: str | None = None) -> None:
    """Send logs to a file so they never interleave with the shell."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        filename=log_file or os.devnull,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_game(
    config: ShellConfig | None = None,
    *,
    mock_llm: bool = False,
) -> None:
    """
    Run the Terminal Adventure shell.

    Args:
        config: Shell configuration (read from the environment when omitted)
        mock_llm: Use the canned-response chat provider instead of a real model
    """
    config = config or ShellConfig.from_env()
    if mock_llm:
        config = config.model_copy(update={"llm_provider": "mock"})

    console = Console(highlight=False)
    display = RichDisplay(console)
    chat = create_llm_service(config.llm_provider, timeout=config.chat_timeout_seconds)
    if not chat.is_available:
        logger.warning("LLM provider %s is not configured", config.llm_provider)
        display.write_line(
            "AI chat is unavailable: set LLM_API_KEY or run a local model server.",
            OutputStyle.DIM,
        )
    dispatcher = create_dispatcher(config, display, chat=chat)
    asyncio.run(GameShell(dispatcher, console).run())


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Terminal Adventure")
    parser.add_argument("--api-url", help="Adventure API base URL (in-memory when omitted)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.getenv("LOG_LEVEL", "WARNING"),
        help="Logging level",
    )
    parser.add_argument("--log-file", help="Write logs to this file")
    parser.add_argument(
        "--mock-llm",
        action="store_true",
        help="Use canned chat replies instead of an LLM",
    )

    args = parser.parse_args()
    configure_logging(args.log_level, args.log_file)

    shell_config = ShellConfig.from_env()
    if args.api_url:
        shell_config = shell_config.model_copy(update={"api_base_url": args.api_url})
    run_game(shell_config, mock_llm=args.mock_llm)
