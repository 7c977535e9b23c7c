"""
Help pages generated from the command registry.
"""

from __future__ import annotations

from src.cli.registry import Command, CommandRegistry
from src.models import GameMode


def command_list(registry: CommandRegistry, mode: GameMode) -> list[str]:
    """The `help` overview: every command available in a mode, aligned."""
    commands = sorted(registry.available(mode), key=lambda c: c.name)
    if not commands:
        return ["No commands available."]

    width = max(len(c.name) for c in commands) + 2
    lines = [f"Available Commands ({mode.value} mode):", ""]
    for command in commands:
        aliases = f" ({', '.join(command.aliases)})" if command.aliases else ""
        lines.append(f"  {command.name.ljust(width)}{command.description}{aliases}")
    lines.append("")
    lines.append('Type "help <command>" for detailed information about a specific command.')
    return lines


def man_page(command: Command) -> list[str]:
    """Man-page style help for one command."""
    lines = ["NAME", f"    {command.name} - {command.description}", ""]
    lines += ["SYNOPSIS", f"    {command.syntax or command.name}", ""]

    lines.append("DESCRIPTION")
    for line in (command.details or command.description).splitlines():
        lines.append(f"    {line}" if line else "")
    if command.aliases:
        lines.append(f"    Aliases: {', '.join(command.aliases)}")
    lines.append("")

    if command.examples:
        lines.append("EXAMPLES")
        lines.extend(f"    {example}" for example in command.examples)
        lines.append("")

    if command.see_also:
        lines += ["SEE ALSO", f"    {', '.join(command.see_also)}", ""]
    return lines


def find_help_topic(registry: CommandRegistry, words: list[str], mode: GameMode) -> Command | None:
    """Resolve `help <command words>` against the commands of a mode."""
    topic = " ".join(words).lower()
    return registry.resolve(topic, mode)
