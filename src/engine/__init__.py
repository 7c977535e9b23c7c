"""
Core Engine for Terminal Adventure.

The engine holds the player's side of the game:
- Adventure loading and progress tracking
- Movement, look, and scripted dialogue
- Result and error types shared with the command layer
"""

from __future__ import annotations

from src.engine.game import GameEngine
from src.engine.models import (
    CommandResult,
    ErrorInfo,
    ErrorKind,
    OutputStyle,
    ParsedCommand,
    ShellConfig,
)

__all__ = [
    # Engine
    "GameEngine",
    # Models
    "CommandResult",
    "ErrorInfo",
    "ErrorKind",
    "OutputStyle",
    "ParsedCommand",
    "ShellConfig",
]
