"""Terminal backends for styled and plain document output."""

from .capability import AnsiTerminal, DumbTerminal, ITerm2Terminal, Terminal
from .detect import COLOUR_MODES, detect_terminal, select_terminal
from .errors import RenderError, WriteError
from .models import (
    BOLD,
    DEFAULT_FOREGROUND,
    ITALIC,
    RESET,
    STRIKETHROUGH,
    UNDERLINE,
    AnsiColour,
    StyleInstruction,
    StyleKind,
    TerminalCapabilities,
    TerminalSize,
    foreground,
)

__all__ = [
    "AnsiColour",
    "AnsiTerminal",
    "BOLD",
    "COLOUR_MODES",
    "DEFAULT_FOREGROUND",
    "DumbTerminal",
    "ITALIC",
    "ITerm2Terminal",
    "RESET",
    "RenderError",
    "STRIKETHROUGH",
    "StyleInstruction",
    "StyleKind",
    "Terminal",
    "TerminalCapabilities",
    "TerminalSize",
    "UNDERLINE",
    "WriteError",
    "detect_terminal",
    "foreground",
    "select_terminal",
]
