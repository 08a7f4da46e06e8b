"""Typed models for terminal styles, capabilities and geometry."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from enum import Enum


class AnsiColour(str, Enum):
    BLACK = "Black"
    RED = "Red"
    GREEN = "Green"
    YELLOW = "Yellow"
    BLUE = "Blue"
    MAGENTA = "Magenta"
    CYAN = "Cyan"
    WHITE = "White"
    LIGHT_BLACK = "LightBlack"
    LIGHT_RED = "LightRed"
    LIGHT_GREEN = "LightGreen"
    LIGHT_YELLOW = "LightYellow"
    LIGHT_BLUE = "LightBlue"
    LIGHT_MAGENTA = "LightMagenta"
    LIGHT_CYAN = "LightCyan"
    LIGHT_WHITE = "LightWhite"
    DEFAULT = "Default"


# SGR foreground codes; light colours use the aixterm 90-97 range.
FOREGROUND_CODES: dict[AnsiColour, int] = {
    AnsiColour.BLACK: 30,
    AnsiColour.RED: 31,
    AnsiColour.GREEN: 32,
    AnsiColour.YELLOW: 33,
    AnsiColour.BLUE: 34,
    AnsiColour.MAGENTA: 35,
    AnsiColour.CYAN: 36,
    AnsiColour.WHITE: 37,
    AnsiColour.LIGHT_BLACK: 90,
    AnsiColour.LIGHT_RED: 91,
    AnsiColour.LIGHT_GREEN: 92,
    AnsiColour.LIGHT_YELLOW: 93,
    AnsiColour.LIGHT_BLUE: 94,
    AnsiColour.LIGHT_MAGENTA: 95,
    AnsiColour.LIGHT_CYAN: 96,
    AnsiColour.LIGHT_WHITE: 97,
    AnsiColour.DEFAULT: 39,
}


class StyleKind(str, Enum):
    FOREGROUND = "Foreground"
    DEFAULT_FOREGROUND = "DefaultForeground"
    BOLD = "Bold"
    ITALIC = "Italic"
    UNDERLINE = "Underline"
    STRIKETHROUGH = "Strikethrough"
    RESET = "Reset"


@dataclass(frozen=True)
class StyleInstruction:
    kind: StyleKind
    colour: AnsiColour | None = None

    def __post_init__(self) -> None:
        if (self.kind == StyleKind.FOREGROUND) != (self.colour is not None):
            raise ValueError("Only Foreground instructions carry a colour")

    def __str__(self) -> str:
        if self.colour is not None:
            return f"{self.kind.value}({self.colour.value})"
        return self.kind.value


def foreground(colour: AnsiColour) -> StyleInstruction:
    if colour == AnsiColour.DEFAULT:
        return DEFAULT_FOREGROUND
    return StyleInstruction(StyleKind.FOREGROUND, colour)


DEFAULT_FOREGROUND = StyleInstruction(StyleKind.DEFAULT_FOREGROUND)
BOLD = StyleInstruction(StyleKind.BOLD)
ITALIC = StyleInstruction(StyleKind.ITALIC)
UNDERLINE = StyleInstruction(StyleKind.UNDERLINE)
STRIKETHROUGH = StyleInstruction(StyleKind.STRIKETHROUGH)
RESET = StyleInstruction(StyleKind.RESET)


@dataclass(frozen=True)
class TerminalCapabilities:
    styles: bool = False
    links: bool = False
    marks: bool = False
    images: bool = False


@dataclass(frozen=True)
class TerminalSize:
    width: int = 80
    height: int = 24

    @classmethod
    def detect(cls) -> TerminalSize:
        size = shutil.get_terminal_size(fallback=(cls.width, cls.height))
        if size.columns < 1 or size.lines < 1:
            return cls()
        return cls(width=size.columns, height=size.lines)
