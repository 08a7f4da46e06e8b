"""Solarized RGB to 8-colour ANSI quantization.

Highlighting themes speak 24-bit colour, but a terminal's own palette is the
only thing guaranteed to look right on both light and dark backgrounds.  We
assume Solarized: its accent colours map cleanly onto the eight ANSI accents,
so they are translated one to one.  The "base" tones swap roles between
light and dark Solarized, so all of them become the terminal's default
foreground.  Background colours are never looked at.

The mapping is an exact table.  An unknown colour means the highlighter was
configured with a theme we cannot translate, and ``quantize`` raises instead
of guessing.
"""

from __future__ import annotations

from dataclasses import dataclass

from mdtty_terminal.models import (
    BOLD,
    ITALIC,
    UNDERLINE,
    AnsiColour,
    StyleInstruction,
    foreground,
)

from .errors import QuantizationError
from .models import FontStyle

RGB = tuple[int, int, int]

SOLARIZED_PALETTE: dict[RGB, AnsiColour] = {
    # base03, base02, base01, base00, base0, base1, base2, base3
    (0x00, 0x2B, 0x36): AnsiColour.DEFAULT,
    (0x07, 0x36, 0x42): AnsiColour.DEFAULT,
    (0x58, 0x6E, 0x75): AnsiColour.DEFAULT,
    (0x65, 0x7B, 0x83): AnsiColour.DEFAULT,
    (0x83, 0x94, 0x96): AnsiColour.DEFAULT,
    (0x93, 0xA1, 0xA1): AnsiColour.DEFAULT,
    (0xEE, 0xE8, 0xD5): AnsiColour.DEFAULT,
    (0xFD, 0xF6, 0xE3): AnsiColour.DEFAULT,
    (0xB5, 0x89, 0x00): AnsiColour.YELLOW,
    (0xCB, 0x4B, 0x16): AnsiColour.LIGHT_RED,  # orange
    (0xDC, 0x32, 0x2F): AnsiColour.RED,
    (0xD3, 0x36, 0x82): AnsiColour.MAGENTA,
    (0x6C, 0x71, 0xC4): AnsiColour.LIGHT_MAGENTA,  # violet
    (0x26, 0x8B, 0xD2): AnsiColour.BLUE,
    (0x2A, 0xA1, 0x98): AnsiColour.CYAN,
    (0x85, 0x99, 0x00): AnsiColour.GREEN,
}


@dataclass(frozen=True)
class QuantizedStyle:
    colour: AnsiColour
    font: FontStyle = FontStyle.NONE


def quantize(rgb: RGB, font_style: FontStyle = FontStyle.NONE) -> QuantizedStyle:
    try:
        colour = SOLARIZED_PALETTE[tuple(rgb)]
    except KeyError:
        raise QuantizationError(tuple(rgb)) from None
    return QuantizedStyle(colour=colour, font=FontStyle(font_style))


def style_instructions(style: QuantizedStyle) -> list[StyleInstruction]:
    instructions = [foreground(style.colour)]
    if style.font & FontStyle.BOLD:
        instructions.append(BOLD)
    if style.font & FontStyle.ITALIC:
        instructions.append(ITALIC)
    if style.font & FontStyle.UNDERLINE:
        instructions.append(UNDERLINE)
    return instructions


def parse_hex_colour(value: str) -> RGB:
    cleaned = value.lstrip("#")
    if len(cleaned) != 6:
        raise ValueError(f"Expected a #rrggbb colour, got {value!r}")
    return (int(cleaned[0:2], 16), int(cleaned[2:4], 16), int(cleaned[4:6], 16))
