"""Pick a terminal backend from environment signals."""

from __future__ import annotations

import os
from typing import BinaryIO, Mapping

from .capability import AnsiTerminal, DumbTerminal, ITerm2Terminal, Terminal

COLOUR_MODES = ("auto", "yes", "no")


def _is_tty(stream: BinaryIO) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError):
        return False


def detect_terminal(stream: BinaryIO, environ: Mapping[str, str] | None = None) -> Terminal:
    """Detect the richest backend the attached terminal understands."""
    env = os.environ if environ is None else environ
    if not _is_tty(stream):
        return DumbTerminal(stream)
    if env.get("TERM_PROGRAM") == "iTerm.app":
        return ITerm2Terminal(stream)
    term = env.get("TERM", "")
    if term and term != "dumb":
        return AnsiTerminal(stream)
    return DumbTerminal(stream)


def select_terminal(
    colour: str,
    stream: BinaryIO,
    environ: Mapping[str, str] | None = None,
) -> Terminal:
    if colour not in COLOUR_MODES:
        raise ValueError(f"Unknown colour mode: {colour}")
    if colour == "no":
        return DumbTerminal(stream)
    detected = detect_terminal(stream, environ)
    if colour == "yes" and not detected.supports_styles():
        return AnsiTerminal(stream)
    return detected
