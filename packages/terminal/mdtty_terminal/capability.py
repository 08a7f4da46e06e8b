"""Terminal sink abstraction for plain, ANSI and iTerm2 output."""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from typing import BinaryIO

from .errors import WriteError
from .models import FOREGROUND_CODES, StyleInstruction, StyleKind, TerminalCapabilities

ESC = b"\x1b"
BEL = b"\x07"
ST = b"\x1b\\"

_SGR_CODES: dict[StyleKind, int] = {
    StyleKind.DEFAULT_FOREGROUND: 39,
    StyleKind.BOLD: 1,
    StyleKind.ITALIC: 3,
    StyleKind.UNDERLINE: 4,
    StyleKind.STRIKETHROUGH: 9,
    StyleKind.RESET: 0,
}


def sgr(instruction: StyleInstruction) -> bytes:
    """Return the SGR control sequence for ``instruction``."""
    if instruction.kind == StyleKind.FOREGROUND:
        code = FOREGROUND_CODES[instruction.colour]
    else:
        code = _SGR_CODES[instruction.kind]
    return ESC + f"[{code}m".encode("ascii")


class Terminal(ABC):
    """Output sink with a fixed set of capabilities.

    The renderer queries ``capabilities`` once and never branches on the
    backend type; unsupported operations are no-ops except inline images,
    which the renderer only requests when ``capabilities.images`` is set.
    """

    name = "Terminal"
    capabilities = TerminalCapabilities()

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def supports_styles(self) -> bool:
        return self.capabilities.styles

    def write(self, data: bytes) -> None:
        try:
            self.stream.write(data)
        except (OSError, ValueError) as exc:
            raise WriteError(f"Failed to write to {self.name} terminal: {exc}") from exc

    def write_text(self, text: str) -> None:
        self.write(text.encode("utf-8"))

    def flush(self) -> None:
        try:
            self.stream.flush()
        except (OSError, ValueError) as exc:
            raise WriteError(f"Failed to flush {self.name} terminal: {exc}") from exc

    @abstractmethod
    def set_style(self, instruction: StyleInstruction) -> None:
        raise NotImplementedError

    def set_link(self, url: str) -> None:
        pass

    def clear_link(self) -> None:
        pass

    def set_mark(self) -> None:
        pass

    def write_inline_image(self, data: bytes, name: str, columns: int) -> None:
        raise NotImplementedError(f"{self.name} terminal cannot show inline images")


class DumbTerminal(Terminal):
    """Plain text passthrough without any control sequences."""

    name = "Dumb"
    capabilities = TerminalCapabilities()

    def set_style(self, instruction: StyleInstruction) -> None:
        pass


class AnsiTerminal(Terminal):
    """Terminal understanding the basic SGR style sequences."""

    name = "ANSI"
    capabilities = TerminalCapabilities(styles=True)

    def set_style(self, instruction: StyleInstruction) -> None:
        self.write(sgr(instruction))


class ITerm2Terminal(AnsiTerminal):
    """iTerm2: OSC 8 links, jump marks and inline images on top of ANSI styles."""

    name = "iTerm2"
    capabilities = TerminalCapabilities(styles=True, links=True, marks=True, images=True)

    def set_link(self, url: str) -> None:
        self.write(ESC + b"]8;;" + url.encode("utf-8") + ST)

    def clear_link(self) -> None:
        self.write(ESC + b"]8;;" + ST)

    def set_mark(self) -> None:
        self.write(ESC + b"]1337;SetMark" + BEL)

    def write_inline_image(self, data: bytes, name: str, columns: int) -> None:
        encoded_name = base64.b64encode(name.encode("utf-8")).decode("ascii")
        header = f"]1337;File=name={encoded_name};size={len(data)};width={max(columns, 1)};inline=1:"
        self.write(ESC + header.encode("ascii") + base64.b64encode(data) + BEL)
