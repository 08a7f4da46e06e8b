"""Pygments highlighting pass producing RGB regions for the quantizer."""

from __future__ import annotations

from typing import Protocol

from pygments import lex
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.token import Token
from pygments.util import ClassNotFound

from .models import FontStyle, HighlightRegion
from .quantize import parse_hex_colour

SOLARIZED_STYLES = ("solarized-dark", "solarized-light")


class Highlighter(Protocol):
    def highlight(self, code: str, language: str) -> list[HighlightRegion] | None:
        """Split ``code`` into styled regions, or return None for unknown languages."""
        ...


class PygmentsHighlighter:
    """Highlight code with a Solarized Pygments style."""

    def __init__(self, style_name: str = "solarized-dark") -> None:
        self.style = get_style_by_name(style_name)
        self._default_colour = self.style.style_for_token(Token)["color"]

    def _token_style(self, ttype) -> tuple[tuple[int, int, int], FontStyle]:
        while not self.style.styles_token(ttype) and ttype.parent is not None:
            ttype = ttype.parent
        token_style = self.style.style_for_token(ttype)
        font = FontStyle.NONE
        if token_style["bold"]:
            font |= FontStyle.BOLD
        if token_style["italic"]:
            font |= FontStyle.ITALIC
        if token_style["underline"]:
            font |= FontStyle.UNDERLINE
        return parse_hex_colour(token_style["color"] or self._default_colour), font

    def highlight(self, code: str, language: str) -> list[HighlightRegion] | None:
        if not language:
            return None
        try:
            lexer = get_lexer_by_name(language, stripnl=False, ensurenl=False)
        except ClassNotFound:
            return None

        regions: list[HighlightRegion] = []
        for ttype, value in lex(code, lexer):
            if not value:
                continue
            rgb, font = self._token_style(ttype)
            if regions and regions[-1].rgb == rgb and regions[-1].font_style == font:
                last = regions.pop()
                regions.append(HighlightRegion(rgb=rgb, font_style=font, text=last.text + value))
            else:
                regions.append(HighlightRegion(rgb=rgb, font_style=font, text=value))
        return regions
