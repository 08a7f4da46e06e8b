"""Typed renderer models: semantic events, resource policy and highlight regions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Union


class BlockKind(str, Enum):
    PARAGRAPH = "Paragraph"
    HEADING = "Heading"
    BLOCK_QUOTE = "BlockQuote"
    CODE_BLOCK = "CodeBlock"
    LIST = "List"
    ITEM = "Item"
    HTML_BLOCK = "HtmlBlock"


class InlineKind(str, Enum):
    EMPHASIS = "Emphasis"
    STRONG = "Strong"
    STRIKETHROUGH = "Strikethrough"


class ResourceAccess(str, Enum):
    LOCAL_ONLY = "LocalOnly"
    REMOTE_ALLOWED = "RemoteAllowed"


class FontStyle(IntFlag):
    NONE = 0
    BOLD = 1
    ITALIC = 2
    UNDERLINE = 4


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    level: int = 0
    language: str = ""
    start: int | None = None

    @property
    def ordered(self) -> bool:
        return self.kind == BlockKind.LIST and self.start is not None

    def __str__(self) -> str:
        if self.kind == BlockKind.HEADING:
            return f"Heading{self.level}"
        if self.kind == BlockKind.CODE_BLOCK and self.language:
            return f"CodeBlock({self.language})"
        if self.kind == BlockKind.LIST and self.start is not None:
            return f"List({self.start})"
        return self.kind.value


def paragraph() -> Block:
    return Block(BlockKind.PARAGRAPH)


def heading(level: int) -> Block:
    if not 1 <= level <= 6:
        raise ValueError("Heading level must be between 1 and 6")
    return Block(BlockKind.HEADING, level=level)


def block_quote() -> Block:
    return Block(BlockKind.BLOCK_QUOTE)


def code_block(language: str = "") -> Block:
    return Block(BlockKind.CODE_BLOCK, language=language)


def bullet_list() -> Block:
    return Block(BlockKind.LIST)


def ordered_list(start: int = 1) -> Block:
    return Block(BlockKind.LIST, start=start)


def item() -> Block:
    return Block(BlockKind.ITEM)


def html_block() -> Block:
    return Block(BlockKind.HTML_BLOCK)


@dataclass(frozen=True)
class StartBlock:
    block: Block


@dataclass(frozen=True)
class EndBlock:
    block: Block


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Code:
    text: str


@dataclass(frozen=True)
class StartInline:
    kind: InlineKind


@dataclass(frozen=True)
class EndInline:
    kind: InlineKind


@dataclass(frozen=True)
class LinkStart:
    url: str


@dataclass(frozen=True)
class LinkEnd:
    pass


@dataclass(frozen=True)
class Image:
    url: str
    alt: str = ""


@dataclass(frozen=True)
class Rule:
    pass


@dataclass(frozen=True)
class SoftBreak:
    pass


@dataclass(frozen=True)
class HardBreak:
    pass


SemanticEvent = Union[
    StartBlock,
    EndBlock,
    Text,
    Code,
    StartInline,
    EndInline,
    LinkStart,
    LinkEnd,
    Image,
    Rule,
    SoftBreak,
    HardBreak,
]


@dataclass(frozen=True)
class PendingLinkReference:
    index: int
    url: str


@dataclass(frozen=True)
class HighlightRegion:
    rgb: tuple[int, int, int]
    font_style: FontStyle
    text: str
