"""Turn markdown-it-py tokens into semantic render events."""

from __future__ import annotations

from typing import Iterable, Iterator

from markdown_it import MarkdownIt
from markdown_it.token import Token

from . import models
from .models import (
    Code,
    EndBlock,
    EndInline,
    HardBreak,
    Image,
    InlineKind,
    LinkEnd,
    LinkStart,
    Rule,
    SemanticEvent,
    SoftBreak,
    StartBlock,
    StartInline,
    Text,
)

_INLINE_KINDS = {
    "em": InlineKind.EMPHASIS,
    "strong": InlineKind.STRONG,
    "s": InlineKind.STRIKETHROUGH,
}


def build_parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable("strikethrough")


def _language(info: str) -> str:
    parts = info.strip().split()
    return parts[0] if parts else ""


def _block_for(token: Token) -> models.Block | None:
    base = token.type.rsplit("_", 1)[0]
    if base == "paragraph":
        return models.paragraph()
    if base == "heading":
        return models.heading(int(token.tag[1:]))
    if base == "blockquote":
        return models.block_quote()
    if base == "bullet_list":
        return models.bullet_list()
    if base == "ordered_list":
        start = token.attrGet("start") if token.nesting == 1 else None
        return models.ordered_list(int(start) if start is not None else 1)
    if base == "list_item":
        return models.item()
    return None


def _inline_events(children: Iterable[Token]) -> Iterator[SemanticEvent]:
    for child in children:
        kind = child.type
        if kind == "text":
            if child.content:
                yield Text(child.content)
        elif kind == "code_inline":
            yield Code(child.content)
        elif kind == "softbreak":
            yield SoftBreak()
        elif kind == "hardbreak":
            yield HardBreak()
        elif kind == "link_open":
            yield LinkStart(str(child.attrGet("href") or ""))
        elif kind == "link_close":
            yield LinkEnd()
        elif kind == "image":
            yield Image(url=str(child.attrGet("src") or ""), alt=child.content)
        elif kind == "html_inline":
            yield Text(child.content)
        elif kind.endswith("_open") and kind[: -len("_open")] in _INLINE_KINDS:
            yield StartInline(_INLINE_KINDS[kind[: -len("_open")]])
        elif kind.endswith("_close") and kind[: -len("_close")] in _INLINE_KINDS:
            yield EndInline(_INLINE_KINDS[kind[: -len("_close")]])


def events_from_tokens(tokens: Iterable[Token]) -> Iterator[SemanticEvent]:
    # Closing list tokens carry no start attribute, so remember the opened block.
    opened: list[models.Block] = []
    for token in tokens:
        if token.type in ("fence", "code_block"):
            block = models.code_block(_language(token.info))
            yield StartBlock(block)
            yield Text(token.content)
            yield EndBlock(block)
        elif token.type == "html_block":
            block = models.html_block()
            yield StartBlock(block)
            yield Text(token.content)
            yield EndBlock(block)
        elif token.type == "hr":
            yield Rule()
        elif token.type == "inline":
            yield from _inline_events(token.children or [])
        elif token.hidden:
            # Paragraphs of tight lists.
            continue
        else:
            block = _block_for(token)
            if block is None:
                continue
            if token.nesting == 1:
                opened.append(block)
                yield StartBlock(block)
            elif token.nesting == -1:
                yield EndBlock(opened.pop())


def parse_markdown(text: str, parser: MarkdownIt | None = None) -> Iterator[SemanticEvent]:
    """Parse ``text`` and yield events in document order."""
    md = parser or build_parser()
    yield from events_from_tokens(md.parse(text))
