"""Event-driven renderer writing semantic document events to a terminal."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable
from urllib.parse import unquote, urlparse

from mdtty_terminal.capability import Terminal
from mdtty_terminal.models import (
    BOLD,
    ITALIC,
    RESET,
    STRIKETHROUGH,
    AnsiColour,
    StyleInstruction,
    foreground,
)

from .errors import ResourceError, StructuralInconsistency
from .highlighting import Highlighter
from .models import (
    BlockKind,
    Code,
    EndBlock,
    EndInline,
    HardBreak,
    Image,
    InlineKind,
    LinkEnd,
    LinkStart,
    ResourceAccess,
    Rule,
    SemanticEvent,
    SoftBreak,
    StartBlock,
    StartInline,
    Text,
)
from .quantize import quantize, style_instructions
from .resources import Fetcher, is_local, load_resource, prepare_image, resolve_url
from .state import LINK, LinkContext, ListContext, RenderState

logger = logging.getLogger("mdtty.renderer")

RULE_CHAR = "─"

CODE_STYLE = foreground(AnsiColour.YELLOW)
LINK_STYLE = foreground(AnsiColour.BLUE)
BORDER_STYLE = foreground(AnsiColour.GREEN)
HTML_STYLE = foreground(AnsiColour.GREEN)

BLOCK_STYLES: dict[BlockKind, tuple[StyleInstruction, ...]] = {
    BlockKind.HEADING: (BOLD,),
    BlockKind.BLOCK_QUOTE: (ITALIC,),
}

INLINE_STYLES: dict[InlineKind, tuple[StyleInstruction, ...]] = {
    InlineKind.EMPHASIS: (ITALIC,),
    InlineKind.STRONG: (BOLD,),
    InlineKind.STRIKETHROUGH: (STRIKETHROUGH,),
}


class RenderEngine:
    """Single pass over a semantic event stream.

    Terminal capabilities are read once here; the event loop only asks the
    terminal to do things and lets the backend decide what they look like.
    Each ``run`` call owns a fresh ``RenderState``.
    """

    def __init__(
        self,
        terminal: Terminal,
        columns: int = 80,
        base_dir: Path | str = ".",
        resource_access: ResourceAccess = ResourceAccess.REMOTE_ALLOWED,
        highlighter: Highlighter | None = None,
        fetch: Fetcher | None = None,
    ) -> None:
        if columns < 1:
            raise ValueError("Column width must be positive")
        self.terminal = terminal
        self.columns = columns
        self.base_dir = Path(base_dir)
        self.resource_access = resource_access
        self.highlighter = highlighter
        self.fetch = fetch
        self.capabilities = terminal.capabilities
        self._highlight_code = self.capabilities.styles and highlighter is not None
        self._handlers = {
            StartBlock: self._start_block,
            EndBlock: self._end_block,
            Text: self._text,
            Code: self._code,
            StartInline: self._start_inline,
            EndInline: self._end_inline,
            LinkStart: self._link_start,
            LinkEnd: self._link_end,
            Image: self._image,
            Rule: self._rule,
            SoftBreak: self._line_break,
            HardBreak: self._line_break,
        }

    def run(self, events: Iterable[SemanticEvent]) -> None:
        state = RenderState(columns=self.columns)
        for event in events:
            handler = self._handlers.get(type(event))
            if handler is None:
                raise TypeError(f"Unsupported event: {event!r}")
            handler(state, event)

        unclosed = state.unclosed()
        if unclosed:
            raise StructuralInconsistency(f"Unclosed at end of document: {', '.join(unclosed)}")
        self._flush_link_references(state)
        self.terminal.flush()

    # Output primitives

    def _apply(self, instructions: list[StyleInstruction]) -> None:
        for instruction in instructions:
            self.terminal.set_style(instruction)

    def _write_prefix(self, state: RenderState, prefix: str) -> None:
        # Markers and indentation never carry the styles of the text around them.
        active = state.styles.active()
        if active:
            self.terminal.set_style(RESET)
        self.terminal.write_text(prefix)
        self._apply(active)

    def _begin_line(self, state: RenderState) -> None:
        if state.at_line_start:
            prefix = state.line_prefix()
            if prefix:
                self._write_prefix(state, prefix)
            state.trailing_newlines = 0

    def _newline(self, state: RenderState) -> None:
        self.terminal.write(b"\n")
        state.trailing_newlines += 1

    def _ensure_newline(self, state: RenderState) -> None:
        if not state.at_line_start:
            self._newline(state)

    def _ensure_blank_line(self, state: RenderState) -> None:
        self._ensure_newline(state)
        if state.trailing_newlines < 2:
            prefix = state.blank_line_prefix()
            if prefix:
                self._write_prefix(state, prefix)
            self._newline(state)

    def _write(self, state: RenderState, text: str) -> None:
        for index, line in enumerate(text.split("\n")):
            if index:
                self._newline(state)
            if line:
                self._begin_line(state)
                self.terminal.write_text(line)
        if state.links:
            state.links[-1].text.append(text)

    def _write_styled(self, state: RenderState, text: str, *instructions: StyleInstruction) -> None:
        if text and not text.startswith("\n"):
            self._begin_line(state)
        self._apply(state.styles.push(*instructions))
        self._write(state, text)
        self._apply(state.styles.pop())

    def _border(self, state: RenderState) -> None:
        width = max(state.columns - state.prefix_width(), 1)
        self._write_styled(state, RULE_CHAR * width, BORDER_STYLE)
        self._newline(state)

    # Blocks

    def _start_block(self, state: RenderState, event: StartBlock) -> None:
        block = event.block
        self._ensure_newline(state)
        state.open(block)

        if block.kind == BlockKind.LIST:
            counter = block.start if block.start is not None else 1
            state.lists.append(ListContext(ordered=block.ordered, counter=counter))
        elif block.kind == BlockKind.ITEM:
            state.push_item()
        elif block.kind == BlockKind.BLOCK_QUOTE:
            state.push_quote()
        elif block.kind == BlockKind.HEADING and self.capabilities.marks:
            self.terminal.set_mark()
        elif block.kind == BlockKind.CODE_BLOCK:
            self._border(state)

        self._apply(state.styles.push(*BLOCK_STYLES.get(block.kind, ())))

    def _end_block(self, state: RenderState, event: EndBlock) -> None:
        block = state.close(event.block)
        kind = block.kind

        if kind == BlockKind.CODE_BLOCK:
            self._ensure_newline(state)
            self._border(state)
        self._apply(state.styles.pop())

        if kind == BlockKind.ITEM:
            state.containers.pop()
            self._ensure_newline(state)
        elif kind == BlockKind.LIST:
            state.lists.pop()
            self._ensure_newline(state)
            if not state.inside(BlockKind.ITEM):
                self._ensure_blank_line(state)
        elif kind == BlockKind.BLOCK_QUOTE:
            state.containers.pop()
            self._ensure_blank_line(state)
        else:
            self._ensure_blank_line(state)

        if not state.open_contexts:
            self._flush_link_references(state)

    def _rule(self, state: RenderState, _event: Rule) -> None:
        self._ensure_newline(state)
        self._border(state)
        self._ensure_blank_line(state)

    # Inline content

    def _text(self, state: RenderState, event: Text) -> None:
        block = state.innermost_block()
        if block is not None and block.kind == BlockKind.CODE_BLOCK:
            self._code_block_text(state, event.text, block.language)
        elif block is not None and block.kind == BlockKind.HTML_BLOCK:
            self._write_styled(state, event.text, HTML_STYLE)
        else:
            self._write(state, event.text)

    def _code_block_text(self, state: RenderState, text: str, language: str) -> None:
        regions = None
        if self._highlight_code and language:
            regions = self.highlighter.highlight(text, language)
        if regions is None:
            self._write_styled(state, text, CODE_STYLE)
            return
        for region in regions:
            style = quantize(region.rgb, region.font_style)
            self._write_styled(state, region.text, *style_instructions(style))

    def _code(self, state: RenderState, event: Code) -> None:
        self._write_styled(state, event.text, CODE_STYLE)

    def _start_inline(self, state: RenderState, event: StartInline) -> None:
        state.open(event.kind)
        self._apply(state.styles.push(*INLINE_STYLES[event.kind]))

    def _end_inline(self, state: RenderState, event: EndInline) -> None:
        state.close(event.kind)
        self._apply(state.styles.pop())

    def _line_break(self, state: RenderState, _event: SoftBreak | HardBreak) -> None:
        self._newline(state)

    # Links and images

    def _link_target(self, url: str) -> str:
        if url.startswith("#") or urlparse(url).scheme:
            return url
        return resolve_url(url, self.base_dir)

    def _link_start(self, state: RenderState, event: LinkStart) -> None:
        state.open(LINK)
        state.links.append(LinkContext(url=event.url))
        if self.capabilities.links:
            self.terminal.set_link(self._link_target(event.url))
        self._apply(state.styles.push(LINK_STYLE))

    def _link_end(self, state: RenderState, _event: LinkEnd) -> None:
        state.close(LINK)
        link = state.links.pop()
        self._apply(state.styles.pop())
        if self.capabilities.links:
            self.terminal.clear_link()
        elif not link.is_autolink:
            index = state.add_link_reference(link.url)
            self._write(state, f"[{index}]")

    def _flush_link_references(self, state: RenderState) -> None:
        references = state.take_link_references()
        if not references:
            return
        self._ensure_newline(state)
        for reference in references:
            self._write_styled(state, f"[{reference.index}]: {reference.url}", LINK_STYLE)
            self._newline(state)
        self._ensure_blank_line(state)

    def _image(self, state: RenderState, event: Image) -> None:
        url = resolve_url(event.url, self.base_dir)
        if not is_local(url) and self.resource_access == ResourceAccess.LOCAL_ONLY:
            logger.warning(
                f"remote image {event.url} skipped, only local resources are allowed",
                extra={"event": "resource_denied"},
            )
            self._write(state, event.alt)
            return

        if not self.capabilities.images:
            self._link_start(state, LinkStart(event.url))
            self._write(state, event.alt)
            self._link_end(state, LinkEnd())
            return

        try:
            data = prepare_image(load_resource(url, self.resource_access, self.fetch))
        except ResourceError as exc:
            logger.warning(f"image {event.url} not shown: {exc}", extra={"event": "resource_failed"})
            self._write(state, event.alt)
            return

        self._begin_line(state)
        name = Path(unquote(urlparse(url).path)).name or "image"
        width = max(state.columns - state.prefix_width(), 1)
        self.terminal.write_inline_image(data, name, width)


def render(
    events: Iterable[SemanticEvent],
    terminal: Terminal,
    base_dir: Path | str = ".",
    resource_access: ResourceAccess = ResourceAccess.REMOTE_ALLOWED,
    columns: int = 80,
    highlighter: Highlighter | None = None,
    fetch: Fetcher | None = None,
) -> None:
    """Render ``events`` to ``terminal``; raises ``RenderError`` on failure."""
    engine = RenderEngine(
        terminal,
        columns=columns,
        base_dir=base_dir,
        resource_access=resource_access,
        highlighter=highlighter,
        fetch=fetch,
    )
    engine.run(events)
