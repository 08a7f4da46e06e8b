"""Per-render mutable context: style stack, open contexts, layout containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from mdtty_terminal.models import RESET, StyleInstruction

from .errors import StructuralInconsistency
from .models import Block, BlockKind, InlineKind, PendingLinkReference

QUOTE_MARKER = "│ "
BULLET_MARKER = "• "


class StyleStack:
    """Style frames indexed by nesting depth.

    Terminals cannot un-apply a single attribute, so closing a frame resets
    everything and re-emits the frames that are still open.
    """

    def __init__(self) -> None:
        self._frames: list[tuple[StyleInstruction, ...]] = []

    @property
    def depth(self) -> int:
        return len(self._frames)

    def active(self) -> list[StyleInstruction]:
        return [instruction for frame in self._frames for instruction in frame]

    def push(self, *instructions: StyleInstruction) -> list[StyleInstruction]:
        self._frames.append(tuple(instructions))
        return list(instructions)

    def pop(self) -> list[StyleInstruction]:
        if not self._frames:
            raise StructuralInconsistency("Style stack underflow")
        self._frames.pop()
        return [RESET, *self.active()]


@dataclass
class ListContext:
    ordered: bool
    counter: int = 1
    indent: int = 0


@dataclass
class Container:
    marker: str
    indent: str
    quote: bool = False
    marker_written: bool = False


@dataclass
class LinkContext:
    url: str
    text: list[str] = field(default_factory=list)

    @property
    def is_autolink(self) -> bool:
        label = "".join(self.text)
        return label == self.url or f"mailto:{label}" == self.url


@dataclass(frozen=True)
class LinkMarker:
    def __str__(self) -> str:
        return "Link"


LINK = LinkMarker()

OpenContext = Union[Block, InlineKind, LinkMarker]


def _describe(context: OpenContext) -> str:
    if isinstance(context, InlineKind):
        return context.value
    return str(context)


@dataclass
class RenderState:
    columns: int = 80
    styles: StyleStack = field(default_factory=StyleStack)
    open_contexts: list[OpenContext] = field(default_factory=list)
    containers: list[Container] = field(default_factory=list)
    lists: list[ListContext] = field(default_factory=list)
    links: list[LinkContext] = field(default_factory=list)
    pending_links: list[PendingLinkReference] = field(default_factory=list)
    next_link_index: int = 1
    # Start as if a blank line was just written so documents do not open with one.
    trailing_newlines: int = 2

    @property
    def at_line_start(self) -> bool:
        return self.trailing_newlines > 0

    def open(self, context: OpenContext) -> None:
        self.open_contexts.append(context)

    def close(self, context: OpenContext) -> OpenContext:
        if not self.open_contexts:
            raise StructuralInconsistency(f"End of {_describe(context)} without a matching start")
        top = self.open_contexts[-1]
        if top != context:
            raise StructuralInconsistency(
                f"End of {_describe(context)} while {_describe(top)} is still open"
            )
        return self.open_contexts.pop()

    def innermost_block(self) -> Block | None:
        for context in reversed(self.open_contexts):
            if isinstance(context, Block):
                return context
        return None

    def inside(self, kind: BlockKind) -> bool:
        return any(isinstance(c, Block) and c.kind == kind for c in self.open_contexts)

    def unclosed(self) -> list[str]:
        return [_describe(context) for context in self.open_contexts]

    def line_prefix(self) -> str:
        parts: list[str] = []
        for container in self.containers:
            if container.marker_written:
                parts.append(container.indent)
            else:
                parts.append(container.marker)
                container.marker_written = True
        return "".join(parts)

    def blank_line_prefix(self) -> str:
        return "".join(container.indent for container in self.containers).rstrip()

    def prefix_width(self) -> int:
        return sum(len(container.indent) for container in self.containers)

    def push_quote(self) -> None:
        self.containers.append(Container(marker=QUOTE_MARKER, indent=QUOTE_MARKER, quote=True))

    def push_item(self) -> None:
        if not self.lists:
            raise StructuralInconsistency("List item outside of a list")
        current = self.lists[-1]
        if current.ordered:
            marker = f"{current.counter}. "
            current.counter += 1
        else:
            marker = BULLET_MARKER
        current.indent = len(marker)
        self.containers.append(Container(marker=marker, indent=" " * len(marker)))

    def add_link_reference(self, url: str) -> int:
        index = self.next_link_index
        self.next_link_index += 1
        self.pending_links.append(PendingLinkReference(index=index, url=url))
        return index

    def take_link_references(self) -> list[PendingLinkReference]:
        pending, self.pending_links = self.pending_links, []
        return pending
