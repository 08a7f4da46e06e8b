"""Introspection helpers listing semantic events without rendering them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, TextIO

from .models import (
    Code,
    EndBlock,
    EndInline,
    Image,
    LinkEnd,
    LinkStart,
    SemanticEvent,
    StartBlock,
    StartInline,
    Text,
)


@dataclass
class EventReport:
    total_events: int = 0
    max_depth: int = 0
    counts: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


def describe_event(event: SemanticEvent) -> str:
    name = type(event).__name__
    if isinstance(event, (StartBlock, EndBlock)):
        return f"{name}({event.block})"
    if isinstance(event, (StartInline, EndInline)):
        return f"{name}({event.kind.value})"
    if isinstance(event, (Text, Code)):
        return f"{name}({event.text!r})"
    if isinstance(event, LinkStart):
        return f"{name}({event.url!r})"
    if isinstance(event, Image):
        return f"{name}({event.url!r}, {event.alt!r})"
    return name


def dump_events(events: Iterable[SemanticEvent], out: TextIO) -> int:
    """Write one line per event to ``out`` and return the number of events."""
    count = 0
    for event in events:
        out.write(describe_event(event) + "\n")
        count += 1
    return count


def _context_key(event: SemanticEvent) -> str | None:
    if isinstance(event, (StartBlock, EndBlock)):
        return str(event.block)
    if isinstance(event, (StartInline, EndInline)):
        return event.kind.value
    if isinstance(event, (LinkStart, LinkEnd)):
        return "Link"
    return None


def summarize_events(events: Iterable[SemanticEvent]) -> EventReport:
    report = EventReport()
    stack: list[str] = []

    for event in events:
        report.total_events += 1
        name = type(event).__name__
        report.counts[name] = report.counts.get(name, 0) + 1

        key = _context_key(event)
        if key is None:
            continue
        if isinstance(event, (StartBlock, StartInline, LinkStart)):
            stack.append(key)
            report.max_depth = max(report.max_depth, len(stack))
        elif stack and stack[-1] == key:
            stack.pop()
        else:
            report.errors.append(f"unmatched_end:{report.total_events}")

    for key in reversed(stack):
        report.errors.append(f"unclosed:{key}")
    return report
