"""Renderer package turning semantic document events into terminal output."""

from .dump import EventReport, dump_events, summarize_events
from .engine import RenderEngine, render
from .errors import QuantizationError, RenderError, ResourceError, StructuralInconsistency, WriteError
from .models import Block, BlockKind, FontStyle, HighlightRegion, InlineKind, ResourceAccess
from .quantize import QuantizedStyle, quantize, style_instructions
from .highlighting import PygmentsHighlighter
from .markdown import parse_markdown
from .state import RenderState, StyleStack

__all__ = [
    "Block",
    "BlockKind",
    "EventReport",
    "FontStyle",
    "HighlightRegion",
    "InlineKind",
    "PygmentsHighlighter",
    "QuantizationError",
    "QuantizedStyle",
    "RenderEngine",
    "RenderError",
    "RenderState",
    "ResourceAccess",
    "ResourceError",
    "StructuralInconsistency",
    "StyleStack",
    "WriteError",
    "dump_events",
    "parse_markdown",
    "quantize",
    "render",
    "style_instructions",
    "summarize_events",
]
