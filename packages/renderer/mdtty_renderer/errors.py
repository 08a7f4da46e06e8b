"""Exception hierarchy for render calls."""

from mdtty_terminal.errors import RenderError, WriteError


class QuantizationError(RenderError):
    """Highlighting produced a colour outside the known palette."""

    def __init__(self, rgb: tuple[int, int, int]) -> None:
        self.rgb = rgb
        r, g, b = rgb
        super().__init__(f"Unexpected RGB colour: #{r:02x}{g:02x}{b:02x}")


class ResourceError(RenderError):
    """A referenced image or file could not be loaded."""

    pass


class StructuralInconsistency(RenderError):
    """Event stream opened and closed contexts out of order."""

    pass


__all__ = [
    "QuantizationError",
    "RenderError",
    "ResourceError",
    "StructuralInconsistency",
    "WriteError",
]
