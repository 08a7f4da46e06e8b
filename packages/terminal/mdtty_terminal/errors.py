"""Base render error and terminal sink failures."""


class RenderError(Exception):
    """Base exception for a failed render call."""

    pass


class WriteError(RenderError):
    """The underlying terminal stream rejected a write."""

    pass
