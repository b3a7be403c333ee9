"""Exception types raised by the progress renderers."""


class ProgviewError(Exception):
    """Base class for all errors reported by progview."""


class SetupError(ProgviewError):
    """The terminal could not be prepared for rendering.

    Raised before any render loop starts, e.g. when standard input or output
    is not a terminal or when switching the terminal mode fails.
    """


class ProgressEmpty(ProgviewError):
    """The progress tree is empty and the renderer is not asked to keep running.

    This is a normal stop signal, not a defect. It travels through the same
    channel as real errors, so callers catch it separately.
    """

    def __init__(self, message: str = "stop as progress is empty"):
        super().__init__(message)
