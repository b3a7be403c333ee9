"""progview - render a changing tree of tasks and its message log to a terminal.

Two renderers are provided: `progview.line` redraws a block of lines in place,
`progview.tui` runs a full-screen interactive dashboard.
"""

from .errors import ProgressEmpty, ProgviewError, SetupError
from .tree import Item, Key, Message, MessageLevel, Root

__all__ = [
    "Item",
    "Key",
    "Message",
    "MessageLevel",
    "ProgressEmpty",
    "ProgviewError",
    "Root",
    "SetupError",
]
