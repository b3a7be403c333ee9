"""Symbol definitions with emoji/ASCII fallbacks.

Provides a clean API for accessing symbols that automatically fall back
to ASCII when emoji support is not available or colors are disabled.

Usage:
    symbols = SymbolsFormatter()
    print(symbols.Check)  # Returns "✅" or "+"
    print(symbols.for_level(MessageLevel.FAILURE))  # Returns "❌" or "x"
"""

import platform
import sys
from dataclasses import dataclass
from functools import cached_property

from ..tree import MessageLevel


@dataclass(frozen=True)
class Symbol:
    """A symbol with emoji and ASCII fallback."""

    emoji: str
    ascii: str


class Symbols:
    """Symbol definitions as class attributes."""

    # Status indicators
    Check = Symbol("✅", "+")
    Cross = Symbol("❌", "x")
    Warning = Symbol("⚠️", "!")
    Info = Symbol("ℹ️", "i")


LEVEL_SYMBOLS = {
    MessageLevel.INFO: Symbols.Info,
    MessageLevel.SUCCESS: Symbols.Check,
    MessageLevel.FAILURE: Symbols.Cross,
}


class SymbolsFormatter:
    """Provides symbols with automatic emoji/ASCII fallback based on terminal support.

    Emoji is disabled when no_color=True or when the terminal doesn't support it.
    """

    def __init__(self, no_color: bool = False):
        """Initialize the symbols formatter.

        Args:
            no_color: If True, always use ASCII symbols instead of emoji
        """
        self._no_color = no_color

    @cached_property
    def supports_emoji(self) -> bool:
        """Detect if terminal supports emoji display."""
        # Disable emoji when no_color is set
        if self._no_color:
            return False

        if platform.system() == "Windows":
            return False

        if not hasattr(sys.stdout, 'encoding') or sys.stdout.encoding is None:
            return False

        encoding = sys.stdout.encoding.lower()
        emoji_encodings = ['utf-8', 'utf8', 'utf-16', 'utf16']

        return any(enc in encoding for enc in emoji_encodings)

    def _resolve(self, symbol: Symbol) -> str:
        """Resolve a symbol to emoji or ASCII based on support."""
        return symbol.emoji if self.supports_emoji else symbol.ascii

    def for_level(self, level: MessageLevel) -> str:
        """Get the badge shown next to a message of the given level."""
        return self._resolve(LEVEL_SYMBOLS[level])

    @property
    def Check(self) -> str:
        return self._resolve(Symbols.Check)

    @property
    def Cross(self) -> str:
        return self._resolve(Symbols.Cross)

    @property
    def Warning(self) -> str:
        return self._resolve(Symbols.Warning)

