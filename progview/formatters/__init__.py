"""Formatters package for progview console output.

The main entry point is `OutputFormatter`, which owns the Rich console used
for diagnostics and provides the symbols formatter.

Usage:
    output = OutputFormatter(no_color=False)
    output.print_warning("terminal too small")
    output.print(f"{output.symbols.Check} done")
"""

from .output import OutputFormatter
from .symbols import Symbols, SymbolsFormatter

__all__ = [
    "OutputFormatter",
    "Symbols",
    "SymbolsFormatter",
]
