"""Output formatter - the entry point for diagnostics printed by progview.

Provides a centralized formatter holding the Rich console used for status,
warning and error messages, outside of the progress renderers themselves.

Usage:
    output = OutputFormatter(no_color=False)
    output.print_error("stdin is not a terminal")
"""

from typing import Optional, Union

from rich.console import Console
from rich.text import Text

from .symbols import SymbolsFormatter


class OutputFormatter:
    """Central formatter that manages the Rich console and symbols.

    The no_color option is handled by the Rich console when printing, so
    callers don't need to conditionally apply styles.

    Attributes:
        console: The Rich console for output
        symbols: SymbolsFormatter for emoji/ASCII symbols
    """

    def __init__(self, no_color: bool, console: Optional[Console] = None):
        """Initialize the output formatter.

        Args:
            no_color: If True, disable all colors and styling in output
            console: Console to print to (defaults to a new stdout console)
        """
        self._console = console or Console(
            no_color=no_color,
            force_terminal=None,
            highlight=False,
        )
        self._err_console = Console(
            stderr=True,
            no_color=no_color,
            highlight=False,
        )
        self._symbols = SymbolsFormatter(no_color=no_color)

    @property
    def console(self) -> Console:
        """Get the underlying Rich console."""
        return self._console

    @property
    def symbols(self) -> SymbolsFormatter:
        """Get the symbols formatter for emoji/ASCII symbol access."""
        return self._symbols

    def print(self, message: Union[str, Text]) -> None:
        """Print message using Rich console.

        Args:
            message: Message to print (string or Rich Text)
        """
        self._console.print(message, highlight=False)

    def print_warning(self, message: str) -> None:
        """Print a warning message to stderr.

        Args:
            message: Warning message to print
        """
        line = Text()
        line.append(f"{self._symbols.Warning} ", style="yellow")
        line.append("Warning: ", style="bold yellow")
        line.append(message)
        self._err_console.print(line, highlight=False)

    def print_error(self, message: str) -> None:
        """Print an error message to stderr.

        Args:
            message: Error message to print
        """
        line = Text()
        line.append(f"{self._symbols.Cross} ", style="red")
        line.append("Error: ", style="bold red")
        line.append(message)
        self._err_console.print(line, highlight=False)
