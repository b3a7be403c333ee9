"""Terminal session of the full-screen dashboard.

Switches the terminal into cbreak mode without signal keys, so Ctrl-C arrives
as a key press, and draws frames on the alternate screen through Rich Live.
"""

import sys
import termios
import tty
from typing import Any, Optional, TextIO

from rich.console import Console, RenderableType
from rich.live import Live
from rich.text import Text

from ..errors import SetupError
from .events import Rect


class Terminal:
    """An open full-screen terminal session.

    Use `Terminal.open()` to create one; `close()` restores the terminal.
    """

    def __init__(self, console: Console, stdin: TextIO, old_settings: Optional[list[Any]]):
        self.console = console
        self.stdin = stdin
        self._old_settings = old_settings
        self._live = Live(
            Text(""),
            console=console,
            screen=True,
            auto_refresh=False,
            transient=True,
            redirect_stdout=False,
            redirect_stderr=False,
        )

    @classmethod
    def open(cls, stdin: Optional[TextIO] = None, console: Optional[Console] = None) -> "Terminal":
        """Prepare the terminal for drawing.

        Raises:
            SetupError: If input or output is not a terminal, or its mode
                cannot be changed.
        """
        stdin = stdin or sys.stdin
        console = console or Console(highlight=False)
        if not stdin.isatty():
            raise SetupError("standard input is not a terminal")
        if not console.is_terminal:
            raise SetupError("output is not a terminal")

        fd = stdin.fileno()
        try:
            old_settings = termios.tcgetattr(fd)
            tty.setcbreak(fd)
            attributes = termios.tcgetattr(fd)
            attributes[3] &= ~termios.ISIG
            termios.tcsetattr(fd, termios.TCSADRAIN, attributes)
        except (termios.error, ValueError) as err:
            raise SetupError(f"cannot switch the terminal to cbreak mode: {err}") from err

        terminal = cls(console, stdin, old_settings)
        try:
            terminal._live.start()
        except Exception:
            terminal._restore()
            raise
        return terminal

    def __enter__(self) -> "Terminal":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fileno(self) -> int:
        return self.stdin.fileno()

    def size(self) -> Rect:
        width, height = self.console.size
        return Rect(0, 0, width, height)

    def draw(self, renderable: RenderableType) -> None:
        self._live.update(renderable, refresh=True)

    def _restore(self) -> None:
        if self._old_settings is not None:
            termios.tcsetattr(self.stdin.fileno(), termios.TCSADRAIN, self._old_settings)
            self._old_settings = None

    def close(self) -> None:
        """Leave the alternate screen and restore the original terminal mode."""
        try:
            self._live.stop()
        finally:
            self._restore()
            self.console.file.flush()
