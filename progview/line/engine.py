"""Background thread that keeps redrawing a progress tree in line mode."""

import threading
from dataclasses import dataclass, fields
from typing import Optional

from rich.console import Console

from ..errors import ProgressEmpty
from ..tree import Root
from . import draw


@dataclass
class LineOptions(draw.Options):
    """Options of the line renderer thread, on top of the drawing options."""
    frames_per_second: float = 6.0
    initial_delay: Optional[float] = None
    hide_cursor: bool = False

    @classmethod
    def for_console(cls, console: Console, **overrides) -> "LineOptions":
        """Derive terminal and color support from `console`."""
        options = cls(
            output_is_terminal=console.is_terminal,
            colored=console.is_terminal and console.color_system is not None,
        )
        for name, value in overrides.items():
            setattr(options, name, value)
        return options

    def draw_options(self) -> draw.Options:
        return draw.Options(**{f.name: getattr(self, f.name) for f in fields(draw.Options)})


class JoinHandle:
    """Controls a running line renderer.

    Leaving the `with` block shuts the renderer down and waits for it.
    """

    def __init__(self, stop: threading.Event):
        self._stop = stop
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[Exception] = None

    def __enter__(self) -> "JoinHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown_and_wait()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def shutdown(self) -> None:
        """Ask the renderer to draw a final frame and stop."""
        self._stop.set()

    def wait(self, timeout: Optional[float] = None) -> None:
        """Wait for the renderer to stop, re-raising the error that stopped it."""
        if self._thread is not None:
            self._thread.join(timeout)
        if self.error is not None:
            error, self.error = self.error, None
            raise error

    def shutdown_and_wait(self) -> None:
        self.shutdown()
        self.wait()


def _run(console: Console, progress: Root, options: LineOptions, handle: JoinHandle) -> None:
    config = options.draw_options()
    state = draw.State()
    period = 1.0 / options.frames_per_second
    stop = handle._stop

    if options.initial_delay and stop.wait(options.initial_delay):
        return
    if options.hide_cursor and config.output_is_terminal:
        console.show_cursor(False)
    try:
        while True:
            # a stop request still gets one last frame so trailing messages make it out
            stopping = stop.is_set()
            try:
                draw.all(console, progress, state, config)
            except ProgressEmpty:
                break
            if stopping:
                break
            stop.wait(period)
        # leave the cursor below the block we drew
        if config.output_is_terminal:
            draw.cursor_down(console, len(state.blocks_per_line))
    except Exception as err:
        handle.error = err
    finally:
        if options.hide_cursor and config.output_is_terminal:
            console.show_cursor(True)


def render(console: Console, progress: Root, options: LineOptions) -> JoinHandle:
    """Start drawing `progress` to `console` from a background thread.

    The thread stops by itself once the tree is empty, unless
    `options.keep_running_if_progress_is_empty` is set.
    """
    handle = JoinHandle(threading.Event())
    handle._thread = threading.Thread(
        target=_run,
        args=(console, progress, options, handle),
        daemon=True,
        name="progview-line",
    )
    handle._thread.start()
    return handle
