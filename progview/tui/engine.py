"""Event loop of the full-screen dashboard.

The loop consumes one merged stream of ticks, key presses and caller supplied
events. Every event may change the view state; afterwards a frame is drawn
from fresh snapshots of the progress tree, unless the event asked for no
redraw or nothing changed since the last frame.
"""

import asyncio
from dataclasses import dataclass
from typing import AsyncIterable, Awaitable, Optional, Protocol

from rich.console import RenderableType

from ..tree import Key, Message, Root, Value
from . import draw
from .events import (
    CANCEL,
    Event,
    Input,
    InterruptState,
    Rect,
    SetInformation,
    SetInterruptMode,
    SetTitle,
    SetWindowSize,
    Tick,
)
from .keyboard import KeyboardBridge
from .merge import merge
from .terminal import Terminal
from .ticker import ticker

QUIT_KEYS = frozenset({"esc", "q", "ctrl+c", "ctrl+["})

# Keys adjusting the scroll offsets: (state attribute, delta)
SCROLL_KEYS = {
    "J": ("message_offset", 1),
    "D": ("message_offset", 10),
    "j": ("task_offset", 1),
    "d": ("task_offset", 10),
    "K": ("message_offset", -1),
    "U": ("message_offset", -10),
    "k": ("task_offset", -1),
    "u": ("task_offset", -10),
}

# Keys flipping a boolean of the view state
TOGGLE_KEYS = {
    "`": "hide_messages",
    "~": "messages_fullscreen",
    "[": "hide_info",
    "{": "maximize_info",
}


@dataclass
class TuiOptions:
    """Configure the dashboard."""

    # Initial title of the window; change it later with a SetTitle event.
    title: str = "Progress Dashboard"
    # Frames to draw per second. Below 1.0 it is the inverse of the seconds
    # between frames, e.g. 0.25 draws a frame every 4 seconds.
    frames_per_second: float = 10.0
    # Recompute the width of the task column only every given frame instead of
    # every frame. Keeps the layout steady when many short-lived tasks with
    # differing names come and go at high frame rates.
    recompute_column_width_every_nth_frame: Optional[int] = None
    # Initial window size; taken from the terminal if unset.
    window_size: Optional[Rect] = None
    # Skip drawing if the progress tree did not change since the last frame.
    # Keeps a full copy of the tree around for the comparison.
    redraw_only_on_state_change: bool = False


class Screen(Protocol):
    """What the loop needs from the terminal it draws to."""

    def size(self) -> Rect: ...

    def draw(self, renderable: RenderableType) -> None: ...


class Dashboard:
    """State of one dashboard run and the handling of its events."""

    def __init__(self, progress: Root, options: TuiOptions, screen: Screen):
        self.progress = progress
        self.options = options
        self.screen = screen
        self.state = draw.State(
            title=options.title,
            duration_per_frame=1.0 / options.frames_per_second,
        )
        self.interrupt = InterruptState.instant()
        self.entries: list[tuple[Key, Value]] = []
        self.messages: list[Message] = []
        self.tick = 0
        self.store_task_size_every = max(1, options.recompute_column_width_every_nth_frame or 1)
        self.previous_root: Optional[Root] = None

    @property
    def should_exit(self) -> bool:
        return self.interrupt.should_exit

    @property
    def frames_drawn(self) -> int:
        return self.tick

    def handle(self, event: Event) -> bool:
        """Apply `event` to the view state.

        Returns:
            False if the event does not warrant a redraw
        """
        state = self.state
        if isinstance(event, Tick):
            return True
        if isinstance(event, Input):
            return self._handle_key(event.key)
        if isinstance(event, SetWindowSize):
            state.user_provided_window_size = event.rect
        elif isinstance(event, SetTitle):
            state.title = event.title
        elif isinstance(event, SetInformation):
            state.information = list(event.lines)
        elif isinstance(event, SetInterruptMode):
            self.interrupt = self.interrupt.transition(event.mode)
        else:
            raise TypeError(f"Unknown event: {event!r}")
        return True

    def _handle_key(self, key: str) -> bool:
        state = self.state
        if key in QUIT_KEYS:
            self.interrupt = self.interrupt.transition(CANCEL)
        elif key in TOGGLE_KEYS:
            attr = TOGGLE_KEYS[key]
            setattr(state, attr, not getattr(state, attr))
        elif key in SCROLL_KEYS:
            attr, delta = SCROLL_KEYS[key]
            setattr(state, attr, max(0, getattr(state, attr) + delta))
        else:
            return False
        return True

    def unchanged_since_last_frame(self) -> bool:
        """Compare the tree to the copy taken at the last frame, refreshing the copy if it differs."""
        previous = self.previous_root
        if previous is not None and previous.deep_eq(self.progress):
            return True
        self.previous_root = self.progress.deep_clone()
        return False

    def draw_frame(self) -> None:
        state = self.state
        self.tick += 1
        window_size = state.user_provided_window_size or self.options.window_size or self.screen.size()
        self.progress.sorted_snapshot(self.entries)
        if not state.hide_messages:
            self.progress.copy_messages(self.messages)

        frame = draw.all(state, self.interrupt, self.entries, self.messages, window_size)
        if (
            self.tick == 1
            or self.tick % self.store_task_size_every == 0
            or not state.last_tree_column_width
        ):
            state.next_tree_column_width = state.last_tree_column_width
        self.screen.draw(frame)

    async def run(self, events: AsyncIterable[Event]) -> None:
        """Handle `events` until an interrupt is accepted or the events end."""
        async for event in events:
            redraw = self.handle(event)
            if self.should_exit:
                break
            if redraw and self.options.redraw_only_on_state_change and self.unchanged_since_last_frame():
                redraw = False
            if redraw:
                self.draw_frame()


async def _run_in_terminal(
    progress: Root,
    options: TuiOptions,
    events: Optional[AsyncIterable[Event]],
    terminal: Terminal,
) -> None:
    try:
        bridge = KeyboardBridge(terminal.fileno(), asyncio.get_running_loop()).start()
        sources: list[AsyncIterable[Event]] = [
            ticker(1.0 / options.frames_per_second),
            (Input(key) async for key in bridge.keys()),
        ]
        if events is not None:
            sources.append(events)
        merged = merge(*sources, until_any_exhausted=True)
        try:
            await Dashboard(progress, options, terminal).run(merged)
        finally:
            await merged.aclose()
    finally:
        terminal.close()


def render_with_input(
    progress: Root,
    options: TuiOptions,
    events: Optional[AsyncIterable[Event]] = None,
    terminal: Optional[Terminal] = None,
) -> Awaitable[None]:
    """Open the dashboard and return a coroutine running it until it is quit.

    * `progress` is the tree to show; it usually keeps changing while shown.
    * `events` manipulate the dashboard while it runs. The dashboard stops
      when they end.

    Raises:
        SetupError: If there is no terminal to draw into. This happens here,
            before the returned coroutine is awaited.
    """
    if options.frames_per_second <= 0:
        raise ValueError("frames_per_second must be positive")
    if terminal is None:
        terminal = Terminal.open()
    return _run_in_terminal(progress, options, events, terminal)


def render(progress: Root, options: TuiOptions) -> Awaitable[None]:
    """Like `render_with_input()`, for dashboards driven by keys and time only."""
    return render_with_input(progress, options)
