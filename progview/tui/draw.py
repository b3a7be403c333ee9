"""Layout of the full-screen dashboard.

Builds a Rich renderable for one frame from the dashboard state and fresh
snapshots of the tree and the message log. Writing it to the terminal is up
to `Terminal.draw()`.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console, ConsoleOptions, RenderableType, RenderResult
from rich.layout import Layout
from rich.padding import Padding
from rich.panel import Panel
from rich.text import Text

from ..tree import Key, Message, MessageLevel, ProgressState, Value
from .events import InterruptKind, InterruptState, Line, Rect, Title

BAR_WIDTH = 20
BAR_FILL = "█"
BAR_EMPTY = "░"

LEVEL_STYLES = {
    MessageLevel.INFO: "white",
    MessageLevel.SUCCESS: "green",
    MessageLevel.FAILURE: "red",
}

STATE_STYLES = {
    ProgressState.RUNNING: "green",
    ProgressState.BLOCKED: "yellow",
    ProgressState.HALTED: "red",
}


@dataclass
class State:
    """View state of the dashboard, owned by its event loop."""
    title: str = ""
    duration_per_frame: float = 0.1
    information: list[Line] = field(default_factory=list)
    hide_messages: bool = False
    messages_fullscreen: bool = False
    hide_info: bool = False
    maximize_info: bool = False
    task_offset: int = 0
    message_offset: int = 0
    # Width the tree column needed in the last frame
    last_tree_column_width: Optional[int] = None
    # Width the tree column is drawn with, if pinned
    next_tree_column_width: Optional[int] = None
    user_provided_window_size: Optional[Rect] = None


class Frame:
    """A renderable drawn into exactly the cells of `bound`."""

    def __init__(self, renderable: RenderableType, bound: Rect):
        self.renderable = renderable
        self.bound = bound

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        bound = self.bound
        renderable = self.renderable
        if bound.x or bound.y:
            renderable = Padding(renderable, (bound.y, 0, 0, bound.x))
        yield from console.render(
            renderable,
            options.update(width=max(1, bound.x + bound.width), height=max(1, bound.y + bound.height)),
        )


def indentation(key: Key) -> str:
    return "  " * max(0, key.level - 1)


def tree_column_width(entries: list[tuple[Key, Value]]) -> int:
    """Cells needed to show every task name with its indentation."""
    return max((len(indentation(key)) + Text(value.name).cell_len for key, value in entries), default=0)


def progress_bar(fraction: float) -> Text:
    filled = int(round(fraction * BAR_WIDTH))
    bar = Text(BAR_FILL * filled, style="green")
    bar.append(BAR_EMPTY * (BAR_WIDTH - filled), style="dim")
    return bar


def task_line(key: Key, value: Value, column_width: int) -> Text:
    line = Text(indentation(key))
    line.append(value.name, style="bold")
    padding = column_width - line.cell_len
    line.append(" " * max(1, padding + 1))
    progress = value.progress
    if progress is None:
        return line
    fraction = progress.fraction()
    if fraction is not None:
        line.append_text(progress_bar(fraction))
        line.append(f" {int(fraction * 100):>3}% ")
    amount = f"{progress.step}" if progress.done_at is None else f"{progress.step}/{progress.done_at}"
    if progress.unit:
        amount = f"{amount} {progress.unit}"
    line.append(amount, style=STATE_STYLES[progress.state])
    if progress.reason:
        line.append(f" ({progress.state.value}: {progress.reason})", style="dim")
    return line


def tasks_pane(state: State, entries: list[tuple[Key, Value]]) -> Panel:
    column_width = state.next_tree_column_width or state.last_tree_column_width or 0
    body = Text(no_wrap=True, overflow="crop")
    visible = entries[state.task_offset:]
    for index, (key, value) in enumerate(visible):
        if index:
            body.append("\n")
        body.append_text(task_line(key, value, column_width))
    return Panel(body, title=f"Tasks ({len(entries)})", title_align="left")


def messages_pane(state: State, messages: list[Message]) -> Panel:
    body = Text(no_wrap=True, overflow="crop")
    origin_width = max((Text(message.origin).cell_len for message in messages), default=0)
    newest_first = list(reversed(messages))[state.message_offset:]
    for index, message in enumerate(newest_first):
        if index:
            body.append("\n")
        style = LEVEL_STYLES[message.level]
        body.append(time.strftime("%H:%M:%S", time.localtime(message.time)), style="dim")
        body.append(" ")
        body.append(message.origin.rjust(origin_width), style="dim")
        body.append(" ")
        body.append(message.text, style=style)
    return Panel(body, title=f"Messages ({len(messages)})", title_align="left")


def info_pane(state: State) -> Panel:
    body = Text(no_wrap=True, overflow="crop")
    for index, line in enumerate(state.information):
        if index:
            body.append("\n")
        if isinstance(line, Title):
            body.append(line.text, style="bold underline")
        else:
            body.append(line.text)
    return Panel(body, title="Information", title_align="left")


def title_bar(state: State, interrupt: InterruptState) -> Text:
    bar = Text(state.title, style="bold reverse", no_wrap=True, overflow="crop")
    if interrupt.kind is InterruptKind.DEFERRED:
        if interrupt.pending:
            bar.append("  interrupt requested - waiting for the work to finish", style="bold red")
        else:
            bar.append("  interrupt deferred", style="yellow")
    bar.append(f"  {1.0 / state.duration_per_frame:.1f} fps", style="dim")
    return bar


def all(
    state: State,
    interrupt: InterruptState,
    entries: list[tuple[Key, Value]],
    messages: list[Message],
    window_size: Rect,
) -> Frame:
    """Lay out one frame and record the tree column width it needed."""
    state.last_tree_column_width = tree_column_width(entries)

    if state.hide_messages:
        main = Layout(tasks_pane(state, entries))
    elif state.messages_fullscreen:
        main = Layout(messages_pane(state, messages))
    else:
        main = Layout()
        main.split_column(
            Layout(tasks_pane(state, entries), ratio=2),
            Layout(messages_pane(state, messages), ratio=1),
        )

    if state.hide_info or not state.information:
        body = main
    elif state.maximize_info:
        body = Layout(info_pane(state))
    else:
        main.ratio = 3
        body = Layout()
        body.split_row(main, Layout(info_pane(state), ratio=1))

    root = Layout()
    root.split_column(Layout(title_bar(state, interrupt), size=1), body)
    return Frame(root, window_size)
