"""Incremental line-mode drawing of a progress tree.

Each call to `all()` prints the messages produced since the last call, then
one line per visible task, and finally moves the cursor back to the first
task line so the next call overwrites the same block. Lines that got shorter
are padded with spaces and lines that disappeared are blanked, so no stale
characters remain on screen.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console
from rich.control import Control
from rich.text import Text

from ..errors import ProgressEmpty
from ..formatters.symbols import SymbolsFormatter
from ..tree import Key, Message, MessageCopyState, MessageLevel, Root, Value

MAX_LEVEL = 2**16 - 1

LEVEL_COLORS = {
    MessageLevel.INFO: "white",
    MessageLevel.SUCCESS: "green",
    MessageLevel.FAILURE: "red",
}


@dataclass
class Options:
    """What to draw and how."""
    level_filter: Optional[tuple[int, int]] = None  # inclusive (lo, hi)
    keep_running_if_progress_is_empty: bool = True
    output_is_terminal: bool = True
    colored: bool = True
    timestamp: bool = False


@dataclass
class State:
    """Everything carried from one frame to the next."""
    tree: list[tuple[Key, Value]] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    from_copying: Optional[MessageCopyState] = None
    max_message_origin_size: int = 0
    # Cells written per task line during the previous frame
    blocks_per_line: list[int] = field(default_factory=list)
    ticks: int = 0


def format_time_for_messages(timestamp: float) -> str:
    return time.strftime("%H:%M:%S", time.localtime(timestamp))


def _styled(text: str, style: str, colored: bool) -> Text:
    return Text(text, style=style if colored else "")


def messages(console: Console, state: State, colored: bool, timestamp: bool) -> None:
    """Print all messages in `state.messages`, right-aligning their origins."""
    symbols = SymbolsFormatter(no_color=not colored)
    for message in state.messages:
        origin_size = Text(message.origin).cell_len
        state.max_message_origin_size = max(state.max_message_origin_size, origin_size)
        color = LEVEL_COLORS[message.level]

        line = Text(" ")
        if timestamp:
            line.append_text(
                _styled(format_time_for_messages(message.time), f"dim {color} on yellow", colored)
            )
            line.append(" ")
        padding = " " * (state.max_message_origin_size - origin_size)
        line.append_text(_styled(padding + message.origin, "dim", colored))
        line.append(" ")
        line.append_text(_styled(symbols.for_level(message.level), color, colored))
        line.append(" ")
        line.append_text(_styled(message.text, f"bold {color}", colored))
        console.print(line, soft_wrap=True, highlight=False)


def format_progress(key: Key, value: Value, ticks: int, colored: bool) -> Text:
    """Build the text of a single task line."""
    line = Text(" " * key.level)
    line.append_text(_styled(str(ticks), "yellow", colored))
    line.append(" ")
    line.append_text(_styled(value.name, "bold green", colored))
    progress = value.progress
    if progress is not None:
        if progress.done_at is not None:
            amount = f"{progress.step}/{progress.done_at}"
        else:
            amount = str(progress.step)
        if progress.unit:
            amount = f"{amount} {progress.unit}"
        line.append(" ")
        line.append_text(_styled(amount, "cyan", colored))
        if progress.reason:
            line.append(" ")
            line.append_text(_styled(f"[{progress.state.value}: {progress.reason}]", "dim", colored))
    return line


def all(console: Console, progress: Root, state: State, config: Options) -> None:
    """Draw one frame.

    Raises:
        ProgressEmpty: If the tree is empty and
            `config.keep_running_if_progress_is_empty` is false. New messages
            are printed before this is raised, the tree section is not.
    """
    state.from_copying = progress.copy_new_messages(state.messages, state.from_copying)
    messages(console, state, config.colored, config.timestamp)

    progress.sorted_snapshot(state.tree)
    if not config.keep_running_if_progress_is_empty and not state.tree:
        raise ProgressEmpty()

    if config.output_is_terminal:
        lo, hi = config.level_filter or (0, MAX_LEVEL)
        visible = [(key, value) for key, value in state.tree if lo <= key.level <= hi]
        lines_to_be_drawn = len(visible)
        if len(state.blocks_per_line) < lines_to_be_drawn:
            state.blocks_per_line.extend([0] * (lines_to_be_drawn - len(state.blocks_per_line)))

        for index, (key, value) in enumerate(visible):
            line = format_progress(key, value, state.ticks, config.colored)
            current_block_count = line.cell_len
            blocks_in_last_iteration = state.blocks_per_line[index]
            if blocks_in_last_iteration > current_block_count:
                # fill to the end of line to overwrite what was previously there
                line.append(" " * (blocks_in_last_iteration - current_block_count))
            console.print(line, soft_wrap=True, highlight=False)
            state.blocks_per_line[index] = current_block_count

        # overwrite remaining lines that we didn't touch naturally
        if len(state.blocks_per_line) > lines_to_be_drawn:
            for blocks_in_last_iteration in state.blocks_per_line[lines_to_be_drawn:]:
                console.print(Text(" " * blocks_in_last_iteration), soft_wrap=True, highlight=False)
            # move back to the start of the block we drew, including the blanked lines
            cursor_up(console, len(state.blocks_per_line))
            del state.blocks_per_line[lines_to_be_drawn:]
        else:
            cursor_up(console, lines_to_be_drawn)
    state.ticks += 1


def cursor_up(console: Console, count: int) -> None:
    if count > 0:
        console.control(Control.move(0, -count))


def cursor_down(console: Console, count: int) -> None:
    if count > 0:
        console.control(Control.move(0, count))
