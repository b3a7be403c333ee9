"""Tests for the dashboard event loop."""

import asyncio
import io
import os
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from progview.tree import Root
from progview.tui import draw
from progview.tui.engine import Dashboard, TuiOptions, render_with_input
from progview.tui.events import (
    Input,
    Interrupt,
    InterruptState,
    Rect,
    SetInformation,
    SetInterruptMode,
    SetTitle,
    SetWindowSize,
    Text,
    Tick,
    Title,
)


async def stream(*events):
    for event in events:
        yield event


def make_dashboard(root=None, **options) -> Dashboard:
    screen = MagicMock()
    screen.size.return_value = Rect(0, 0, 80, 24)
    return Dashboard(root or Root(), TuiOptions(**options), screen)


def run(dashboard: Dashboard, *events) -> Dashboard:
    asyncio.run(dashboard.run(stream(*events)))
    return dashboard


class TestInterrupts:
    """Tests for leaving the event loop."""

    @pytest.mark.parametrize("key", ["q", "esc", "ctrl+c", "ctrl+["])
    def test_quit_keys_end_the_loop(self, key):
        dashboard = run(make_dashboard(), Tick(), Input(key), Tick(), Tick())

        assert dashboard.should_exit
        assert dashboard.frames_drawn == 1

    def test_deferred_interrupt(self):
        """Test that a deferred quit request waits for instant mode."""
        dashboard = run(
            make_dashboard(),
            SetInterruptMode(Interrupt.DEFERRED),
            Input("q"),
            Tick(),
            SetInterruptMode(Interrupt.INSTANTLY),
            Tick(),
        )

        assert dashboard.should_exit
        assert dashboard.frames_drawn == 3

    def test_deferred_without_request_keeps_running(self):
        dashboard = run(
            make_dashboard(),
            SetInterruptMode(Interrupt.DEFERRED),
            SetInterruptMode(Interrupt.INSTANTLY),
            Tick(),
        )

        assert not dashboard.should_exit
        assert dashboard.frames_drawn == 3

    def test_end_of_events_ends_the_loop(self):
        dashboard = run(make_dashboard(), Tick(), Tick())

        assert not dashboard.should_exit
        assert dashboard.frames_drawn == 2


class TestKeys:
    """Tests for the key bindings."""

    def test_unknown_key_does_not_redraw(self):
        dashboard = run(make_dashboard(), Input("x"), Input("enter"))

        assert dashboard.frames_drawn == 0
        dashboard.screen.draw.assert_not_called()

    @pytest.mark.parametrize(
        ("key", "task_offset", "message_offset"),
        [
            ("j", 1, 0),
            ("d", 10, 0),
            ("J", 0, 1),
            ("D", 0, 10),
        ],
    )
    def test_scroll_down(self, key, task_offset, message_offset):
        dashboard = run(make_dashboard(), Input(key))

        assert dashboard.state.task_offset == task_offset
        assert dashboard.state.message_offset == message_offset

    def test_scroll_up(self):
        dashboard = make_dashboard()
        dashboard.state.task_offset = 15
        dashboard.state.message_offset = 15

        run(dashboard, Input("k"), Input("u"), Input("K"), Input("U"), Input("U"))

        assert dashboard.state.task_offset == 4
        assert dashboard.state.message_offset == 0

    def test_scroll_up_saturates_at_zero(self):
        dashboard = make_dashboard()
        dashboard.state.task_offset = 4

        run(dashboard, Input("u"), Input("u"), Input("k"))

        assert dashboard.state.task_offset == 0

    def test_toggles(self):
        dashboard = run(make_dashboard(), Input("`"), Input("~"), Input("["), Input("{"))

        assert dashboard.state.hide_messages
        assert dashboard.state.messages_fullscreen
        assert dashboard.state.hide_info
        assert dashboard.state.maximize_info
        assert dashboard.frames_drawn == 4

        run(dashboard, Input("`"))
        assert not dashboard.state.hide_messages


class TestEvents:
    """Tests for events changing the view state."""

    def test_set_title(self):
        dashboard = run(make_dashboard(), SetTitle("build"))
        assert dashboard.state.title == "build"
        assert dashboard.frames_drawn == 1

    def test_set_information(self):
        lines = [Title("Stats"), Text("42 jobs")]
        dashboard = run(make_dashboard(), SetInformation(lines))
        assert dashboard.state.information == lines

    def test_window_size_override(self):
        dashboard = run(make_dashboard(), SetWindowSize(Rect(0, 0, 40, 10)))

        assert dashboard.state.user_provided_window_size == Rect(0, 0, 40, 10)
        dashboard.screen.size.assert_not_called()
        frame = dashboard.screen.draw.call_args[0][0]
        assert frame.bound == Rect(0, 0, 40, 10)

    def test_window_size_from_options(self):
        dashboard = run(make_dashboard(window_size=Rect(0, 0, 50, 20)), Tick())

        dashboard.screen.size.assert_not_called()
        assert dashboard.screen.draw.call_args[0][0].bound == Rect(0, 0, 50, 20)

    def test_window_size_from_terminal(self):
        dashboard = run(make_dashboard(), Tick())

        dashboard.screen.size.assert_called_once()
        assert dashboard.screen.draw.call_args[0][0].bound == Rect(0, 0, 80, 24)

    def test_unknown_event(self):
        with pytest.raises(TypeError, match="Unknown event"):
            make_dashboard().handle("tick")


class TestFrames:
    """Tests for drawing frames."""

    def test_snapshot_taken_after_event(self):
        root = Root()
        root.add_child("task").info("hello")
        dashboard = run(make_dashboard(root), Tick())

        assert [value.name for _, value in dashboard.entries] == ["task"]
        assert [m.text for m in dashboard.messages] == ["hello"]

    def test_hidden_messages_are_not_copied(self):
        root = Root()
        root.add_child("task").info("hello")
        dashboard = run(make_dashboard(root), Input("`"))

        assert dashboard.messages == []

    def test_redraw_skip_for_unchanged_tree(self):
        root = Root()
        root.add_child("task")
        dashboard = run(make_dashboard(root, redraw_only_on_state_change=True), Tick(), Tick())

        assert dashboard.frames_drawn == 1

    def test_redraw_skip_draws_changes(self):
        root = Root()
        item = root.add_child("task")
        dashboard = make_dashboard(root, redraw_only_on_state_change=True)

        async def events():
            yield Tick()
            item.inc()
            yield Tick()
            yield Tick()

        asyncio.run(dashboard.run(events()))

        assert dashboard.frames_drawn == 2

    def test_without_redraw_skip_every_tick_draws(self):
        root = Root()
        root.add_child("task")
        dashboard = run(make_dashboard(root), Tick(), Tick())

        assert dashboard.frames_drawn == 2

    def test_redraw_skip_applies_to_every_event(self):
        """Test that view changes alone do not redraw an unchanged tree."""
        root = Root()
        root.add_child("task")
        dashboard = run(
            make_dashboard(root, redraw_only_on_state_change=True),
            Tick(),
            Input("j"),
            SetTitle("x"),
            Tick(),
        )

        assert dashboard.frames_drawn == 1
        assert dashboard.state.task_offset == 1
        assert dashboard.state.title == "x"

    def test_column_width_recomputed_every_nth_frame(self):
        root = Root()
        item = root.add_child("a")
        dashboard = make_dashboard(root, recompute_column_width_every_nth_frame=3)

        dashboard.draw_frame()
        assert dashboard.state.next_tree_column_width == 1

        item.set_name("abcdef")
        dashboard.draw_frame()
        assert dashboard.state.last_tree_column_width == 6
        assert dashboard.state.next_tree_column_width == 1

        dashboard.draw_frame()
        assert dashboard.state.next_tree_column_width == 6

    def test_column_width_recomputed_every_frame_by_default(self):
        root = Root()
        item = root.add_child("a")
        dashboard = make_dashboard(root)
        dashboard.draw_frame()

        item.set_name("abcdef")
        dashboard.draw_frame()

        assert dashboard.state.next_tree_column_width == 6

    def test_frame_renders(self):
        root = Root()
        root.add_child("compile").add_child("link")
        dashboard = make_dashboard(root, title="My Build")
        run(dashboard, SetInformation([Title("Host"), Text("ci-7")]), Tick())

        frame = dashboard.screen.draw.call_args[0][0]
        buffer = io.StringIO()
        Console(file=buffer, width=80, height=24, color_system=None, _environ={}).print(frame)
        output = buffer.getvalue()

        assert "My Build" in output
        assert "compile" in output
        assert "link" in output
        assert "ci-7" in output
        assert len(output.splitlines()) == 24


class TestDraw:
    """Tests for the dashboard layout helpers."""

    def test_tree_column_width(self):
        root = Root()
        root.add_child("abc").add_child("abcdef")
        entries = []
        root.sorted_snapshot(entries)

        assert draw.tree_column_width(entries) == 8
        assert draw.tree_column_width([]) == 0

    def test_task_line_pads_names(self):
        root = Root()
        item = root.add_child("ab")
        item.init(4, "files")
        item.inc()
        entries = []
        root.sorted_snapshot(entries)

        line = draw.task_line(*entries[0], column_width=5)

        assert line.plain.startswith("ab    ")
        assert "25%" in line.plain
        assert line.plain.endswith("1/4 files")

    def test_deferred_interrupt_shown_in_title(self):
        state = draw.State(title="T")
        assert "interrupt requested" in draw.title_bar(state, InterruptState.deferred(pending=True)).plain
        assert "interrupt deferred" in draw.title_bar(state, InterruptState.deferred()).plain
        assert "interrupt" not in draw.title_bar(state, InterruptState.instant()).plain


def make_terminal(read_fd: int) -> MagicMock:
    terminal = MagicMock()
    terminal.fileno.return_value = read_fd
    terminal.size.return_value = Rect(0, 0, 80, 24)
    return terminal


def run_dashboard(coroutine) -> None:
    async def bounded():
        await asyncio.wait_for(coroutine, 2)

    asyncio.run(bounded())


class TestRenderWithInput:
    """Tests for running the dashboard against a terminal."""

    def test_ends_with_the_event_stream(self, pipe):
        read_fd, _ = pipe
        terminal = make_terminal(read_fd)

        run_dashboard(
            render_with_input(Root(), TuiOptions(), stream(SetTitle("a")), terminal=terminal)
        )

        terminal.close.assert_called_once()

    def test_ends_when_the_keyboard_closes(self, pipe):
        read_fd, write_fd = pipe
        os.close(write_fd)
        terminal = make_terminal(read_fd)

        run_dashboard(render_with_input(Root(), TuiOptions(), terminal=terminal))

        terminal.close.assert_called_once()

    def test_quit_key_ends_the_loop(self, pipe):
        read_fd, write_fd = pipe
        terminal = make_terminal(read_fd)

        async def never_ending():
            await asyncio.Event().wait()
            yield Tick()

        os.write(write_fd, b"q")
        run_dashboard(render_with_input(Root(), TuiOptions(), never_ending(), terminal=terminal))

        terminal.close.assert_called_once()

    def test_frames_are_drawn_to_the_terminal(self, pipe):
        read_fd, _ = pipe
        terminal = make_terminal(read_fd)
        root = Root()
        root.add_child("task")

        async def events():
            await asyncio.sleep(0.2)
            yield SetTitle("done")

        run_dashboard(
            render_with_input(root, TuiOptions(frames_per_second=50.0), events(), terminal=terminal)
        )

        assert terminal.draw.call_count >= 2
        terminal.close.assert_called_once()

    def test_terminal_closed_when_the_loop_fails(self, pipe):
        read_fd, _ = pipe
        terminal = make_terminal(read_fd)
        terminal.draw.side_effect = OSError("write failed")

        with pytest.raises(OSError, match="write failed"):
            run_dashboard(render_with_input(Root(), TuiOptions(), stream(Tick()), terminal=terminal))

        terminal.close.assert_called_once()

    @pytest.mark.parametrize("fps", [0.0, -1.0])
    def test_rejects_non_positive_frame_rate(self, fps):
        terminal = MagicMock()

        with pytest.raises(ValueError, match="frames_per_second"):
            render_with_input(Root(), TuiOptions(frames_per_second=fps), terminal=terminal)

        terminal.close.assert_not_called()
