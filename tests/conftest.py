"""Pytest configuration and shared fixtures."""

import io
import os

import pytest
from rich.console import Console


def make_console(terminal: bool = True, width: int = 200) -> tuple[Console, io.StringIO]:
    """Create a console writing plain text (no styles) into a buffer."""
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        force_terminal=terminal,
        color_system=None,
        width=width,
        highlight=False,
        _environ={},
    )
    return console, buffer


@pytest.fixture
def console_factory():
    """Factory for consoles writing plain text into a buffer."""
    return make_console


@pytest.fixture
def pipe():
    """A pipe standing in for the keyboard: (read end, write end)."""
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    for fd in (write_fd, read_fd):
        try:
            os.close(fd)
        except OSError:
            pass
