"""Full-screen interactive dashboard."""

from .engine import Dashboard, TuiOptions, render, render_with_input
from .events import (
    Event,
    Input,
    Interrupt,
    InterruptState,
    Line,
    Rect,
    SetInformation,
    SetInterruptMode,
    SetTitle,
    SetWindowSize,
    Text,
    Tick,
    Title,
)

__all__ = [
    "Dashboard",
    "Event",
    "Input",
    "Interrupt",
    "InterruptState",
    "Line",
    "Rect",
    "SetInformation",
    "SetInterruptMode",
    "SetTitle",
    "SetWindowSize",
    "Text",
    "Tick",
    "Title",
    "TuiOptions",
    "render",
    "render_with_input",
]
