"""Line renderer: redraws the progress tree in place below the message log."""

from .draw import Options, State
from .engine import JoinHandle, LineOptions, render

__all__ = ["JoinHandle", "LineOptions", "Options", "State", "render"]
