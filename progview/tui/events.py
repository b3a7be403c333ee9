"""Events driving the dashboard, and the interrupt state machine.

Events can be produced by the dashboard itself (ticks and key presses) or by
any caller through the event stream passed to `render_with_input()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Union


@dataclass(frozen=True)
class Rect:
    """A rectangle of terminal cells."""
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class Title:
    """A title line of the information pane."""
    text: str


@dataclass(frozen=True)
class Text:
    """A text line of the information pane."""
    text: str


Line = Union[Title, Text]


class Interrupt(Enum):
    """How the dashboard responds to interrupt requests such as pressing `q`."""

    # Leave the event loop right away; the default when the loop starts.
    INSTANTLY = auto()
    # Remember the request and leave only once INSTANTLY is set again.
    DEFERRED = auto()


class InterruptKind(Enum):
    INSTANT = auto()
    DEFERRED = auto()
    EXIT = auto()


# Signal for a user interrupt request, as opposed to an `Interrupt` mode change.
CANCEL = "cancel"

InterruptSignal = Union[Interrupt, str]


@dataclass(frozen=True)
class InterruptState:
    """Interrupt handling of the event loop.

    `kind` is INSTANT, DEFERRED (with `pending` recording an unanswered
    interrupt request) or EXIT once the loop has to end.
    """
    kind: InterruptKind = InterruptKind.INSTANT
    pending: bool = False

    @classmethod
    def instant(cls) -> InterruptState:
        return cls(InterruptKind.INSTANT)

    @classmethod
    def deferred(cls, pending: bool = False) -> InterruptState:
        return cls(InterruptKind.DEFERRED, pending)

    @property
    def should_exit(self) -> bool:
        return self.kind is InterruptKind.EXIT

    def transition(self, signal: InterruptSignal) -> InterruptState:
        """Return the state after `signal`, which is CANCEL or an `Interrupt` mode."""
        if self.should_exit:
            return self
        if signal == CANCEL:
            if self.kind is InterruptKind.INSTANT:
                return InterruptState(InterruptKind.EXIT)
            return InterruptState.deferred(pending=True)
        if signal is Interrupt.INSTANTLY:
            if self.pending:
                return InterruptState(InterruptKind.EXIT)
            return InterruptState.instant()
        if signal is Interrupt.DEFERRED:
            return InterruptState.deferred(pending=self.pending)
        raise ValueError(f"Unknown interrupt signal: {signal!r}")


@dataclass(frozen=True)
class Tick:
    """Draw a frame."""


@dataclass(frozen=True)
class Input:
    """A key press, typically generated by the dashboard's own keyboard reader."""
    key: str


@dataclass(frozen=True)
class SetWindowSize:
    """Draw into the given rectangle instead of the whole terminal."""
    rect: Rect


@dataclass(frozen=True)
class SetTitle:
    title: str


@dataclass(frozen=True)
class SetInformation:
    """Replace the lines shown in the information pane."""
    lines: list[Line] = field(default_factory=list)


@dataclass(frozen=True)
class SetInterruptMode:
    mode: Interrupt


Event = Union[Tick, Input, SetWindowSize, SetTitle, SetInformation, SetInterruptMode]
