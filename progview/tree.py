"""Thread-safe progress tree and message log.

The renderers only read from this module through snapshots:

    root = Root()
    with root.add_child("build") as build:
        build.init(10, "files")
        build.inc()
        build.info("compiled main.c")

Every public method takes the tree lock, so snapshots can be taken while
worker threads keep mutating the tree.
"""

from __future__ import annotations

import copy
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class MessageLevel(Enum):
    """Severity of a message in the log."""
    INFO = "info"
    SUCCESS = "success"
    FAILURE = "failure"


class ProgressState(Enum):
    """Whether a task is making progress."""
    RUNNING = "running"
    BLOCKED = "blocked"
    HALTED = "halted"


@dataclass(frozen=True, order=True)
class Key:
    """Position of a task in the tree.

    Keys order lexicographically by path, so a parent sorts directly before
    all of its children.
    """
    path: tuple[int, ...] = ()

    @property
    def level(self) -> int:
        """Nesting depth; children of the root are at level 1."""
        return len(self.path)

    def add_child(self, child_id: int) -> Key:
        return Key(self.path + (child_id,))

    def is_ancestor_of(self, other: Key) -> bool:
        return len(other.path) > len(self.path) and other.path[: len(self.path)] == self.path


@dataclass
class Progress:
    """Progress counter of a task."""
    step: int = 0
    done_at: Optional[int] = None
    unit: Optional[str] = None
    state: ProgressState = ProgressState.RUNNING
    reason: Optional[str] = None

    def fraction(self) -> Optional[float]:
        if not self.done_at:
            return None
        return min(1.0, self.step / self.done_at)


@dataclass
class Value:
    """Displayable state of a single task."""
    name: str
    progress: Optional[Progress] = None


@dataclass(frozen=True)
class Message:
    """A single entry of the message log."""
    time: float
    level: MessageLevel
    origin: str
    text: str


@dataclass(frozen=True)
class MessageCopyState:
    """Cursor into the message log, as returned by copy_new()."""
    total: int


class MessageRingBuffer:
    """Append-only message log that keeps the most recent `capacity` messages."""

    def __init__(self, capacity: int):
        self.capacity = max(1, capacity)
        self._buf: deque[Message] = deque(maxlen=self.capacity)
        self._total = 0

    def __len__(self) -> int:
        return len(self._buf)

    def push(self, message: Message) -> None:
        self._buf.append(message)
        self._total += 1

    def copy_all(self, out: list[Message]) -> None:
        out.clear()
        out.extend(self._buf)

    def copy_new(self, out: list[Message], previous: Optional[MessageCopyState]) -> MessageCopyState:
        """Replace the contents of `out` with messages produced since `previous`.

        If `previous` is None or more messages arrived than the buffer retains,
        everything retained is copied.
        """
        out.clear()
        if previous is None or self._total - previous.total >= self.capacity:
            out.extend(self._buf)
        else:
            new_count = self._total - previous.total
            if new_count > 0:
                out.extend(list(self._buf)[-new_count:])
        return MessageCopyState(total=self._total)

    def clone(self) -> MessageRingBuffer:
        other = MessageRingBuffer(self.capacity)
        other._buf.extend(self._buf)
        other._total = self._total
        return other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MessageRingBuffer):
            return NotImplemented
        return self._total == other._total and list(self._buf) == list(other._buf)


class Root:
    """The root of a progress tree together with its message log."""

    def __init__(self, message_buffer_capacity: int = 200):
        self._lock = threading.RLock()
        self._tasks: dict[Key, Value] = {}
        self._messages = MessageRingBuffer(message_buffer_capacity)
        self._child_ids: dict[Key, int] = {}

    def add_child(self, name: str) -> Item:
        """Add a top-level task."""
        return self._add_child(Key(), name)

    def _add_child(self, parent: Key, name: str) -> Item:
        with self._lock:
            child_id = self._child_ids.get(parent, 0)
            self._child_ids[parent] = child_id + 1
            key = parent.add_child(child_id)
            self._tasks[key] = Value(name=name)
        return Item(self, key)

    def _remove(self, key: Key) -> None:
        with self._lock:
            for other in [k for k in self._tasks if k == key or key.is_ancestor_of(k)]:
                del self._tasks[other]
                self._child_ids.pop(other, None)

    def _update(self, key: Key, **changes) -> None:
        with self._lock:
            value = self._tasks.get(key)
            if value is None:
                return
            if "name" in changes:
                value.name = changes.pop("name")
            if changes:
                if value.progress is None:
                    value.progress = Progress()
                for attr, new in changes.items():
                    setattr(value.progress, attr, new)

    def _increment(self, key: Key, step: int) -> None:
        with self._lock:
            value = self._tasks.get(key)
            if value is None:
                return
            if value.progress is None:
                value.progress = Progress()
            value.progress.step += step

    def _message(self, key: Key, level: MessageLevel, text: str) -> None:
        with self._lock:
            value = self._tasks.get(key)
            origin = value.name if value is not None else ""
            self._messages.push(Message(time=time.time(), level=level, origin=origin, text=text))

    # =========================================================================
    # Snapshot interface used by the renderers
    # =========================================================================

    def sorted_snapshot(self, out: list[tuple[Key, Value]]) -> None:
        """Replace the contents of `out` with a sorted copy of all tasks."""
        with self._lock:
            out.clear()
            out.extend((key, copy.deepcopy(value)) for key, value in self._tasks.items())
        out.sort(key=lambda entry: entry[0])

    def copy_messages(self, out: list[Message]) -> None:
        with self._lock:
            self._messages.copy_all(out)

    def copy_new_messages(
        self, out: list[Message], previous: Optional[MessageCopyState]
    ) -> MessageCopyState:
        with self._lock:
            return self._messages.copy_new(out, previous)

    def num_tasks(self) -> int:
        with self._lock:
            return len(self._tasks)

    def messages_capacity(self) -> int:
        return self._messages.capacity

    def deep_clone(self) -> Root:
        with self._lock:
            other = Root(self._messages.capacity)
            other._tasks = copy.deepcopy(self._tasks)
            other._child_ids = dict(self._child_ids)
            other._messages = self._messages.clone()
        return other

    def deep_eq(self, other: Root) -> bool:
        if other is self:
            return True
        with self._lock, other._lock:
            return self._tasks == other._tasks and self._messages == other._messages


@dataclass
class Item:
    """Handle to a task in the tree; closing it removes the task and its children."""
    root: Root
    key: Key
    _closed: bool = field(default=False, repr=False)

    def __enter__(self) -> Item:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def add_child(self, name: str) -> Item:
        return self.root._add_child(self.key, name)

    def init(self, max: Optional[int] = None, unit: Optional[str] = None) -> None:
        self.root._update(self.key, step=0, done_at=max, unit=unit)

    def set(self, step: int) -> None:
        self.root._update(self.key, step=step)

    def inc_by(self, step: int) -> None:
        self.root._increment(self.key, step)

    def inc(self) -> None:
        self.inc_by(1)

    def set_name(self, name: str) -> None:
        self.root._update(self.key, name=name)

    def blocked(self, reason: str) -> None:
        self.root._update(self.key, state=ProgressState.BLOCKED, reason=reason)

    def halted(self, reason: str) -> None:
        self.root._update(self.key, state=ProgressState.HALTED, reason=reason)

    def running(self) -> None:
        self.root._update(self.key, state=ProgressState.RUNNING, reason=None)

    def message(self, level: MessageLevel, text: str) -> None:
        self.root._message(self.key, level, text)

    def info(self, text: str) -> None:
        self.message(MessageLevel.INFO, text)

    def done(self, text: str) -> None:
        self.message(MessageLevel.SUCCESS, text)

    def fail(self, text: str) -> None:
        self.message(MessageLevel.FAILURE, text)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.root._remove(self.key)
