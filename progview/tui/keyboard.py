"""Keyboard input for the dashboard.

Reading a key blocks, so it happens on a dedicated thread. Keys are handed to
the event loop through a queue holding a single key: while the loop is busy
the reader thread waits, which throttles key repeat without dropping keys.
"""

import asyncio
import concurrent.futures
import fcntl
import os
import threading
import time
from typing import AsyncIterator, Optional

ESCAPE_SEQUENCES = {
    "[A": "up",
    "OA": "up",
    "[B": "down",
    "OB": "down",
    "[C": "right",
    "OC": "right",
    "[D": "left",
    "OD": "left",
    "[5~": "page_up",
    "[6~": "page_down",
    "[H": "home",
    "[1~": "home",
    "OH": "home",
    "[F": "end",
    "[4~": "end",
    "OF": "end",
    "[3~": "delete",
}

CONTROL_KEYS = {
    "\r": "enter",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
}


def parse_escape(seq: str) -> str:
    """Name the key for the bytes following an ESC character.

    An ESC with nothing after it is the Escape key itself.
    """
    if not seq:
        return "esc"
    if seq in ESCAPE_SEQUENCES:
        return ESCAPE_SEQUENCES[seq]
    if len(seq) == 1:
        return f"alt+{seq}"
    return ""


def parse_char(ch: str) -> str:
    """Name the key for a single character that is not ESC."""
    if ch in CONTROL_KEYS:
        return CONTROL_KEYS[ch]
    code = ord(ch)
    if code < 0x20:
        return f"ctrl+{chr(code + 0x60)}"
    return ch


def decode_key(fd: int) -> Optional[str]:
    """Block until a key arrives on `fd` and return its name.

    Returns None at end of input and "" for byte sequences without a name.
    """
    data = os.read(fd, 1)
    if not data:
        return None
    first = data[0]
    if first >= 0x80:
        # read the rest of a UTF-8 encoded character
        length = 2 if first < 0xE0 else 3 if first < 0xF0 else 4
        data += os.read(fd, length - 1)
        return data.decode("utf-8", errors="ignore")
    ch = chr(first)
    if ch != "\x1b":
        return parse_char(ch)

    old_flags = fcntl.fcntl(fd, fcntl.F_GETFL)
    fcntl.fcntl(fd, fcntl.F_SETFL, old_flags | os.O_NONBLOCK)
    try:
        time.sleep(0.02)
        try:
            seq = os.read(fd, 5)
        except BlockingIOError:
            seq = b""
    finally:
        fcntl.fcntl(fd, fcntl.F_SETFL, old_flags)
    return parse_escape(seq.decode("utf-8", errors="ignore"))


class KeyboardBridge:
    """Owns the blocking key reads and forwards keys to an asyncio loop.

    `keys()` yields the keys in the order they were read and ends when the
    input ends or a read fails.
    """

    def __init__(self, fd: int, loop: asyncio.AbstractEventLoop):
        self.fd = fd
        self.loop = loop
        self.queue: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=1)
        self.error: Optional[OSError] = None
        self._thread = threading.Thread(target=self._read_keys, daemon=True, name="progview-keys")

    def start(self) -> "KeyboardBridge":
        self._thread.start()
        return self

    def _send(self, key: Optional[str]) -> bool:
        if self.loop.is_closed():
            return False
        try:
            future = asyncio.run_coroutine_threadsafe(self.queue.put(key), self.loop)
        except RuntimeError:
            # the event loop is shutting down
            return False
        try:
            future.result()
        except concurrent.futures.CancelledError:
            return False
        return True

    def _read_keys(self) -> None:
        try:
            while True:
                key = decode_key(self.fd)
                if key is None:
                    break
                if key and not self._send(key):
                    return
        except OSError as err:
            self.error = err
        self._send(None)

    async def keys(self) -> AsyncIterator[str]:
        while True:
            key = await self.queue.get()
            if key is None:
                return
            yield key
