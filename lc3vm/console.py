"""Keyboard sources for the LC-3 keyboard device and terminal set-up."""

from __future__ import annotations

import abc
import contextlib
import os
import select
import sys
from collections import deque
from typing import IO, Iterator, Optional, Union

try:
    import termios
except ImportError:  # pragma: no cover - non-POSIX platforms
    termios = None  # type: ignore[assignment]

EOF = -1


class Keyboard(abc.ABC):
    """A source of key presses for the virtual machine."""

    @abc.abstractmethod
    def check_key(self) -> bool:
        """Return True if a key is waiting to be read, without blocking."""

    @abc.abstractmethod
    def getchar(self) -> int:
        """Return the next byte of input, or -1 at end of input."""


class BufferedKeyboard(Keyboard):
    """A keyboard fed from a fixed block of bytes, for scripted input."""

    def __init__(self, data: Union[bytes, str] = b"") -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._pending = deque(data)

    def check_key(self) -> bool:
        return bool(self._pending)

    def getchar(self) -> int:
        return self._pending.popleft() if self._pending else EOF


class TerminalKeyboard(Keyboard):
    """A keyboard reading raw bytes from a file descriptor such as stdin."""

    def __init__(self, stream: Optional[IO] = None) -> None:
        self._stream = sys.stdin if stream is None else stream

    def _fd(self) -> int:
        return self._stream.fileno()

    def check_key(self) -> bool:
        readable, _, _ = select.select([self._fd()], [], [], 0)
        return bool(readable)

    def getchar(self) -> int:
        data = os.read(self._fd(), 1)
        return data[0] if data else EOF


@contextlib.contextmanager
def raw_mode(stream: Optional[IO] = None) -> Iterator[IO]:
    """Turn off line buffering and echo on a terminal for the duration.

    Streams that are not terminals are yielded unchanged.
    """
    stream = sys.stdin if stream is None else stream
    try:
        fd: Optional[int] = stream.fileno()
    except (AttributeError, OSError, ValueError):
        fd = None

    if termios is None or fd is None or not os.isatty(fd):
        yield stream
        return

    original = termios.tcgetattr(fd)
    changed = termios.tcgetattr(fd)
    changed[3] &= ~(termios.ICANON | termios.ECHO)
    termios.tcsetattr(fd, termios.TCSANOW, changed)
    try:
        yield stream
    finally:
        termios.tcsetattr(fd, termios.TCSANOW, original)