"""Terminal abstraction for cbreak-mode stdin/stdout interaction.

Provides the ``Terminal`` and ``InputDevice`` protocols the engine is
written against, plus the concrete ``ProcessTerminal`` (an output stream)
and ``TtyReader`` (cbreak-mode keyboard input) used on a real POSIX tty.
"""

from __future__ import annotations

import codecs
import logging
import os
import re
import select
import sys
import termios
import time
import tty
from typing import Callable, Protocol, TextIO

from cellscreen.cursor import Coordinate
from cellscreen.sequences import (
    ENTER_ALTERNATE_SCREEN,
    LEAVE_ALTERNATE_SCREEN,
    QUERY_CURSOR_POSITION,
    cursor_position,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_PUSH_TITLE = "\x1b[22;0t"
_POP_TITLE = "\x1b[23;0t"
_SET_TITLE_FMT = "\x1b]0;{}\x07"

_CURSOR_REPORT_RE = re.compile(r"\x1b\[(\d+);(\d+)R")

_QUERY_TIMEOUT = 0.5


class ConsoleError(RuntimeError):
    """A terminal handle required by the console could not be obtained."""


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal output operations."""

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def get_cursor_position(self) -> Coordinate: ...

    def set_cursor_position(self, position: Coordinate) -> bool: ...

    def enter_alternate_screen(self) -> bool: ...

    def leave_alternate_screen(self) -> None: ...

    def set_title(self, title: str) -> None: ...

    def restore_title(self) -> None: ...


class InputDevice(Protocol):
    """Source of raw keyboard input."""

    def read(self, timeout: float | None = None) -> str | None: ...

    def discard(self) -> None: ...


# ---------------------------------------------------------------------------
# TtyReader
# ---------------------------------------------------------------------------


class TtyReader:
    """Cbreak-mode reader for ``sys.stdin``.

    Input consumed while waiting for a terminal report (such as a cursor
    position reply) is kept and handed out by the next :meth:`read`.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._fd: int | None = None
        self._original_termios: list | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    @property
    def started(self) -> bool:
        return self._fd is not None

    def start(self) -> None:
        """Put the tty into cbreak mode (no echo, no line buffering)."""
        if self._fd is not None:
            return
        try:
            fd = self._stream.fileno()
        except (AttributeError, ValueError, OSError) as exc:
            raise ConsoleError("standard input has no file descriptor") from exc
        if not os.isatty(fd):
            raise ConsoleError("standard input is not a terminal")
        try:
            self._original_termios = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except termios.error as exc:
            raise ConsoleError(f"cannot configure terminal input: {exc}") from exc
        self._fd = fd

    def stop(self) -> None:
        """Restore the terminal attributes saved by :meth:`start`."""
        if self._fd is None:
            return
        if self._original_termios is not None:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._original_termios)
            self._original_termios = None
        self._fd = None

    def read(self, timeout: float | None = None) -> str | None:
        """Return whatever input is available, waiting at most *timeout* seconds."""
        if self._pending:
            data, self._pending = self._pending, ""
            return data
        return self._read_available(timeout) or None

    def discard(self) -> None:
        self._pending = ""
        if self._fd is not None:
            termios.tcflush(self._fd, termios.TCIFLUSH)

    def query(
        self,
        request: str,
        write: Callable[[str], None],
        pattern: re.Pattern[str],
        timeout: float = _QUERY_TIMEOUT,
    ) -> re.Match[str] | None:
        """Send *request* and wait for a reply matching *pattern*."""
        write(request)
        deadline = time.monotonic() + timeout
        buffer = ""
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            chunk = self._read_available(remaining)
            if chunk is None:
                break
            buffer += chunk
            match = pattern.search(buffer)
            if match:
                self._pending += buffer[:match.start()] + buffer[match.end():]
                return match
        self._pending += buffer
        return None

    def _read_available(self, timeout: float | None) -> str | None:
        if self._fd is None:
            raise ConsoleError("terminal input has not been started")
        ready, _, _ = select.select([self._fd], [], [], timeout)
        if not ready:
            return None
        raw = os.read(self._fd, 1024)
        if not raw:
            return None
        return self._decoder.decode(raw)


# ---------------------------------------------------------------------------
# ProcessTerminal
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal output backed by ``sys.stdout`` (or another tty stream).

    Cursor position queries go through the shared :class:`TtyReader`.  A
    real terminal offers exactly one alternate screen.
    """

    def __init__(self, stream: TextIO | None = None, reader: TtyReader | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._reader = reader
        self._alternate_active = False
        self._last_position = Coordinate()
        self._write_log_path: str = os.environ.get("CELLSCREEN_WRITE_LOG", "")

        try:
            is_tty = self._stream.isatty()
        except (AttributeError, ValueError) as exc:
            raise ConsoleError("output stream is not usable") from exc
        if not is_tty:
            raise ConsoleError("output stream is not a terminal")

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stream.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stream.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to the stream and optionally to the write log."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError:
                pass

    # -- cursor -------------------------------------------------------------

    def get_cursor_position(self) -> Coordinate:
        if self._reader is None or not self._reader.started:
            return self._last_position
        match = self._reader.query(QUERY_CURSOR_POSITION, self._raw_write, _CURSOR_REPORT_RE)
        if match is None:
            logger.warning("no cursor position report received")
            return self._last_position
        self._last_position = Coordinate(int(match.group(2)) - 1, int(match.group(1)) - 1)
        return self._last_position

    def set_cursor_position(self, position: Coordinate) -> bool:
        if not (0 <= position.x < self.columns and 0 <= position.y < self.rows):
            return False
        self._raw_write(cursor_position(position.x, position.y))
        self._last_position = position
        return True

    # -- alternate screen ---------------------------------------------------

    def enter_alternate_screen(self) -> bool:
        if self._alternate_active:
            return False
        self._raw_write(ENTER_ALTERNATE_SCREEN)
        self._alternate_active = True
        return True

    def leave_alternate_screen(self) -> None:
        if self._alternate_active:
            self._raw_write(LEAVE_ALTERNATE_SCREEN)
            self._alternate_active = False

    # -- title --------------------------------------------------------------

    def set_title(self, title: str) -> None:
        self._raw_write(_PUSH_TITLE + _SET_TITLE_FMT.format(title))

    def restore_title(self) -> None:
        self._raw_write(_POP_TITLE)

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        """Write directly to the stream, bypassing buffering."""
        try:
            self._stream.write(data)
            self._stream.flush()
        except OSError:
            pass
