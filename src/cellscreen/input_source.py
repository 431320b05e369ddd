"""Blocking keyboard input with a small read-ahead cache.

Raw input arrives in arbitrary chunks.  It is split into complete key
sequences, at most ``batch_size`` at a time, and parsed into
:class:`~cellscreen.keys.KeyEvent` objects that are handed out one per
call.  A lone escape character is held back briefly in case it starts a
longer sequence.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from typing import Callable

from cellscreen.keys import KeyEvent
from cellscreen.terminal import InputDevice

logger = logging.getLogger(__name__)

ESC = "\x1b"


# ---------------------------------------------------------------------------
# Sequence splitting
# ---------------------------------------------------------------------------


def _is_complete_sequence(data: str) -> str:
    """Check if a string is a complete escape sequence or needs more data.

    Returns 'complete', 'incomplete', or 'not-escape'.
    """
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI sequences: ESC [
    if after_esc.startswith("["):
        if len(data) < 3:
            return "incomplete"
        return "complete" if 0x40 <= ord(data[-1]) <= 0x7E else "incomplete"

    # OSC sequences: ESC ]
    if after_esc.startswith("]"):
        if data.endswith(f"{ESC}\\") or data.endswith("\x07"):
            return "complete"
        return "incomplete"

    # SS3 sequences: ESC O
    if after_esc.startswith("O"):
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # Meta key sequences: ESC followed by a single character
    return "complete"


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split accumulated input into complete sequences.

    Returns (sequences, remainder), where the remainder is an escape
    sequence still waiting for more data.
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            candidate = remaining[:seq_end]
            if _is_complete_sequence(candidate) == "incomplete":
                seq_end += 1
                continue
            sequences.append(candidate)
            pos += seq_end
            break
        else:
            return sequences, remaining

    return sequences, ""


# ---------------------------------------------------------------------------
# InputSource
# ---------------------------------------------------------------------------


class InputSource:
    """Key event retrieval on top of an :class:`InputDevice`."""

    def __init__(
        self,
        device: InputDevice,
        *,
        batch_size: int = 10,
        escape_timeout: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._device = device
        self._batch_size = max(batch_size, 1)
        self._escape_timeout = escape_timeout
        self._clock = clock
        self._events: deque[KeyEvent] = deque()
        self._raw = ""

    @property
    def device(self) -> InputDevice:
        return self._device

    def discard(self) -> None:
        """Drop every buffered but unconsumed key press."""
        self._events.clear()
        self._raw = ""
        self._device.discard()

    # -- batching -----------------------------------------------------------

    def _split(self) -> None:
        sequences, remainder = split_sequences(self._raw)
        batch = sequences[:self._batch_size]
        self._raw = "".join(sequences[self._batch_size:]) + remainder
        self._events.extend(KeyEvent.from_data(seq) for seq in batch)

    def _fill(self, timeout: float | None) -> None:
        if self._raw:
            # Only an unfinished escape sequence is left over.
            wait = self._escape_timeout if timeout is None else min(timeout, self._escape_timeout)
            data = self._device.read(wait)
            if data is None:
                self._events.append(KeyEvent.from_data(self._raw))
                self._raw = ""
                return
        else:
            data = self._device.read(timeout)
            if data is None:
                return
        self._raw += data
        self._split()

    # -- public API ---------------------------------------------------------

    def wait_for_event(self, flush: bool = False, timeout: float | None = None) -> KeyEvent | None:
        """Block until a key press arrives or *timeout* seconds elapse.

        Returns ``None`` on timeout.  Ctrl+C raises :class:`KeyboardInterrupt`.
        """
        if flush:
            self.discard()

        deadline = None if timeout is None else self._clock() + timeout
        polled = False
        while True:
            while self._events:
                event = self._events.popleft()
                if event.key == "ctrl+c":
                    raise KeyboardInterrupt
                if event.key is None:
                    logger.debug("ignoring unrecognised input %r", event.data)
                    continue
                return event

            if self._raw:
                self._split()
                if self._events:
                    continue

            remaining = None
            if deadline is not None:
                remaining = max(deadline - self._clock(), 0.0)
                if remaining <= 0 and polled:
                    return None
            polled = True
            self._fill(remaining)

    def wait_for_char(self, flush: bool = False, timeout: float | None = None) -> str | None:
        """Wait for a printable character; Escape or a timeout yield ``None``.

        The timeout restarts after every non-printable key press.
        """
        while True:
            event = self.wait_for_event(flush, timeout)
            flush = False
            if event is None or event.key == "escape":
                return None
            if event.char is not None:
                return event.char

    def wait_for_line(
        self,
        max_length: int,
        echo: Callable[[str], None] | None = None,
        erase: Callable[[], None] | None = None,
    ) -> str | None:
        """Read a line terminated by Enter.

        Characters beyond *max_length* are consumed but dropped.  Escape or
        an empty line return ``None``.
        """
        chars: list[str] = []
        while True:
            event = self.wait_for_event()
            if event is None:
                continue
            if event.key == "enter":
                break
            if event.key == "escape":
                return None
            if event.key == "backspace":
                if chars:
                    chars.pop()
                    if erase is not None:
                        erase()
                continue
            char = event.char
            if char is None or len(chars) >= max_length:
                continue
            chars.append(char)
            if echo is not None:
                echo(char)

        return "".join(chars) or None
