"""Keyboard input parsing for the menu engine.

Turns one complete raw input sequence (as split by
:mod:`cellscreen.input_source`) into a key identifier such as ``"up"``,
``"shift+delete"`` or ``"a"``.  Only the legacy xterm/VT encodings are
understood; the terminal is never switched into an extended keyboard
protocol.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from wcwidth import wcwidth

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"


# ---------------------------------------------------------------------------
# Escape sequence decoding
# ---------------------------------------------------------------------------

# CSI sequences: ESC [ [code] [; modifier] final
_CSI_RE = re.compile(r"\x1b\[(?:(\d+)(?:;(\d+))?)?([A-DFHZ~])")

_CSI_FINALS: dict[str, KeyId] = {
    "A": Key.up,
    "B": Key.down,
    "C": Key.right,
    "D": Key.left,
    "H": Key.home,
    "F": Key.end,
}

_TILDE_CODES: dict[str, KeyId] = {
    "1": Key.home,
    "2": Key.insert,
    "3": Key.delete,
    "4": Key.end,
    "5": Key.page_up,
    "6": Key.page_down,
}

_SS3_FINALS: dict[str, KeyId] = {
    **_CSI_FINALS,
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

# xterm modifier parameter -> combinator
_MODIFIERS = {
    "2": Key.shift,
    "3": Key.alt,
    "5": Key.ctrl,
}

_SINGLE_KEYS: dict[str, KeyId] = {
    "\x1b": Key.escape,
    "\r": Key.enter,
    "\n": Key.enter,
    "\t": Key.tab,
    " ": Key.space,
    "\x7f": Key.backspace,
    "\x08": Key.backspace,
    "\x00": Key.ctrl(Key.space),
}


def _parse_csi(data: str) -> KeyId | None:
    match = _CSI_RE.fullmatch(data)
    if match is None:
        return None
    code, modifier, final = match.groups()

    if final == "Z":
        return Key.shift(Key.tab) if code is None else None
    if final == "~":
        key = _TILDE_CODES.get(code or "")
    elif code in (None, "1"):
        key = _CSI_FINALS.get(final)
    else:
        key = None
    if key is None:
        return None

    if modifier is None:
        return key
    combine = _MODIFIERS.get(modifier)
    return combine(key) if combine is not None else None


# ---------------------------------------------------------------------------
# parse_key -- determine what key was pressed from raw input
# ---------------------------------------------------------------------------


def parse_key(data: str) -> KeyId | None:
    """Parse one complete raw input sequence into a key identifier.

    Returns ``None`` for empty input and for sequences that name no key
    the menu engine knows about.
    """
    if not data:
        return None
    if data in _SINGLE_KEYS:
        return _SINGLE_KEYS[data]

    if data.startswith("\x1b["):
        return _parse_csi(data)
    if data.startswith("\x1bO") and len(data) == 3:
        return _SS3_FINALS.get(data[2])

    if len(data) == 1:
        # Ctrl + letter (0x01 - 0x1a)
        if 1 <= ord(data) <= 26:
            return Key.ctrl(chr(ord(data) + ord("a") - 1))
        return data if data.isprintable() else None

    # Alt + key (ESC prefix)
    if len(data) == 2 and data[0] == "\x1b":
        ch = data[1]
        if ch in ("\r", "\n"):
            return Key.alt(Key.enter)
        if ch in ("\x7f", "\x08"):
            return Key.alt(Key.backspace)
        if ch.isprintable():
            return Key.alt(ch.lower())

    return None

# ---------------------------------------------------------------------------
# Key events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """One key press: its identifier and the raw data that produced it."""

    key: KeyId | None
    data: str

    @classmethod
    def from_data(cls, data: str) -> KeyEvent:
        return cls(parse_key(data), data)

    @property
    def char(self) -> str | None:
        """The printable character typed, if the key produced one."""
        if len(self.data) != 1 or wcwidth(self.data) <= 0:
            return None
        return self.data

    def is_digit_hotkey(self) -> bool:
        return self.char is not None and "1" <= self.char <= "9"
