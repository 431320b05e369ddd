"""Control-sequence recognition and construction.

The classifier decides whether an escape character at a given position
starts one of the directives the surface understands, and how many
characters that directive spans.  Recognised directives are treated as a
single zero-width unit by the line store; anything else is a literal
escape character.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

ESC = "\x1b"
CSI = "\x1b["

ARROW_UP = "↑"
ARROW_DOWN = "↓"

# ---------------------------------------------------------------------------
# Sequence kinds
# ---------------------------------------------------------------------------


class SequenceKind(enum.Enum):
    """Directive families recognised by :func:`classify_sequence`."""

    CURSOR_MOVE = "cursor_move"
    CURSOR_VISIBILITY = "cursor_visibility"
    CURSOR_SAVE_RESTORE = "cursor_save_restore"
    COLOR = "color"
    ERASE = "erase"
    SCROLL = "scroll"
    QUERY = "query"
    PALETTE = "palette"
    MODE = "mode"


@dataclass(frozen=True)
class SequenceMatch:
    kind: SequenceKind
    length: int


# Order matters: more specific shapes come before the generic ones that
# would otherwise swallow a prefix of them.
_SEQUENCE_TABLE: list[tuple[SequenceKind, re.Pattern[str]]] = [
    (SequenceKind.PALETTE, re.compile(r"\x1b\]4;\d{1,3};rgb;\d{1,3};\d{1,3};\d{1,3}\x07")),
    (SequenceKind.CURSOR_MOVE, re.compile(r"\x1b\[\d{1,3};\d{1,3}[fH]")),
    (SequenceKind.COLOR, re.compile(r"\x1b\[[34]8;(?:2;\d{1,3};\d{1,3};\d{1,3}|5;\d{1,3})m")),
    (SequenceKind.COLOR, re.compile(r"\x1b\[\d{0,3}(?:;\d{1,3})*m")),
    (SequenceKind.CURSOR_VISIBILITY, re.compile(r"\x1b\[\?25[hl]")),
    (SequenceKind.CURSOR_SAVE_RESTORE, re.compile(r"\x1b[78]|\x1b\[[su]")),
    (SequenceKind.ERASE, re.compile(r"\x1b\[[0-2]?[JK]")),
    (SequenceKind.CURSOR_MOVE, re.compile(r"\x1b\[\d{0,4}[ABCDEFGHd]")),
    (SequenceKind.SCROLL, re.compile(r"\x1b\[\d{0,4}[ST]")),
    (SequenceKind.QUERY, re.compile(r"\x1b\[\d{0,4}n")),
    (SequenceKind.MODE, re.compile(r"\x1b\[!p|\x1b\[\??\d{0,4} ?[a-zA-Z]|\x1b\([0B]|\x1b[\w=>]")),
]


def classify_sequence(text: str, pos: int = 0) -> SequenceMatch | None:
    """Classify the control sequence starting at ``text[pos]``.

    Returns ``None`` when ``text[pos]`` is not an escape character or the
    characters following it do not form a recognised directive.
    """
    if pos >= len(text) or text[pos] != ESC:
        return None
    for kind, pattern in _SEQUENCE_TABLE:
        match = pattern.match(text, pos)
        if match:
            return SequenceMatch(kind, match.end() - pos)
    return None


def strip_sequences(text: str) -> str:
    """Return *text* with every recognised control sequence removed."""
    parts: list[str] = []
    pos = 0
    while pos < len(text):
        match = classify_sequence(text, pos)
        if match is not None:
            pos += match.length
            continue
        parts.append(text[pos])
        pos += 1
    return "".join(parts)


def visible_length(text: str) -> int:
    """Number of columns *text* occupies (one per non-sequence character)."""
    return len(strip_sequences(text))


_REPOSITIONING = {
    SequenceKind.CURSOR_MOVE,
    SequenceKind.CURSOR_SAVE_RESTORE,
    SequenceKind.SCROLL,
}


def moves_cursor(text: str) -> bool:
    """True if *text* contains a directive that repositions the cursor."""
    pos = text.find(ESC)
    while pos != -1:
        match = classify_sequence(text, pos)
        if match is not None and match.kind in _REPOSITIONING:
            return True
        pos = text.find(ESC, pos + 1)
    return False


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

SHOW_CURSOR = "\x1b[?25h"
HIDE_CURSOR = "\x1b[?25l"
ERASE_BELOW = "\x1b[0J"
ERASE_LINE_RIGHT = "\x1b[0K"
DEFAULT_FOREGROUND = "\x1b[39m"
GRAY_FOREGROUND = "\x1b[90m"
QUERY_CURSOR_POSITION = "\x1b[6n"
ENTER_ALTERNATE_SCREEN = "\x1b[?1049h"
LEAVE_ALTERNATE_SCREEN = "\x1b[?1049l"


def cursor_position(x: int, y: int) -> str:
    """Absolute move to 0-based column *x*, row *y*."""
    return f"{CSI}{y + 1};{x + 1}H"


def cursor_up(lines: int = 1) -> str:
    return f"{CSI}{lines}A"


def cursor_down(lines: int = 1) -> str:
    return f"{CSI}{lines}B"


def sgr(*params: int) -> str:
    return f"{CSI}{';'.join(str(p) for p in params)}m"


def palette_color(index: int, red: int, green: int, blue: int) -> str:
    """Assign an RGB value to palette register *index*."""
    return f"\x1b]4;{index};rgb;{red};{green};{blue}\x07"
