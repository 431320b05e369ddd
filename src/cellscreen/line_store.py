"""Virtual line storage.

Every on-screen row a surface has written to is mirrored by a
:class:`VirtualLine`.  A line is a list of *units*: each unit is either a
single visible character or a whole control sequence.  ``columns[x]`` is
the index of the unit rendered at screen column ``x``; the units between
the previous column's unit and that index are the zero-width sequences
that precede it.  Together they form the column's *span*.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cellscreen.cursor import Coordinate
from cellscreen.sequences import ESC, classify_sequence, strip_sequences


@dataclass
class VirtualLine:
    chars: list[str] = field(default_factory=list)
    columns: list[int] = field(default_factory=list)

    @property
    def width(self) -> int:
        """Number of rendered columns stored on this line."""
        return len(self.columns)

    @property
    def text(self) -> str:
        """The line content including zero-width sequences."""
        return "".join(self.chars)

    @property
    def plain(self) -> str:
        """The rendered text of the line, sequences removed."""
        return strip_sequences(self.text)

    def span(self, column: int) -> tuple[int, int]:
        """Return the ``[start, end)`` unit range occupied by *column*."""
        start = self.columns[column - 1] + 1 if column > 0 else 0
        return start, self.columns[column] + 1

    def text_from(self, column: int) -> str:
        """Content from the span of *column* to the end of the line."""
        if column <= 0:
            return self.text
        if column >= self.width:
            return "".join(self.chars[self.columns[-1] + 1:]) if self.columns else self.text
        start, _ = self.span(column)
        return "".join(self.chars[start:])

    def pad_to(self, column: int) -> None:
        """Fill with blanks so that *column* is the next column to append."""
        while self.width < column:
            self.chars.append(" ")
            self.columns.append(len(self.chars) - 1)

    def put(self, column: int, char: str, leading: list[str] | None = None) -> None:
        """Write *char* at *column*, preceded by the zero-width *leading* units.

        Appends past the end of the line, otherwise replaces the whole span
        previously occupying the column.
        """
        units = list(leading or ()) + [char]
        if column >= self.width:
            self.pad_to(column)
            self.chars.extend(units)
            self.columns.append(len(self.chars) - 1)
            return

        start, end = self.span(column)
        self.chars[start:end] = units
        delta = len(units) - (end - start)
        self.columns[column] = start + len(units) - 1
        for later in range(column + 1, self.width):
            self.columns[later] += delta

    def put_zero_width(self, column: int, units: list[str]) -> None:
        """Insert zero-width units in front of whatever sits at *column*."""
        if not units:
            return
        if column >= self.width:
            self.pad_to(column)
            self.chars.extend(units)
            return

        start, _ = self.span(column)
        self.chars[start:start] = units
        for later in range(column, self.width):
            self.columns[later] += len(units)


class LineStore:
    """Ordered rows of :class:`VirtualLine` for one surface state."""

    def __init__(self) -> None:
        self._lines: list[VirtualLine] = []

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(self._lines)

    def __getitem__(self, row: int) -> VirtualLine:
        return self._lines[row]

    def line(self, row: int) -> VirtualLine:
        """Return row *row*, creating empty rows up to it as needed."""
        while len(self._lines) <= row:
            self._lines.append(VirtualLine())
        return self._lines[row]

    def clear(self) -> None:
        self._lines.clear()

    def texts(self) -> list[str]:
        return [line.plain for line in self._lines]

    def record(
        self,
        text: str,
        cursor: Coordinate,
        top_row: int,
        width: int,
        store: bool = True,
    ) -> Coordinate:
        """Mirror printing *text* at *cursor* into the stored lines.

        *top_row* is the screen row of stored row 0 and *width* the surface
        width in columns.  Cells above the stored rows are not tracked.
        Returns the cursor position the terminal is expected to end at,
        ignoring any scrolling.  After the last column the cursor is left
        pending at ``x == width`` and only wraps before the next printable
        character, as terminals do.  With ``store=False`` nothing is
        written and only the end position is computed.
        """
        x, y = cursor.x, cursor.y
        pending: list[str] = []
        pos = 0

        def stored(row: int) -> bool:
            return store and row - top_row >= 0

        def flush() -> None:
            if pending and stored(y):
                self.line(y - top_row).put_zero_width(x, list(pending))
            pending.clear()

        while pos < len(text):
            char = text[pos]

            if char == ESC:
                match = classify_sequence(text, pos)
                if match is not None:
                    pending.append(text[pos:pos + match.length])
                    pos += match.length
                    continue

            pos += 1
            if char == "\n":
                flush()
                x = 0
                y += 1
                if stored(y):
                    self.line(y - top_row)
                continue
            if char == "\r":
                flush()
                x = 0
                continue
            if char == "\b":
                flush()
                x = max(min(x, width - 1) - 1, 0)
                continue
            if char != ESC and (ord(char) < 0x20 or char == "\x7f"):
                pending.append(char)
                continue

            if x >= width:
                x = 0
                y += 1
            if stored(y):
                self.line(y - top_row).put(x, char, pending)
            pending.clear()
            x += 1

        flush()
        return Coordinate(x, y)
