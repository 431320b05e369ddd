"""Cursor coordinates and per-surface cursor bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Coordinate:
    """A 0-based cell position relative to the visible viewport."""

    x: int = 0
    y: int = 0

    def offset(self, dx: int = 0, dy: int = 0) -> Coordinate:
        return Coordinate(self.x + dx, self.y + dy)


@dataclass
class CursorTracker:
    """Anchor, scroll offset, saved positions and visibility of one surface state.

    ``scroll_offset`` only ever grows: it counts the rows the real terminal
    scrolled away while this state was active.
    """

    start_anchor: Coordinate = field(default_factory=Coordinate)
    scroll_offset: int = 0
    saved: list[Coordinate] = field(default_factory=list)
    visible: bool = True

    def save(self, position: Coordinate) -> None:
        self.saved.append(position)

    def restore(self) -> Coordinate | None:
        """Pop the most recently saved position, or ``None`` if there is none."""
        if not self.saved:
            return None
        return self.saved.pop()

    def record_scroll(self, rows: int) -> None:
        """Account for *rows* lines scrolled off the top of the viewport."""
        if rows <= 0:
            return
        self.scroll_offset += rows
        self.saved = [replace(pos, y=max(pos.y - rows, 0)) for pos in self.saved]

    def shift_anchor(self, rows: int) -> None:
        anchor = self.start_anchor
        self.start_anchor = replace(anchor, y=max(anchor.y - rows, 0))
