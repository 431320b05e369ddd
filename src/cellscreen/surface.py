"""Output surface: a virtual model of what a terminal is showing.

An :class:`OutputSurface` wraps a :class:`~cellscreen.terminal.Terminal`
and keeps a stack of :class:`SurfaceState` objects.  Index 0 is the main
state; every pushed alternate context adds one more.  Alternates are either
emulated (the real screen is cleared and redrawn from the stored lines on
pop) or native (the terminal's own alternate screen is used).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from cellscreen.cursor import Coordinate, CursorTracker
from cellscreen.line_store import LineStore
from cellscreen.sequences import ERASE_BELOW, HIDE_CURSOR, SHOW_CURSOR, moves_cursor
from cellscreen.terminal import Terminal

logger = logging.getLogger(__name__)


@dataclass
class SurfaceState:
    """Stored lines and cursor bookkeeping for one display context.

    ``top_row`` is the screen row where stored row 0 currently sits; it
    goes negative once that row has scrolled out of view.
    """

    cursor: CursorTracker = field(default_factory=CursorTracker)
    lines: LineStore = field(default_factory=LineStore)
    top_row: int = 0
    native: bool = False


class OutputSurface:
    def __init__(
        self,
        terminal: Terminal,
        *,
        emulate_alternates: bool = True,
        name: str = "out",
    ) -> None:
        self._terminal = terminal
        self._emulate_alternates = emulate_alternates
        self.name = name

        anchor = terminal.get_cursor_position()
        # Last known cursor position; None until the terminal is asked again.
        self._cursor: Coordinate | None = anchor
        self._states: list[SurfaceState] = [
            SurfaceState(cursor=CursorTracker(start_anchor=anchor), top_row=anchor.y)
        ]

    # -- state access -------------------------------------------------------

    @property
    def terminal(self) -> Terminal:
        return self._terminal

    @property
    def emulate_alternates(self) -> bool:
        return self._emulate_alternates

    @property
    def main(self) -> SurfaceState:
        return self._states[0]

    @property
    def active(self) -> SurfaceState:
        return self._states[-1]

    @property
    def _anchor_state(self) -> SurfaceState:
        # Emulated alternates draw from the main surface's anchor.
        return self.main if self._emulate_alternates else self.active

    @property
    def depth(self) -> int:
        """Number of alternate contexts currently pushed."""
        return len(self._states) - 1

    @property
    def scroll_offset(self) -> int:
        return self.active.cursor.scroll_offset

    @property
    def start_anchor(self) -> Coordinate:
        return self._anchor_state.cursor.start_anchor

    @property
    def cursor_visible(self) -> bool:
        return self.active.cursor.visible

    @property
    def width(self) -> int:
        return self._terminal.columns

    @property
    def lines(self) -> list[str]:
        """Rendered text of every stored line of the active state."""
        return self.active.lines.texts()

    def line_text(self, row: int) -> str:
        lines = self.active.lines
        if row < 0 or row >= len(lines):
            return ""
        return lines[row].plain

    # -- printing -----------------------------------------------------------

    def print(self, text: object = "", add_to_buffer: bool = True) -> OutputSurface:
        """Write *text* to the terminal, mirroring it into the active state.

        With ``add_to_buffer=False`` the text only reaches the terminal; the
        stored lines are left alone (used when redrawing stored content).
        """
        text = str(text)
        if not text:
            return self

        state = self.active
        before = self._cursor if self._cursor is not None else self._query_cursor()
        expected = state.lines.record(
            text, before, state.top_row, self.width, store=add_to_buffer
        )

        self._terminal.write(text)

        if moves_cursor(text):
            self._cursor = None
            return self

        if expected.y != before.y:
            # Rows the cursor should have moved down but did not were scrolled.
            after = self._query_cursor()
            scrolled = expected.y - after.y
            if scrolled > 0:
                self._record_scroll(scrolled)
            expected = Coordinate(expected.x, after.y)
        self._cursor = expected
        return self

    def println(self, text: object = "", add_to_buffer: bool = True) -> OutputSurface:
        return self.print(f"{text}\n", add_to_buffer)

    def printsp(self, text: object = "", add_to_buffer: bool = True) -> OutputSurface:
        return self.print(f"{text} ", add_to_buffer)

    def printf(self, template: str, *args: object, **kwargs: object) -> OutputSurface:
        return self.print(template.format(*args, **kwargs))

    def printfln(self, template: str, *args: object, **kwargs: object) -> OutputSurface:
        return self.println(template.format(*args, **kwargs))

    def printfsp(self, template: str, *args: object, **kwargs: object) -> OutputSurface:
        return self.printsp(template.format(*args, **kwargs))

    def _record_scroll(self, rows: int) -> None:
        state = self.active
        state.cursor.record_scroll(rows)
        state.top_row -= rows
        anchor_state = self._anchor_state
        anchor_state.cursor.shift_anchor(rows)
        if anchor_state is not state:
            anchor_state.top_row -= rows
        logger.debug(
            "%s: terminal scrolled %d row(s), offset now %d",
            self.name, rows, state.cursor.scroll_offset,
        )

    # -- cursor -------------------------------------------------------------

    def get_cursor_position(self) -> Coordinate:
        """The cursor position, queried from the terminal only when unknown.

        A cursor pending a wrap after the last column reports that column.
        """
        cursor = self._cursor if self._cursor is not None else self._query_cursor()
        return Coordinate(min(cursor.x, self.width - 1), cursor.y)

    def _query_cursor(self) -> Coordinate:
        self._cursor = self._terminal.get_cursor_position()
        return self._cursor

    def set_cursor_position(self, position: Coordinate) -> bool:
        if not self._terminal.set_cursor_position(position):
            logger.warning("%s: cannot move cursor to %s", self.name, position)
            self._cursor = None
            return False
        self._cursor = position
        return True

    def save_cursor_position(self, position: Coordinate | None = None) -> bool:
        """Push *position* (default: the current cursor) onto the saved stack."""
        if position is None:
            position = self.get_cursor_position()
        if not (0 <= position.x < self.width and 0 <= position.y < self._terminal.rows):
            return False
        self.active.cursor.save(position)
        return True

    def restore_saved_cursor_position(self) -> Coordinate | None:
        position = self.active.cursor.restore()
        if position is not None:
            self.set_cursor_position(position)
        return position

    def toggle_cursor_visibility(self, visible: bool | None = None) -> bool:
        """Show or hide the cursor; ``None`` flips the current visibility."""
        state = self.active
        if visible is None:
            visible = not state.cursor.visible
        state.cursor.visible = visible
        self._terminal.write(SHOW_CURSOR if visible else HIDE_CURSOR)
        return visible

    def _sync_visibility(self, previous: bool) -> None:
        current = self.active.cursor.visible
        if current != previous:
            self._terminal.write(SHOW_CURSOR if current else HIDE_CURSOR)

    # -- clearing -----------------------------------------------------------

    def clear(self, clear_buffer: bool = False, reset_cursor: bool = True) -> OutputSurface:
        """Erase the display below the anchor (or below the cursor).

        ``clear_buffer`` also drops the active state's stored lines.
        """
        state = self.active
        anchor = self._anchor_state.cursor.start_anchor
        if clear_buffer:
            state.lines.clear()
            state.top_row = anchor.y
        if reset_cursor:
            self.set_cursor_position(anchor)
        self._terminal.write(ERASE_BELOW)
        return self

    # -- alternate contexts -------------------------------------------------

    def push_alternate(self) -> int | None:
        """Open a new alternate context and return its 1-based depth.

        Returns ``None`` if the terminal cannot provide another native
        alternate screen.
        """
        previous = self.active.cursor.visible

        if self._emulate_alternates:
            self.clear()
            anchor = self.main.cursor.start_anchor
            self._states.append(
                SurfaceState(cursor=CursorTracker(start_anchor=anchor), top_row=anchor.y)
            )
        else:
            if not self._terminal.enter_alternate_screen():
                logger.warning(
                    "%s: no alternate screen available at depth %d",
                    self.name, self.depth + 1,
                )
                return None
            self._states.append(SurfaceState(native=True))
            self.set_cursor_position(Coordinate(0, 0))
            self._terminal.write(ERASE_BELOW)

        self._sync_visibility(previous)
        logger.debug("%s: pushed alternate context, depth %d", self.name, self.depth)
        return self.depth

    def pop_alternate(self) -> int:
        """Close the innermost alternate context and return the new depth."""
        if self.depth == 0:
            return 0

        outgoing = self.active
        if outgoing.native:
            self._states.pop()
            self._terminal.leave_alternate_screen()
            self._cursor = None
        else:
            self.clear(clear_buffer=True)
            self._states.pop()
            self._replay(self.active)

        self._sync_visibility(outgoing.cursor.visible)
        logger.debug("%s: popped alternate context, depth %d", self.name, self.depth)
        return self.depth

    def _replay(self, state: SurfaceState) -> None:
        anchor = self.main.cursor.start_anchor
        state.top_row = anchor.y
        for row, line in enumerate(state.lines):
            if row:
                self.print("\n", add_to_buffer=False)
            self.print(line.text_from(anchor.x if row == 0 else 0), add_to_buffer=False)

    def close(self) -> None:
        """Pop every alternate context and leave the cursor visible."""
        while self.depth:
            self.pop_alternate()
        if not self.active.cursor.visible:
            self.toggle_cursor_visibility(True)
