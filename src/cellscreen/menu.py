"""Menu model: options, viewport, selection and status message.

A :class:`MenuModel` holds everything needed to draw one paginated menu
and to move its selection.  Drawing itself is done by the console
(:meth:`cellscreen.console.Console.render_menu`); the model only decides
which rows are visible through :meth:`MenuModel.layout`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Literal

from cellscreen.cursor import Coordinate
from cellscreen.sequences import visible_length

if TYPE_CHECKING:
    from cellscreen.actions import ActionHandler

logger = logging.getLogger(__name__)

DEFAULT_MAX_VISIBLE_LINES = 9
DEFAULT_STATUS_LIFETIME = 5.0
LEFT_PADDING = "   "
RIGHT_PADDING = "   "


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


@dataclass
class Padding:
    top: bool = False
    left: bool = False
    right: bool = False
    bottom: bool = False


@dataclass
class MenuOption:
    """A selectable menu entry.

    ``hotkey`` is stored lower-case; options without one are labelled with a
    running number instead.
    """

    text: str
    hotkey: str | None = None
    disabled: bool = False
    padding: Padding = field(default_factory=Padding)

    def __post_init__(self) -> None:
        if self.hotkey is not None:
            if len(self.hotkey) != 1:
                raise ValueError(f"hotkey must be a single character, got {self.hotkey!r}")
            self.hotkey = self.hotkey.lower()

    @property
    def line_count(self) -> int:
        """Total rows the option occupies, padding included."""
        return 1 + int(self.padding.top) + int(self.padding.bottom)


RowKind = Literal["up", "pad", "option", "down"]


@dataclass(frozen=True)
class LayoutRow:
    kind: RowKind
    index: int | None = None
    label: str = ""


# ---------------------------------------------------------------------------
# Menu model
# ---------------------------------------------------------------------------


class MenuModel:
    """An ordered list of :class:`MenuOption` plus its display state."""

    def __init__(
        self,
        options: Iterable[MenuOption] = (),
        actions: Iterable[ActionHandler] | None = None,
        *,
        default_actions: bool = True,
        prefix: str = "",
        suffix: str = "",
        separator: str = "",
        min_width: int = 0,
        max_visible_lines: int = DEFAULT_MAX_VISIBLE_LINES,
        status_lifetime: float = DEFAULT_STATUS_LIFETIME,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_visible_lines < 3:
            raise ValueError("max_visible_lines must leave room for both scroll indicators")

        self.options: list[MenuOption] = list(options)
        self.actions: list[ActionHandler] = list(actions or [])
        if default_actions:
            from cellscreen.actions import default_actions as _defaults

            self.actions.extend(_defaults())

        self.prefix = prefix
        self.suffix = suffix
        self.separator = separator
        self.min_width = min_width
        self.max_visible_lines = max_visible_lines
        self.status_lifetime = status_lifetime
        self._clock = clock

        self._selection: int | None = None
        self._viewport_top = 0
        self._viewport_bottom = 0
        self.cursor_anchor: Coordinate | None = None
        self._status_message = ""
        self._status_issued_at: float | None = None

    # -- list behaviour -----------------------------------------------------

    def __len__(self) -> int:
        return len(self.options)

    def __iter__(self) -> Iterator[MenuOption]:
        return iter(self.options)

    def __getitem__(self, index: int) -> MenuOption:
        return self.options[index]

    def append(self, option: MenuOption) -> MenuModel:
        self.options.append(option)
        return self

    def extend(self, options: Iterable[MenuOption]) -> MenuModel:
        self.options.extend(options)
        return self

    def insert(self, index: int, option: MenuOption) -> MenuModel:
        self.options.insert(index, option)
        return self

    def pop(self, index: int = -1) -> MenuOption:
        """Remove and return an option, keeping selection and viewport valid."""
        option = self.options.pop(index)
        self._clamp()
        return option

    def clear(self) -> None:
        self.options.clear()
        self._clamp()

    def _clamp(self) -> None:
        last = len(self.options) - 1
        if last < 0:
            self._selection = None
            self._viewport_top = self._viewport_bottom = 0
            return
        if self._selection is not None:
            self._selection = min(self._selection, last)
        self._viewport_top = min(self._viewport_top, last)
        self._viewport_bottom = min(self._viewport_bottom, last)

    def is_valid_option(self, index: int) -> bool:
        return 0 <= index < len(self.options)

    # -- selection and viewport ---------------------------------------------

    @property
    def selection(self) -> int | None:
        return self._selection

    def select(self, index: int | None) -> MenuModel:
        """Set the selected option; out-of-range indices are ignored."""
        if index is None:
            self._selection = None
        elif self.is_valid_option(index):
            self._selection = index
        return self

    @property
    def viewport_top(self) -> int:
        return self._viewport_top

    @property
    def viewport_bottom(self) -> int:
        return self._viewport_bottom

    def set_viewport_top(self, index: int) -> MenuModel:
        if self.is_valid_option(index):
            self._viewport_top = index
        return self

    def set_viewport_bottom(self, index: int) -> MenuModel:
        if self.is_valid_option(index):
            self._viewport_bottom = index
        return self

    def ensure_selection(self) -> int | None:
        """Select the first enabled option if nothing is selected yet."""
        if self._selection is None:
            for index, option in enumerate(self.options):
                if not option.disabled:
                    self._selection = index
                    self.scroll_to(index, self._viewport_top)
                    break
        return self._selection

    def shift_anchor(self, rows: int) -> None:
        """Move the cursor anchor up after the terminal scrolled *rows* lines."""
        if self.cursor_anchor is not None and rows > 0:
            anchor = self.cursor_anchor
            self.cursor_anchor = Coordinate(anchor.x, max(anchor.y - rows, 0))

    # -- layout -------------------------------------------------------------

    def _fill(self, top: int, limit: int) -> list[LayoutRow]:
        rows: list[LayoutRow] = []
        label = 1
        for index in range(top, len(self.options)):
            option = self.options[index]
            needed = 1 + int(option.padding.top and index > top)
            if len(rows) + needed > limit:
                break
            if option.padding.top and index > top:
                rows.append(LayoutRow("pad", index))
            if option.hotkey is not None:
                rows.append(LayoutRow("option", index, option.hotkey))
            else:
                rows.append(LayoutRow("option", index, str(label)))
                label += 1
            if option.padding.bottom and len(rows) < limit:
                rows.append(LayoutRow("pad", index))
        return rows

    @staticmethod
    def _last_index(rows: list[LayoutRow]) -> int:
        indices = [row.index for row in rows if row.kind == "option" and row.index is not None]
        return indices[-1] if indices else -1

    def layout(self, top: int | None = None) -> list[LayoutRow]:
        """Rows drawn when the viewport starts at option *top*.

        The result never exceeds ``max_visible_lines`` rows, scroll
        indicators included, and always shows option *top* itself.
        """
        if top is None:
            top = self._viewport_top
        if not self.options:
            return []

        rows: list[LayoutRow] = []
        limit = self.max_visible_lines
        if top > 0:
            rows.append(LayoutRow("up"))
            limit -= 1

        body = self._fill(top, limit)
        if self._last_index(body) < len(self.options) - 1:
            body = self._fill(top, limit - 1)
            return rows + body + [LayoutRow("down")]
        return rows + body

    def last_visible(self, top: int | None = None) -> int:
        return self._last_index(self.layout(top))

    def refresh_viewport(self) -> list[LayoutRow]:
        """Recompute ``viewport_bottom`` and return the current layout."""
        rows = self.layout()
        self._viewport_bottom = max(self._last_index(rows), self._viewport_top)
        return rows

    def scroll_to(self, new: int, previous: int) -> bool:
        """Move the viewport so option *new* is visible.

        Moving up shifts the top by the distance moved; moving down advances
        the top one option at a time until *new* fits.  Returns ``True`` if
        the viewport changed.
        """
        top = self._viewport_top
        if new < top:
            top = max(top - max(previous - new, 1), 0)
            top = min(top, new)
        while top < new and new > self.last_visible(top):
            top += 1

        changed = top != self._viewport_top
        self._viewport_top = top
        self.refresh_viewport()
        if changed:
            logger.debug("viewport moved to %d-%d", self._viewport_top, self._viewport_bottom)
        return changed

    def option_cursor_position(self, index: int) -> Coordinate | None:
        """Screen cell of the selection marker for option *index*.

        ``None`` when the menu has not been drawn or the option is not
        currently visible.
        """
        if self.cursor_anchor is None:
            return None
        for row_number, row in enumerate(self.layout()):
            if row.kind == "option" and row.index == index:
                x = self.cursor_anchor.x + visible_length(self.prefix)
                if self.options[index].padding.left:
                    x += len(LEFT_PADDING)
                return Coordinate(x, self.cursor_anchor.y + row_number)
        return None

    # -- text helpers -------------------------------------------------------

    @property
    def line_suffix(self) -> str:
        """The suffix, always newline-terminated."""
        return self.suffix if self.suffix.endswith("\n") else self.suffix + "\n"

    def blank_line(self) -> str:
        return f"{self.prefix}{' ' * self.min_width}{self.line_suffix}"

    def instruction_text(self) -> str:
        """Separator-framed list of every action's instructions."""
        width = max(self.min_width - 4, 0)
        lines = [self.separator + "\n"]
        for action in self.actions:
            for instruction in action.instructions:
                lines.append(f"{self.prefix} - {instruction:<{width}} {self.line_suffix}")
        lines.append(self.separator)
        return "".join(lines)

    # -- status message -----------------------------------------------------

    @property
    def status_message(self) -> str:
        return self._status_message

    def set_status_message(self, message: str) -> MenuModel:
        self._status_message = message
        return self

    def has_active_status_message(self) -> bool:
        return self._status_issued_at is not None

    def issue_status_message(self) -> bool:
        """Mark the pending message as shown; returns ``False`` if there is none."""
        if not self._status_message:
            return False
        self._status_message = ""
        self._status_issued_at = self._clock()
        return True

    def has_expired_status_message(self) -> bool:
        """``True`` exactly once, when the shown message has outlived its lifetime."""
        if self._status_issued_at is None:
            return False
        if self._clock() - self._status_issued_at >= self.status_lifetime:
            self._status_issued_at = None
            return True
        return False
