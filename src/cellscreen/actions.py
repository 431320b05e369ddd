"""Key handlers evaluated against a menu for every key press.

Each :class:`ActionHandler` wraps a callback returning a
:class:`DispatchResult`.  :func:`run_actions` evaluates a menu's handlers
in order until one of them stops the chain.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from cellscreen.keys import KeyEvent

if TYPE_CHECKING:
    from cellscreen.console import Console
    from cellscreen.menu import MenuModel

logger = logging.getLogger(__name__)

NAVIGATION_INSTRUCTIONS = "Use a Hotkey or the Up/Down Key and Enter to select an option."
ESCAPE_INSTRUCTIONS = "Press ESC to return to the previous menu."


class DispatchResult(enum.Enum):
    CONTINUE = "continue"
    """Let the next handler see the key."""
    STOP_HANDLER_CHAIN = "stop_handler_chain"
    """The key was consumed; keep waiting for input."""
    STOP_ENTIRE_LIST = "stop_entire_list"
    """End the selection loop with the current selection."""


@dataclass
class Selection:
    """Mutable holder for the selection a handler may change."""

    index: int | None = None


ActionCallback = Callable[[KeyEvent, "MenuModel", "Console", Selection], DispatchResult]


@dataclass
class ActionHandler:
    callback: ActionCallback
    instructions: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.instructions, str):
            self.instructions = [self.instructions]

    def __call__(
        self,
        event: KeyEvent,
        menu: MenuModel,
        console: Console,
        selection: Selection,
    ) -> DispatchResult:
        return self.callback(event, menu, console, selection)


def run_actions(
    menu: MenuModel,
    event: KeyEvent,
    console: Console,
    selection: Selection,
) -> DispatchResult:
    """Evaluate the menu's handlers in order for one key press."""
    for handler in list(menu.actions):
        result = handler(event, menu, console, selection)
        if result is not DispatchResult.CONTINUE:
            logger.debug("key %r -> %s", event.key, result.name)
            return result
    return DispatchResult.CONTINUE


# ---------------------------------------------------------------------------
# Built-in handlers
# ---------------------------------------------------------------------------


def _step(menu: MenuModel, start: int, step: int) -> int:
    candidate = start + step
    while 0 <= candidate < len(menu) and menu[candidate].disabled:
        candidate += step
    return candidate if 0 <= candidate < len(menu) else start


def _positional(menu: MenuModel, number: int) -> int | None:
    """Index of the *number*-th visible option without a hotkey."""
    count = 0
    for index in range(menu.viewport_top, menu.viewport_bottom + 1):
        if menu[index].hotkey is not None:
            continue
        count += 1
        if count == number:
            return None if menu[index].disabled else index
    return None


def _by_hotkey(menu: MenuModel, char: str) -> int | None:
    char = char.lower()
    for index, option in enumerate(menu):
        if option.hotkey == char and not option.disabled:
            return index
    return None


def move_selection(console: Console, menu: MenuModel, previous: int, new: int) -> None:
    """Select *new* and update the display.

    The whole menu is redrawn when the viewport moves; otherwise only the
    two markers change.
    """
    menu.select(new)
    out = console.out
    if menu.scroll_to(new, previous):
        out.save_cursor_position()
        if menu.cursor_anchor is not None:
            out.set_cursor_position(menu.cursor_anchor)
        console.render_menu(menu)
        out.restore_saved_cursor_position()
        return

    old_pos = menu.option_cursor_position(previous)
    new_pos = menu.option_cursor_position(new)
    out.save_cursor_position()
    if old_pos is not None and out.set_cursor_position(old_pos):
        out.print(" ")
    if new_pos is not None and out.set_cursor_position(new_pos):
        out.print(">")
    out.restore_saved_cursor_position()


def _navigate(
    event: KeyEvent,
    menu: MenuModel,
    console: Console,
    selection: Selection,
) -> DispatchResult:
    if not len(menu):
        return DispatchResult.CONTINUE

    previous = selection.index if selection.index is not None else 0
    bindings = console.keybindings

    if bindings.matches(event, "selectUp"):
        new = _step(menu, previous, -1)
    elif bindings.matches(event, "selectDown"):
        new = _step(menu, previous, 1)
    elif event.is_digit_hotkey():
        found = _positional(menu, int(event.char or "0"))
        if found is None:
            return DispatchResult.CONTINUE
        new = found
    elif event.char is not None:
        found = _by_hotkey(menu, event.char)
        if found is None:
            return DispatchResult.CONTINUE
        new = found
    else:
        return DispatchResult.CONTINUE

    if new != previous or selection.index is None:
        move_selection(console, menu, previous, new)
        selection.index = new
    return DispatchResult.STOP_HANDLER_CHAIN


def _escape(
    event: KeyEvent,
    menu: MenuModel,
    console: Console,
    selection: Selection,
) -> DispatchResult:
    if console.keybindings.matches(event, "selectCancel"):
        selection.index = None
        return DispatchResult.STOP_ENTIRE_LIST
    return DispatchResult.CONTINUE


def navigation_action() -> ActionHandler:
    """Arrow-key, numeric and letter hotkey navigation."""
    return ActionHandler(_navigate, [NAVIGATION_INSTRUCTIONS])


def escape_action() -> ActionHandler:
    """Escape clears the selection and ends the loop."""
    return ActionHandler(_escape, [ESCAPE_INSTRUCTIONS])


def default_actions() -> list[ActionHandler]:
    return [navigation_action(), escape_action()]
