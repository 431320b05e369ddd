"""Tests for cellscreen.actions handler dispatch."""

from __future__ import annotations

from cellscreen.actions import ActionHandler, DispatchResult, Selection, run_actions
from cellscreen.config import ConsoleSettings
from cellscreen.console import Console
from cellscreen.keys import KeyEvent
from cellscreen.menu import MenuModel, MenuOption

from .virtual_terminal import FakeClock, VirtualTerminal

DOWN = KeyEvent.from_data("\x1b[B")
UP = KeyEvent.from_data("\x1b[A")


def _console(**settings: object) -> tuple[Console, VirtualTerminal]:
    clock = FakeClock()
    term = VirtualTerminal(clock=clock)
    console = Console(
        term,
        VirtualTerminal(),
        term,
        settings=ConsoleSettings(**settings),  # type: ignore[arg-type]
        clock=clock,
    )
    return console, term


def _drawn(console: Console, options: list[MenuOption], **kwargs: object) -> MenuModel:
    menu = console.create_menu(options, **kwargs)
    console.render_menu(menu)
    return menu


def _press(console: Console, menu: MenuModel, event: KeyEvent, selection: Selection) -> DispatchResult:
    return run_actions(menu, event, console, selection)


# ---------------------------------------------------------------------------
# Handler chain
# ---------------------------------------------------------------------------


class TestRunActions:
    def test_handlers_run_in_order(self) -> None:
        console, _ = _console()
        seen: list[str] = []

        def first(event, menu, console, selection) -> DispatchResult:
            seen.append("first")
            return DispatchResult.CONTINUE

        def second(event, menu, console, selection) -> DispatchResult:
            seen.append("second")
            return DispatchResult.STOP_HANDLER_CHAIN

        def third(event, menu, console, selection) -> DispatchResult:
            seen.append("third")
            return DispatchResult.CONTINUE

        menu = MenuModel(
            [MenuOption("a")],
            [ActionHandler(first), ActionHandler(second), ActionHandler(third)],
            default_actions=False,
        )
        result = _press(console, menu, KeyEvent.from_data("x"), Selection(0))
        assert result is DispatchResult.STOP_HANDLER_CHAIN
        assert seen == ["first", "second"]

    def test_custom_handler_runs_before_navigation(self) -> None:
        console, _ = _console()

        def swallow_down(event, menu, console, selection) -> DispatchResult:
            if event.key == "down":
                return DispatchResult.STOP_HANDLER_CHAIN
            return DispatchResult.CONTINUE

        menu = _drawn(console, [MenuOption("a"), MenuOption("b")], actions=[ActionHandler(swallow_down)])
        selection = Selection(0)
        _press(console, menu, DOWN, selection)
        assert selection.index == 0

    def test_unhandled_key_continues(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption("a"), MenuOption("b")])
        selection = Selection(0)
        assert _press(console, menu, KeyEvent.from_data("z"), selection) is DispatchResult.CONTINUE
        assert selection.index == 0


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


class TestNavigation:
    def test_down_swaps_markers(self) -> None:
        console, term = _console()
        menu = _drawn(console, [MenuOption("Alpha"), MenuOption("Beta"), MenuOption("Settings", "s")])
        assert term.display[:3] == ["> 1) Alpha", "  2) Beta", "  s) Settings"]

        selection = Selection(0)
        assert _press(console, menu, DOWN, selection) is DispatchResult.STOP_HANDLER_CHAIN
        assert selection.index == 1
        assert menu.selection == 1
        assert term.display[:2] == ["  1) Alpha", "> 2) Beta"]
        assert term.get_cursor_position() == menu.cursor_anchor.offset(0, 3)

    def test_disabled_options_are_skipped(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption("a"), MenuOption("b", disabled=True), MenuOption("c")])
        selection = Selection(0)
        _press(console, menu, DOWN, selection)
        assert selection.index == 2
        _press(console, menu, UP, selection)
        assert selection.index == 0

    def test_stops_at_edges(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption("a"), MenuOption("b")])
        selection = Selection(0)
        assert _press(console, menu, UP, selection) is DispatchResult.STOP_HANDLER_CHAIN
        assert selection.index == 0

    def test_digit_counts_only_unkeyed_options(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption("a"), MenuOption("Settings", "s"), MenuOption("b")])
        selection = Selection(0)
        _press(console, menu, KeyEvent.from_data("2"), selection)
        assert selection.index == 2

    def test_digit_beyond_visible_options(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption("a"), MenuOption("b")])
        selection = Selection(0)
        assert _press(console, menu, KeyEvent.from_data("7"), selection) is DispatchResult.CONTINUE
        assert selection.index == 0

    def test_digit_on_disabled_option_is_ignored(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption("a"), MenuOption("b", disabled=True)])
        selection = Selection(0)
        _press(console, menu, KeyEvent.from_data("2"), selection)
        assert selection.index == 0

    def test_letter_hotkey_is_case_insensitive(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption("a"), MenuOption("Settings", "s")])
        selection = Selection(0)
        _press(console, menu, KeyEvent.from_data("S"), selection)
        assert selection.index == 1

    def test_digits_count_from_viewport_top(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption(f"Option {n}") for n in range(12)], max_visible_lines=5)
        selection = Selection(0)
        for _ in range(4):
            _press(console, menu, DOWN, selection)
        assert menu.viewport_top == 2
        _press(console, menu, KeyEvent.from_data("1"), selection)
        assert selection.index == 2

    def test_scrolling_redraws_whole_menu(self) -> None:
        console, term = _console()
        options = [MenuOption(f"Option {n}") for n in range(12)]
        menu = _drawn(console, options, max_visible_lines=5, min_width=20)
        assert term.display[4] == "  ↓"

        selection = Selection(0)
        for _ in range(4):
            _press(console, menu, DOWN, selection)

        assert selection.index == 4
        assert term.display[:5] == [
            "  ↑",
            "  1) Option 2",
            "  2) Option 3",
            "> 3) Option 4",
            "  ↓",
        ]
        assert term.get_cursor_position().y == 5


# ---------------------------------------------------------------------------
# Escape
# ---------------------------------------------------------------------------


class TestEscape:
    def test_escape_clears_selection(self) -> None:
        console, _ = _console()
        menu = _drawn(console, [MenuOption("a"), MenuOption("b")])
        selection = Selection(1)
        result = _press(console, menu, KeyEvent.from_data("\x1b"), selection)
        assert result is DispatchResult.STOP_ENTIRE_LIST
        assert selection.index is None

    def test_rebound_cancel_key(self) -> None:
        console, _ = _console(keybindings={"selectCancel": "q"})
        menu = _drawn(console, [MenuOption("a")])
        selection = Selection(0)
        assert _press(console, menu, KeyEvent.from_data("q"), selection) is DispatchResult.STOP_ENTIRE_LIST
        assert _press(console, menu, KeyEvent.from_data("\x1b"), selection) is DispatchResult.CONTINUE
