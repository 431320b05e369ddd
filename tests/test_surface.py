"""Tests for cellscreen.surface.OutputSurface against a pyte-backed terminal."""

from __future__ import annotations

import pytest

from cellscreen.cursor import Coordinate
from cellscreen.sequences import cursor_position
from cellscreen.surface import OutputSurface

from .virtual_terminal import VirtualTerminal


def _surface(rows: int = 24, columns: int = 80, **kwargs) -> tuple[OutputSurface, VirtualTerminal]:
    term = VirtualTerminal(rows=rows, columns=columns)
    return OutputSurface(term, **kwargs), term


# ---------------------------------------------------------------------------
# Printing
# ---------------------------------------------------------------------------


class TestPrint:
    def test_hello_then_two_newlines(self) -> None:
        surface, term = _surface()
        surface.print("Hello").print("\n").print("\n")

        assert surface.lines == ["Hello", "", ""]
        assert surface.line_text(0) == "Hello"
        assert term.get_cursor_position().y - surface.start_anchor.y == 2

    def test_text_lands_on_screen_and_in_model(self) -> None:
        surface, term = _surface()
        surface.println("first").print("second")
        assert term.display[:2] == ["first", "second"]
        assert surface.lines == ["first", "second"]

    def test_overwrite_single_column(self) -> None:
        surface, term = _surface()
        surface.print("abcde")
        assert surface.set_cursor_position(Coordinate(2, 0))
        surface.print("Z")

        assert surface.line_text(0) == "abZde"
        assert term.display[0] == "abZde"

    def test_overwrite_colored_cell(self) -> None:
        surface, term = _surface()
        surface.print("a\x1b[31mb\x1b[39mc")
        surface.set_cursor_position(Coordinate(1, 0))
        surface.print("X")

        assert surface.line_text(0) == "aXc"
        assert "\x1b[31m" not in surface.active.lines[0].text

    def test_wraps_at_terminal_width(self) -> None:
        surface, _ = _surface(columns=10)
        surface.print("0123456789ab")
        assert surface.lines == ["0123456789", "ab"]

    def test_add_to_buffer_false_only_reaches_terminal(self) -> None:
        surface, term = _surface()
        surface.print("kept")
        surface.print(" shown", add_to_buffer=False)
        assert surface.lines == ["kept"]
        assert term.display[0] == "kept shown"

    def test_format_helpers(self) -> None:
        surface, _ = _surface()
        surface.printf("{}-{}", 1, 2).printsp("").printfsp("{x}", x="y").printfln("!")
        assert surface.lines == ["1-2 y !", ""]

    def test_starting_anchor_follows_cursor(self) -> None:
        term = VirtualTerminal()
        term.write("\n\nab")
        surface = OutputSurface(term)
        assert surface.start_anchor == Coordinate(2, 2)
        surface.print("cd")
        assert surface.lines == ["  cd"]
        assert term.display[2] == "abcd"


# ---------------------------------------------------------------------------
# Scrolling
# ---------------------------------------------------------------------------


class TestScrollDetection:
    def test_scroll_adjusts_offset_anchor_and_saved_cursors(self) -> None:
        term = VirtualTerminal(rows=5)
        term.write("\n\n")
        surface = OutputSurface(term)
        assert surface.save_cursor_position(Coordinate(0, 3))

        surface.print("1\n2\n3\n4\n")

        assert surface.scroll_offset == 2
        assert surface.start_anchor == Coordinate(0, 0)
        assert term.display[:4] == ["1", "2", "3", "4"]
        assert surface.restore_saved_cursor_position() == Coordinate(0, 1)

    def test_no_scroll_without_reaching_bottom(self) -> None:
        surface, _ = _surface(rows=10)
        surface.print("a\nb\nc\n")
        assert surface.scroll_offset == 0

    def test_scroll_offset_is_monotonic(self) -> None:
        surface, _ = _surface(rows=3)
        offsets = []
        for n in range(6):
            surface.println(f"line {n}")
            offsets.append(surface.scroll_offset)
        assert offsets == sorted(offsets)
        assert offsets[-1] > 0

    def test_scrolled_content_keeps_model_rows_aligned(self) -> None:
        surface, term = _surface(rows=3)
        surface.print("a\nb\nc\nd")
        surface.set_cursor_position(Coordinate(0, 2))
        surface.print("D")
        assert surface.lines[-1] == "D"
        assert term.display == ["b", "c", "D"]

    def test_wrap_on_bottom_row_counts_as_scroll(self) -> None:
        surface, term = _surface(rows=4, columns=10)
        surface.print("a\nb\nc\n")
        surface.print("ABCDEFGHIJKLMNO\nz")
        assert surface.scroll_offset == 2
        assert term.display == ["c", "ABCDEFGHIJ", "KLMNO", "z"]

        surface.set_cursor_position(Coordinate(0, 0))
        surface.print("X")
        assert surface.lines == ["a", "b", "X", "ABCDEFGHIJ", "KLMNO", "z"]

        before_display = term.display
        surface.push_alternate()
        surface.print("alt")
        surface.pop_alternate()
        assert term.display == before_display


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------


class TestCursor:
    def test_save_restore_lifo(self) -> None:
        surface, term = _surface()
        surface.save_cursor_position(Coordinate(1, 1))
        surface.save_cursor_position(Coordinate(4, 2))
        assert surface.restore_saved_cursor_position() == Coordinate(4, 2)
        assert term.get_cursor_position() == Coordinate(4, 2)
        assert surface.restore_saved_cursor_position() == Coordinate(1, 1)
        assert surface.restore_saved_cursor_position() is None

    def test_save_current_position(self) -> None:
        surface, _ = _surface()
        surface.print("abc")
        assert surface.save_cursor_position()
        surface.print("def")
        assert surface.restore_saved_cursor_position() == Coordinate(3, 0)

    def test_out_of_bounds_positions_fail(self) -> None:
        surface, _ = _surface(rows=5, columns=10)
        assert not surface.set_cursor_position(Coordinate(10, 0))
        assert not surface.set_cursor_position(Coordinate(0, 5))
        assert not surface.save_cursor_position(Coordinate(-1, 0))

    def test_plain_prints_do_not_query_terminal(self) -> None:
        surface, term = _surface()
        queries = term.cursor_queries
        surface.print("abc").print("def").printsp("g")
        assert term.cursor_queries == queries
        assert surface.get_cursor_position() == Coordinate(8, 0)

        surface.println("")
        assert term.cursor_queries == queries + 1
        assert surface.get_cursor_position() == Coordinate(0, 1)

    def test_cursor_moving_text_is_requeried(self) -> None:
        surface, _ = _surface()
        surface.print("ab" + cursor_position(3, 5))
        assert surface.get_cursor_position() == Coordinate(3, 5)

    def test_pending_wrap_reports_last_column(self) -> None:
        surface, term = _surface(columns=10)
        surface.print("0123456789")
        assert surface.get_cursor_position() == Coordinate(9, 0)
        assert surface.get_cursor_position() == term.get_cursor_position()

    def test_toggle_visibility(self) -> None:
        surface, term = _surface()
        assert surface.toggle_cursor_visibility(False) is False
        assert term.cursor_hidden
        assert surface.toggle_cursor_visibility() is True
        assert not term.cursor_hidden
        assert surface.lines == []


# ---------------------------------------------------------------------------
# Alternate contexts
# ---------------------------------------------------------------------------


class TestEmulatedAlternates:
    def test_push_pop_round_trip(self) -> None:
        surface, term = _surface()
        surface.print("Main line\nsecond")
        before_display = term.display
        before_cursor = term.get_cursor_position()

        assert surface.push_alternate() == 1
        surface.print("alt content")
        assert term.display[0] == "alt content"
        assert surface.lines == ["alt content"]

        assert surface.pop_alternate() == 0
        assert term.display == before_display
        assert term.get_cursor_position() == before_cursor
        assert surface.lines == ["Main line", "second"]

    def test_full_width_line_round_trip(self) -> None:
        surface, term = _surface(columns=10)
        surface.print("0123456789\nnext\n")
        assert surface.lines == ["0123456789", "next", ""]
        before_display = term.display
        before_cursor = term.get_cursor_position()

        surface.push_alternate()
        surface.print("alt")
        surface.pop_alternate()

        assert term.display == before_display
        assert term.get_cursor_position() == before_cursor
        assert surface.lines == ["0123456789", "next", ""]

    @pytest.mark.parametrize("count", [0, 1, 3, 6])
    def test_push_n_pop_n(self, count: int) -> None:
        surface, _ = _surface()
        surface.print("base")
        for expected in range(1, count + 1):
            assert surface.push_alternate() == expected
            surface.print(f"level {expected}")
        for expected in range(count - 1, -1, -1):
            assert surface.pop_alternate() == expected
        assert surface.depth == 0
        assert surface.lines == ["base"]

    def test_pop_with_empty_stack(self) -> None:
        surface, _ = _surface()
        assert surface.pop_alternate() == 0
        assert surface.depth == 0

    def test_nested_restore_shows_intermediate_level(self) -> None:
        surface, term = _surface()
        surface.print("main")
        surface.push_alternate()
        surface.print("first")
        surface.push_alternate()
        surface.print("second")
        surface.pop_alternate()
        assert term.display[0] == "first"
        surface.pop_alternate()
        assert term.display[0] == "main"

    def test_visibility_synchronised_across_contexts(self) -> None:
        surface, term = _surface()
        surface.toggle_cursor_visibility(False)
        surface.push_alternate()
        assert not term.cursor_hidden
        assert surface.cursor_visible

        surface.pop_alternate()
        assert term.cursor_hidden
        assert not surface.cursor_visible

    def test_clear_buffer_drops_lines(self) -> None:
        surface, term = _surface()
        surface.print("one\ntwo")
        surface.clear(clear_buffer=True)
        assert surface.lines == []
        assert term.display[0] == ""
        assert term.get_cursor_position() == surface.start_anchor

    def test_close_pops_everything_and_shows_cursor(self) -> None:
        surface, term = _surface()
        surface.print("main")
        surface.push_alternate()
        surface.push_alternate()
        surface.toggle_cursor_visibility(False)
        surface.close()
        assert surface.depth == 0
        assert not term.cursor_hidden
        assert term.display[0] == "main"


class TestNativeAlternates:
    def test_native_push_pop(self) -> None:
        surface, term = _surface(emulate_alternates=False)
        surface.print("main")

        assert surface.push_alternate() == 1
        assert term.alternate_depth == 1
        surface.print("alt")
        assert term.display[0] == "alt"

        assert surface.pop_alternate() == 0
        assert term.alternate_depth == 0
        assert term.display[0] == "main"

    def test_second_native_push_fails(self) -> None:
        surface, term = _surface(emulate_alternates=False)
        assert surface.push_alternate() == 1
        assert surface.push_alternate() is None
        assert surface.depth == 1
        assert term.alternate_depth == 1
