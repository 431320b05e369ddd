"""Console facade: one input source and two output surfaces.

The :class:`Console` ties the pieces together: it draws
:class:`~cellscreen.menu.MenuModel` instances onto its primary surface and
runs the interactive selection loop that feeds key presses through each
menu's action handlers.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Callable

from cellscreen.actions import DispatchResult, Selection, run_actions
from cellscreen.config import ConsoleSettings
from cellscreen.input_source import InputSource
from cellscreen.keybindings import MenuKeybindingsManager
from cellscreen.keys import KeyEvent
from cellscreen.menu import LEFT_PADDING, RIGHT_PADDING, MenuModel, MenuOption
from cellscreen.sequences import (
    ARROW_DOWN,
    ARROW_UP,
    DEFAULT_FOREGROUND,
    ERASE_LINE_RIGHT,
    GRAY_FOREGROUND,
)
from cellscreen.surface import OutputSurface
from cellscreen.terminal import ConsoleError, InputDevice, ProcessTerminal, Terminal, TtyReader

logger = logging.getLogger(__name__)

STATUS_POLL_INTERVAL = 0.1

__all__ = ["Console", "ConsoleError"]


class Console:
    """Owns the input source and the primary/error output surfaces.

    With no arguments the console attaches to the process tty: stdin in
    cbreak mode, stdout and stderr as output.  Failing to obtain any of
    them raises :class:`ConsoleError`.
    """

    def __init__(
        self,
        terminal: Terminal | None = None,
        error_terminal: Terminal | None = None,
        input_device: InputDevice | None = None,
        *,
        settings: ConsoleSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings if settings is not None else ConsoleSettings()
        self._clock = clock
        self._reader: TtyReader | None = None

        if input_device is None:
            self._reader = TtyReader()
            self._reader.start()
            input_device = self._reader
        try:
            if terminal is None:
                terminal = ProcessTerminal(sys.stdout, self._reader)
            if error_terminal is None:
                error_terminal = ProcessTerminal(sys.stderr, self._reader)
        except ConsoleError:
            if self._reader is not None:
                self._reader.stop()
            raise

        emulate = self.settings.emulate_alternate_surfaces
        self.input = InputSource(
            input_device,
            batch_size=self.settings.input_batch_size,
            clock=clock,
        )
        self.out = OutputSurface(terminal, emulate_alternates=emulate, name="out")
        self.err = OutputSurface(error_terminal, emulate_alternates=emulate, name="err")
        self.keybindings = MenuKeybindingsManager(self.settings.keybindings)
        self._closed = False

        if self.settings.title:
            terminal.set_title(self.settings.title)
        logger.debug("console opened (emulated alternates: %s)", emulate)

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        """Pop every alternate context and release the terminal."""
        if self._closed:
            return
        self._closed = True
        self.out.close()
        self.err.close()
        if self.settings.title:
            self.out.terminal.restore_title()
        if self._reader is not None:
            self._reader.stop()
        logger.debug("console closed")

    def __enter__(self) -> Console:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- menu factory -------------------------------------------------------

    def create_menu(self, options: list[MenuOption] | None = None, **kwargs: object) -> MenuModel:
        """A menu using this console's visible-line and status settings."""
        kwargs.setdefault("max_visible_lines", self.settings.max_visible_lines)
        kwargs.setdefault("status_lifetime", self.settings.status_message_lifetime)
        kwargs.setdefault("clock", self._clock)
        return MenuModel(options or [], **kwargs)  # type: ignore[arg-type]

    # -- rendering ----------------------------------------------------------

    def render_option(self, option: MenuOption, label: str, width: int) -> Console:
        """Print ``"{label}) {text}"`` left-aligned to *width* columns."""
        out = self.out
        if option.disabled:
            out.print(GRAY_FOREGROUND)
        out.print(f"{label}) {option.text}".ljust(max(width, 0)))
        if option.disabled:
            out.print(DEFAULT_FOREGROUND)
        return self

    def render_menu(self, menu: MenuModel, instructions: bool = False) -> Console:
        """Draw the visible part of *menu* at the cursor (or its anchor).

        The first draw records the menu's cursor anchor.  With
        *instructions* the action instructions follow the options.
        """
        out = self.out
        if menu.cursor_anchor is None:
            menu.cursor_anchor = out.get_cursor_position()
        menu.ensure_selection()

        initial_offset = out.scroll_offset
        width = max(menu.min_width - 2, 0)
        suffix = menu.line_suffix

        for row in menu.refresh_viewport():
            if row.kind == "up" or row.kind == "down":
                arrow = ARROW_UP if row.kind == "up" else ARROW_DOWN
                out.print(menu.prefix).print(f"  {arrow:<{width}}").print(suffix)
            elif row.kind == "pad":
                out.print(menu.blank_line())
            elif row.index is not None:
                option = menu[row.index]
                marker = ">" if row.index == menu.selection else " "
                option_width = width
                out.print(menu.prefix)
                if option.padding.left:
                    out.print(LEFT_PADDING)
                    option_width -= len(LEFT_PADDING)
                if option.padding.right:
                    option_width -= len(RIGHT_PADDING)
                out.printsp(marker)
                self.render_option(option, row.label, option_width)
                if option.padding.right:
                    out.print(RIGHT_PADDING)
                out.print(suffix)

        if instructions:
            out.print(menu.instruction_text())

        scrolled = out.scroll_offset - initial_offset
        if scrolled > 0:
            menu.shift_anchor(scrolled)
        return self

    def _show_status(self, menu: MenuModel) -> bool:
        """Print a pending status message on the line below the cursor."""
        if not menu.status_message:
            return False
        out = self.out
        initial_offset = out.scroll_offset
        if menu.has_active_status_message():
            out.clear(False, False)
        out.save_cursor_position()
        out.println("", add_to_buffer=False)
        out.print(ERASE_LINE_RIGHT + menu.status_message, add_to_buffer=False)
        scrolled = out.scroll_offset - initial_offset
        if scrolled > 0:
            menu.shift_anchor(scrolled)
        out.restore_saved_cursor_position()
        return menu.issue_status_message()

    # -- selection loop -----------------------------------------------------

    def wait_for_selection(self, menu: MenuModel, timeout: float | None = None) -> int | None:
        """Run the key loop for *menu* until an option is confirmed or the loop is cancelled.

        Enter confirms the current selection.  A handler returning
        ``STOP_ENTIRE_LIST`` ends the loop with whatever selection it left
        (``None`` after Escape).  If *timeout* elapses with no status message
        on screen the current selection is returned.
        """
        selection = Selection(menu.ensure_selection())

        def wait(flush: bool = False) -> KeyEvent | None:
            wait_time = STATUS_POLL_INTERVAL if menu.has_active_status_message() else timeout
            return self.input.wait_for_event(flush, wait_time)

        self._show_status(menu)
        event = wait(flush=True)

        while True:
            if event is None:
                if not menu.has_active_status_message():
                    break
            elif self.keybindings.matches(event, "selectConfirm"):
                break
            elif run_actions(menu, event, self, selection) is DispatchResult.STOP_ENTIRE_LIST:
                break

            if not self._show_status(menu) and menu.has_expired_status_message():
                self.out.clear(False, False)
            event = wait()

        return selection.index

    # -- input --------------------------------------------------------------

    def wait_for_event(self, flush: bool = False, timeout: float | None = None) -> KeyEvent | None:
        return self.input.wait_for_event(flush, timeout)

    def wait_for_char(self, flush: bool = False, timeout: float | None = None) -> str | None:
        return self.input.wait_for_char(flush, timeout)

    def wait_for_line(self, max_length: int | None = None, echo: bool = True) -> str | None:
        """Read a line of text, echoing it onto the primary surface."""
        if max_length is None:
            max_length = self.settings.line_input_limit
        if not echo:
            return self.input.wait_for_line(max_length)

        def erase() -> None:
            self.out.print("\b \b")

        return self.input.wait_for_line(max_length, echo=self.out.print, erase=erase)

    # -- prompts ------------------------------------------------------------

    def prompt_for_confirmation(
        self,
        title: str,
        subtitle: str = "",
        menu: MenuModel | None = None,
    ) -> bool | None:
        """Ask a yes/no question in an alternate context.

        Returns ``True`` for the first option, ``False`` for any other and
        ``None`` if the prompt was cancelled.
        """
        if self.settings.auto_confirm:
            return True

        if menu is None:
            box_width = self.settings.box_width
            menu = self.create_menu(
                [MenuOption("Yes", "y"), MenuOption("No", "n")],
                prefix="| ",
                suffix=" |",
                separator="+" + "-" * (box_width + 2) + "+",
                min_width=box_width,
            )
        width = menu.min_width

        depth = self.out.push_alternate()
        self.out.toggle_cursor_visibility(False)
        try:
            self.out.println(menu.separator)
            self.out.printfln("{}{:^{}}{}", menu.prefix, title, width, menu.suffix)
            self.out.printfln("{}{:^{}}{}", menu.prefix, subtitle, width, menu.suffix)
            self.out.println(menu.separator)
            self.render_menu(menu, instructions=True)
            choice = self.wait_for_selection(menu)
        finally:
            if depth is not None:
                self.out.pop_alternate()
            else:
                self.out.toggle_cursor_visibility(True)

        if choice is None:
            return None
        return choice == 0
