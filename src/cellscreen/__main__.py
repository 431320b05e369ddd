"""Demo entry point for cellscreen. Uses Click for argument parsing."""

from __future__ import annotations

import logging

import click

from cellscreen.actions import ActionHandler, DispatchResult, Selection
from cellscreen.config import load_settings
from cellscreen.console import Console, ConsoleError
from cellscreen.keys import KeyEvent
from cellscreen.menu import MenuModel, MenuOption, Padding

DEMO_WIDTH = 48


def _redraw(console: Console, menu: MenuModel) -> None:
    if menu.cursor_anchor is not None:
        console.out.set_cursor_position(menu.cursor_anchor)
    console.out.clear(False, False)
    console.render_menu(menu, instructions=True)


def _delete_item(
    event: KeyEvent,
    menu: MenuModel,
    console: Console,
    selection: Selection,
) -> DispatchResult:
    bindings = console.keybindings
    if bindings.matches(event, "deleteItem"):
        if selection.index is None:
            return DispatchResult.STOP_HANDLER_CHAIN
        text = menu[selection.index].text
        if console.prompt_for_confirmation("Remove this item?", text):
            menu.pop(selection.index)
            menu.select(None)
            selection.index = menu.ensure_selection()
            menu.set_status_message(f"Removed {text}.")
            _redraw(console, menu)
        return DispatchResult.STOP_HANDLER_CHAIN

    if bindings.matches(event, "clearItems"):
        if console.prompt_for_confirmation("Remove every item?"):
            menu.clear()
            selection.index = None
            menu.set_status_message("All items removed.")
            _redraw(console, menu)
        return DispatchResult.STOP_HANDLER_CHAIN

    return DispatchResult.CONTINUE


def build_demo_menu(console: Console, count: int) -> MenuModel:
    """A paginated menu with hotkeys, disabled and padded options."""
    options = [MenuOption(f"Item {n}") for n in range(1, count + 1)]
    if len(options) > 2:
        options[2].disabled = True
    if len(options) > 4:
        options[4].padding = Padding(top=True, bottom=True)
    options.append(MenuOption("Settings", "s", padding=Padding(top=True)))
    options.append(MenuOption("Exit", "x"))

    actions = [ActionHandler(_delete_item, ["Press DEL to remove an item, SHIFT+DEL to remove all."])]
    return console.create_menu(
        options,
        actions=actions,
        prefix="| ",
        suffix=" |",
        separator="+" + "-" * (DEMO_WIDTH + 2) + "+",
        min_width=DEMO_WIDTH,
    )


@click.command()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    help="Logging verbosity",
)
@click.option("--log-file", default="cellscreen.log", help="File receiving log output")
@click.option("--native-alternate", is_flag=True, help="Use the terminal's own alternate screen")
@click.option("--items", default=15, type=int, help="Number of demo items")
def main(log_level, log_file, native_alternate, items):
    """Show a paginated demo menu."""
    # Never log to the terminal being drawn on.
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filename=log_file,
    )

    settings = load_settings()
    if native_alternate:
        settings.emulate_alternate_surfaces = False

    try:
        console = Console(settings=settings)
    except ConsoleError as e:
        raise click.ClickException(str(e)) from e

    with console:
        menu = build_demo_menu(console, items)
        separator = menu.separator
        console.out.println(separator)
        console.out.printfln("{}{:^{}}{}", menu.prefix, "cellscreen demo", DEMO_WIDTH, menu.suffix)
        console.out.println(separator)
        console.render_menu(menu, instructions=True)

        while True:
            choice = console.wait_for_selection(menu)
            if choice is None or menu[choice].hotkey == "x":
                break
            menu.set_status_message(f"Selected {menu[choice].text}.")

        console.out.println()


if __name__ == "__main__":
    main()
