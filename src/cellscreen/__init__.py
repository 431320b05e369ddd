"""cellscreen: virtual character-cell output surface and paginated menu engine."""

# Selection pipeline
from cellscreen.actions import (
    ActionHandler,
    DispatchResult,
    Selection,
    default_actions,
    escape_action,
    navigation_action,
    run_actions,
)

# Settings
from cellscreen.config import (
    ConsoleSettings,
    load_settings,
    save_settings,
    settings_from_dict,
    settings_to_dict,
)

# Console facade
from cellscreen.console import Console

# Cursor bookkeeping
from cellscreen.cursor import Coordinate, CursorTracker

# Input
from cellscreen.input_source import InputSource, split_sequences
from cellscreen.keybindings import (
    DEFAULT_MENU_KEYBINDINGS,
    MenuAction,
    MenuKeybindingsConfig,
    MenuKeybindingsManager,
)
from cellscreen.keys import Key, KeyEvent, KeyId, parse_key

# Virtual lines
from cellscreen.line_store import LineStore, VirtualLine

# Menus
from cellscreen.menu import LayoutRow, MenuModel, MenuOption, Padding

# Control sequences
from cellscreen.sequences import (
    SequenceKind,
    SequenceMatch,
    classify_sequence,
    strip_sequences,
    visible_length,
)

# Output surface
from cellscreen.surface import OutputSurface, SurfaceState

# Terminal
from cellscreen.terminal import ConsoleError, InputDevice, ProcessTerminal, Terminal, TtyReader

__all__ = [
    # Selection pipeline
    "ActionHandler",
    "DispatchResult",
    "Selection",
    "default_actions",
    "escape_action",
    "navigation_action",
    "run_actions",
    # Settings
    "ConsoleSettings",
    "load_settings",
    "save_settings",
    "settings_from_dict",
    "settings_to_dict",
    # Console facade
    "Console",
    # Cursor bookkeeping
    "Coordinate",
    "CursorTracker",
    # Input
    "InputSource",
    "split_sequences",
    "DEFAULT_MENU_KEYBINDINGS",
    "MenuAction",
    "MenuKeybindingsConfig",
    "MenuKeybindingsManager",
    "Key",
    "KeyEvent",
    "KeyId",
    "parse_key",
    # Virtual lines
    "LineStore",
    "VirtualLine",
    # Menus
    "LayoutRow",
    "MenuModel",
    "MenuOption",
    "Padding",
    # Control sequences
    "SequenceKind",
    "SequenceMatch",
    "classify_sequence",
    "strip_sequences",
    "visible_length",
    # Output surface
    "OutputSurface",
    "SurfaceState",
    # Terminal
    "ConsoleError",
    "InputDevice",
    "ProcessTerminal",
    "Terminal",
    "TtyReader",
]
