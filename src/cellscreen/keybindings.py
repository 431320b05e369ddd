"""Menu keybindings manager."""

from __future__ import annotations

from typing import Literal

from cellscreen.keys import KeyEvent, KeyId

MenuAction = Literal[
    "selectUp",
    "selectDown",
    "selectConfirm",
    "selectCancel",
    "deleteItem",
    "clearItems",
]

MenuKeybindingsConfig = dict[MenuAction, KeyId | list[KeyId]]

DEFAULT_MENU_KEYBINDINGS: dict[MenuAction, KeyId | list[KeyId]] = {
    "selectUp": "up",
    "selectDown": "down",
    "selectConfirm": "enter",
    "selectCancel": "escape",
    "deleteItem": "delete",
    "clearItems": "shift+delete",
}


class MenuKeybindingsManager:
    """Manages keybindings for menus."""

    def __init__(self, config: MenuKeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[MenuAction, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: MenuKeybindingsConfig) -> None:
        self._action_to_keys.clear()

        for action, keys in DEFAULT_MENU_KEYBINDINGS.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

        for action, keys in config.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

    def matches(self, event: KeyEvent, action: MenuAction) -> bool:
        """Check if a key event triggers a specific action."""
        return event.key is not None and event.key in self._action_to_keys.get(action, [])

    def get_keys(self, action: MenuAction) -> list[KeyId]:
        """Get keys bound to an action."""
        return self._action_to_keys.get(action, [])

    def set_config(self, config: MenuKeybindingsConfig) -> None:
        """Update configuration."""
        self._build_maps(config)
