"""Console settings. Stored at ~/.cellscreen/settings.json."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from cellscreen.keybindings import MenuKeybindingsConfig

logger = logging.getLogger(__name__)


@dataclass
class ConsoleSettings:
    emulate_alternate_surfaces: bool = True
    auto_confirm: bool = False
    max_visible_lines: int = 9
    status_message_lifetime: float = 5.0
    input_batch_size: int = 10
    line_input_limit: int = 512
    box_width: int = 60
    title: str | None = None
    keybindings: MenuKeybindingsConfig = field(default_factory=dict)


def settings_from_dict(data: dict[str, Any]) -> ConsoleSettings:
    """Build settings from parsed JSON, ignoring unknown keys."""
    known = {f.name for f in fields(ConsoleSettings)}
    values = {key: value for key, value in data.items() if key in known}
    if "keybindings" in values and not isinstance(values["keybindings"], dict):
        logger.warning("ignoring malformed keybindings setting")
        del values["keybindings"]
    return ConsoleSettings(**values)


def settings_to_dict(settings: ConsoleSettings) -> dict[str, Any]:
    data: dict[str, Any] = {f.name: getattr(settings, f.name) for f in fields(ConsoleSettings)}
    data["keybindings"] = dict(settings.keybindings)
    return data


def get_config_dir() -> Path:
    return Path(os.environ.get("CELLSCREEN_CONFIG_DIR", Path.home() / ".cellscreen"))


def get_settings_path() -> Path:
    return get_config_dir() / "settings.json"


def load_settings(path: Path | None = None) -> ConsoleSettings:
    settings_path = path if path is not None else get_settings_path()
    if not settings_path.exists():
        return ConsoleSettings()
    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("settings file must contain a JSON object")
        return settings_from_dict(data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Error reading settings from %s: %s", settings_path, e)
        return ConsoleSettings()


def save_settings(settings: ConsoleSettings, path: Path | None = None) -> None:
    settings_path = path if path is not None else get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings_path.write_text(json.dumps(settings_to_dict(settings), indent=2), encoding="utf-8")
