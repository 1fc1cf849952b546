"""Settings storage for build configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "HYBRID_HMOD_SETTINGS_PATH",
        Path.home() / ".config" / "hybrid-hmod" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_DUMP_DIR = "dump"
DEFAULT_HMOD_DIR = "nesc_hybrid_system.hmod"
DEFAULT_LAUNCHER_DIR = "."

DEFAULT_SETTINGS: dict[str, Any] = {
    "dump_dir": DEFAULT_DUMP_DIR,
    "hmod_dir": DEFAULT_HMOD_DIR,
    "launcher_dir": DEFAULT_LAUNCHER_DIR,
    "log_dir": None,
    "file_logging": True,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings(path: Path | None = None) -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    path = path or SETTINGS_PATH
    if not path.exists():
        return
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return
    if isinstance(data, dict):
        settings_store.values.update(data)


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def get_path(key: str) -> Path | None:
    value = get_setting(key)
    if value is None:
        return None
    return Path(value).expanduser()


def get_bool(key: str, default: bool = False) -> bool:
    return bool(get_setting(key, default))


load_settings()
