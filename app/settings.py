# app/settings.py
from __future__ import annotations
from dataclasses import dataclass, asdict, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging

from app.errors import SettingsError

log = logging.getLogger(__name__)

_SETTINGS_FILE = Path("settings.json")


@dataclass(frozen=True)
class EngineSettings:
    newline_as_space: bool = False
    min_transitions: int = 200
    status_refresh_interval: int = 5        # accepted keystrokes between status refreshes
    word_length: float = 5.0
    downcase_practice: bool = True
    idle_timeout_seconds: float = 5.0
    debounce_phantom_edits: bool = True
    fill_column: Optional[int] = None       # None -> keep the text's own line breaks
    background_render_min_entries: int = 2000
    min_words_for_wpm: int = 2

    def with_overrides(self, **changes: Any) -> "EngineSettings":
        return settings_from_dict({**asdict(self), **changes})


DEFAULT_SETTINGS = EngineSettings()


# -------- helpers --------
def _check(settings: EngineSettings) -> EngineSettings:
    if settings.min_transitions < 1:
        raise SettingsError("min_transitions must be at least 1")
    if settings.status_refresh_interval < 1:
        raise SettingsError("status_refresh_interval must be at least 1")
    if settings.word_length <= 0:
        raise SettingsError("word_length must be positive")
    if settings.idle_timeout_seconds <= 0:
        raise SettingsError("idle_timeout_seconds must be positive")
    if settings.fill_column is not None and settings.fill_column < 1:
        raise SettingsError("fill_column must be positive or null")
    if settings.background_render_min_entries < 0:
        raise SettingsError("background_render_min_entries cannot be negative")
    return settings


def settings_from_dict(d: Dict[str, Any]) -> EngineSettings:
    known = {f.name: f for f in fields(EngineSettings)}
    unknown = set(d) - set(known)
    if unknown:
        raise SettingsError(f"Unknown settings keys: {', '.join(sorted(unknown))}")
    values: Dict[str, Any] = {}
    for name, value in d.items():
        default = getattr(DEFAULT_SETTINGS, name)
        if value is None:
            if name != "fill_column":
                raise SettingsError(f"{name} cannot be null")
            values[name] = None
            continue
        try:
            if isinstance(default, bool):
                if not isinstance(value, bool):
                    raise TypeError(name)
                values[name] = value
            elif name == "fill_column" or isinstance(default, int):
                values[name] = int(value)
            else:
                values[name] = float(value)
        except (TypeError, ValueError) as e:
            raise SettingsError(f"Invalid value for {name}: {value!r}") from e
    return _check(replace(DEFAULT_SETTINGS, **values))


# -------- public API --------
def load_settings(path: Path = _SETTINGS_FILE) -> EngineSettings:
    """Read settings.json (if present); missing keys keep their defaults."""
    if not path.exists():
        return DEFAULT_SETTINGS
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SettingsError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise SettingsError(f"{path} must hold a JSON object")
    settings = settings_from_dict(data)
    log.info("Loaded engine settings from %s", path)
    return settings


def save_settings(settings: EngineSettings, path: Path = _SETTINGS_FILE) -> None:
    path.write_text(
        json.dumps(asdict(settings), ensure_ascii=False, indent=2), encoding="utf-8"
    )
