"""Persistent JSON config helpers.

Stores icon-set choice, indent-guide and symbol-resolution toggles, the
request timeout, and source-follow preference. All access is defensive:
malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from ..render.icons import normalize_icon_set_name

APP_NAME = "calltree"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class CalltreeConfig:
    """Effective settings for one session."""

    icons: str = "none"
    indent_guides: bool = True
    resolve_symbols: bool = False
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    auto_follow: bool = True


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> bool:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are reported through the return value so a read-only
    config directory never breaks a session.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        return False
    return True


def _load_bool(data: dict[str, object], key: str, default: bool) -> bool:
    """Only explicit booleans are accepted; anything else yields ``default``."""
    value = data.get(key)
    return value if isinstance(value, bool) else default


def _load_timeout(data: dict[str, object]) -> float:
    """Read a positive timeout in seconds; booleans and non-numbers are invalid."""
    value = data.get("request_timeout")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_REQUEST_TIMEOUT
    if value <= 0:
        return DEFAULT_REQUEST_TIMEOUT
    return float(value)


def load_calltree_config() -> CalltreeConfig:
    data = load_config()
    raw_icons = data.get("icons")
    return CalltreeConfig(
        icons=normalize_icon_set_name(raw_icons if isinstance(raw_icons, str) else None),
        indent_guides=_load_bool(data, "indent_guides", True),
        resolve_symbols=_load_bool(data, "resolve_symbols", False),
        request_timeout=_load_timeout(data),
        auto_follow=_load_bool(data, "auto_follow", True),
    )


def save_calltree_config(settings: CalltreeConfig) -> bool:
    """Persist ``settings`` while keeping unrelated keys already on disk."""
    config = load_config()
    config["icons"] = normalize_icon_set_name(settings.icons)
    config["indent_guides"] = bool(settings.indent_guides)
    config["resolve_symbols"] = bool(settings.resolve_symbols)
    config["request_timeout"] = float(settings.request_timeout)
    config["auto_follow"] = bool(settings.auto_follow)
    return save_config(config)


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "CalltreeConfig",
    "load_config",
    "save_config",
    "load_calltree_config",
    "save_calltree_config",
]
