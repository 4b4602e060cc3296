"""Persistent JSON config helpers.

Stores the last opened workspace, search defaults and tree/settle preferences.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "notebrowser"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

DEFAULT_SETTLE_DELAY_MS = 50


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


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Write failures are ignored so an unwritable config directory never breaks
    a command.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError):
        pass


def _update(key: str, value: object) -> None:
    config = load_config()
    config[key] = value
    save_config(config)


def _load_bool(key: str, default: bool) -> bool:
    value = load_config().get(key)
    return value if isinstance(value, bool) else default


def load_last_workspace() -> Path | None:
    """Return the last opened workspace root, or ``None`` when unset/invalid."""
    value = load_config().get("last_workspace")
    if not isinstance(value, str) or not value.strip():
        return None
    return Path(value.strip())


def save_last_workspace(path: Path) -> None:
    _update("last_workspace", str(path))


def load_search_defaults() -> tuple[bool, bool, frozenset[str]]:
    """Return ``(case_sensitive, whole_word, extensions)`` search defaults."""
    data = load_config()
    case_sensitive = data.get("search_case_sensitive")
    whole_word = data.get("search_whole_word")
    raw_extensions = data.get("search_extensions")
    extensions: set[str] = set()
    if isinstance(raw_extensions, list):
        extensions = {item for item in raw_extensions if isinstance(item, str) and item.strip()}
    return (
        case_sensitive if isinstance(case_sensitive, bool) else False,
        whole_word if isinstance(whole_word, bool) else False,
        frozenset(extensions),
    )


def save_search_defaults(case_sensitive: bool, whole_word: bool, extensions: list[str] | None = None) -> None:
    config = load_config()
    config["search_case_sensitive"] = bool(case_sensitive)
    config["search_whole_word"] = bool(whole_word)
    config["search_extensions"] = sorted(extensions or [])
    save_config(config)


def load_settle_delay_seconds() -> float:
    """Delay between settle re-reads after a move.

    Booleans, negatives and non-integers fall back to the default.
    """
    value = load_config().get("settle_delay_ms")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        value = DEFAULT_SETTLE_DELAY_MS
    return value / 1000.0


def load_show_hidden() -> bool:
    """Return whether dot-files appear in the tree (default ``True``)."""
    return _load_bool("show_hidden", True)


def save_show_hidden(show_hidden: bool) -> None:
    _update("show_hidden", bool(show_hidden))
