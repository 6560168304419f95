from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable

REPO_ROOT = Path(__file__).resolve().parents[2]
CONFIG_FILE = REPO_ROOT / "configs" / "config.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value or "").strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot interpret '{value}' as a boolean.")


def to_str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        raw = [str(item) for item in value]
    else:
        raw = str(value or "").split(",")
    return [item.strip() for item in raw if item.strip()]


@lru_cache(maxsize=1)
def _load_config_file(path: str) -> dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        return {}
    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def config_value(dotted_path: str, default: Any = None) -> Any:
    node: Any = _load_config_file(str(CONFIG_FILE))
    for part in dotted_path.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def env_or_config(
    env_key: str,
    config_path: str,
    default: Any = None,
    cast: Callable[[Any], Any] | None = None,
) -> Any:
    """Resolve a setting from the environment, then configs/config.json, then *default*."""
    raw = os.environ.get(env_key)
    if raw is not None and raw.strip() != "":
        value: Any = raw.strip()
    else:
        value = config_value(config_path, default)
    if cast is not None and value is not None:
        return cast(value)
    return value


def resolve_repo_path(raw: str | Path) -> Path:
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = REPO_ROOT / path
    return path.resolve()
