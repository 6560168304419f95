from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..config import REPO_ROOT, config_value, env_or_config, resolve_repo_path, to_bool, to_str_list

DEFAULT_BASE_PATH = "/fodder"
DEFAULT_BIND_HOST = "0.0.0.0"
DEFAULT_BIND_PORT = 4830
DEFAULT_HOST_STATE = "configs/host_state.json"
DEFAULT_SAVEGAME_DIR = "savegame"
DEFAULT_CONFIG_FILENAME = "animal_food.json"
DEFAULT_PERSIST_INTERVAL_SECONDS = 300
SERVER_ROLES = ("server", "replica")


@dataclass(frozen=True)
class ServerSettings:
    bind_host: str
    bind_port: int
    base_path: str
    host_state_path: Path
    savegame_dir: Path
    config_filename: str
    persist_interval_seconds: int
    role: str
    replicas: tuple[str, ...]
    persist_on_shutdown: bool
    logs_dir: Path

    @property
    def config_path(self) -> Path:
        return self.savegame_dir / self.config_filename


def _normalize_base_path(raw: str) -> str:
    base = raw.strip() or DEFAULT_BASE_PATH
    if not base.startswith("/"):
        base = f"/{base}"
    return base.rstrip("/") or DEFAULT_BASE_PATH


def _int_env(name: str, default: int, *, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    value = int(raw)
    if min_val is not None and value < min_val:
        print(f"[fodder] WARNING: {name}={value} is below minimum {min_val}, using {min_val}", flush=True)
        return min_val
    if max_val is not None and value > max_val:
        print(f"[fodder] WARNING: {name}={value} is above maximum {max_val}, using {max_val}", flush=True)
        return max_val
    return value


def load_server_settings() -> ServerSettings:
    bind_host = os.environ.get("FODDER_BIND_HOST", DEFAULT_BIND_HOST).strip() or DEFAULT_BIND_HOST
    bind_port = _int_env("FODDER_BIND_PORT", DEFAULT_BIND_PORT, min_val=1, max_val=65535)
    base_path = _normalize_base_path(os.environ.get("FODDER_BASE_PATH", DEFAULT_BASE_PATH))

    host_state_path = resolve_repo_path(str(env_or_config("FODDER_HOST_STATE", "host.state_file", DEFAULT_HOST_STATE)))
    savegame_dir = resolve_repo_path(str(env_or_config("FODDER_SAVEGAME_DIR", "session.savegame_dir", DEFAULT_SAVEGAME_DIR)))
    config_filename = str(
        env_or_config("FODDER_CONFIG_FILENAME", "session.config_filename", DEFAULT_CONFIG_FILENAME)
    ).strip()
    if not config_filename or Path(config_filename).name != config_filename:
        raise RuntimeError(f"FODDER_CONFIG_FILENAME must be a plain file name, got '{config_filename}'.")

    persist_interval = _int_env(
        "FODDER_PERSIST_INTERVAL_SECONDS",
        int(config_value("session.persist_interval_seconds", DEFAULT_PERSIST_INTERVAL_SECONDS)),
        min_val=1,
    )

    role = str(env_or_config("FODDER_ROLE", "server.role", "server")).strip().lower()
    if role not in SERVER_ROLES:
        raise RuntimeError(f"FODDER_ROLE must be one of {', '.join(SERVER_ROLES)}; got '{role}'.")
    replicas = tuple(to_str_list(env_or_config("FODDER_REPLICAS", "server.replicas", [])))
    try:
        persist_on_shutdown = to_bool(env_or_config("FODDER_PERSIST_ON_SHUTDOWN", "server.persist_on_shutdown", True))
    except ValueError as exc:
        raise RuntimeError(f"FODDER_PERSIST_ON_SHUTDOWN: {exc}") from exc

    return ServerSettings(
        bind_host=bind_host,
        bind_port=bind_port,
        base_path=base_path,
        host_state_path=host_state_path,
        savegame_dir=savegame_dir,
        config_filename=config_filename,
        persist_interval_seconds=persist_interval,
        role=role,
        replicas=replicas,
        persist_on_shutdown=persist_on_shutdown,
        logs_dir=(REPO_ROOT / "logs").resolve(),
    )
