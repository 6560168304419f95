from __future__ import annotations

import argparse
import json
import logging
from typing import Sequence

from .config import env_or_config, resolve_repo_path
from .config_store import ConfigStore
from .live_state import InMemoryFoodSystem, load_food_system, write_food_system
from .models import config_to_payload
from .reader import read_food_system
from .session import FoodConfigSession, SessionResult


def _default_host() -> str:
    return str(env_or_config("FODDER_HOST_STATE", "host.state_file", "configs/host_state.json"))


def _default_config() -> str:
    return str(env_or_config("FODDER_CONFIG_FILE", "session.config_file", "savegame/animal_food.json"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reconcile the animal food config with a live food system.")
    sub = parser.add_subparsers(dest="command", required=True)

    sync = sub.add_parser("sync", help="Merge the saved config into the host and save the result.")
    sync.add_argument("--host", default=_default_host(), help="Path to the host definition JSON file.")
    sync.add_argument("--config", default=_default_config(), help="Path to the food config document.")
    sync.add_argument("--write-host", default="", help="Write the patched host definition to this path.")

    persist = sub.add_parser("persist", help="Re-snapshot the host and save the steady-state merge.")
    persist.add_argument("--host", default=_default_host(), help="Path to the host definition JSON file.")
    persist.add_argument("--config", default=_default_config(), help="Path to the food config document.")

    snapshot = sub.add_parser("snapshot", help="Print the live snapshot of a host as JSON.")
    snapshot.add_argument("--host", default=_default_host(), help="Path to the host definition JSON file.")
    return parser


def configure_logging() -> None:
    level_name = str(env_or_config("FODDER_LOG_LEVEL", "runtime.log_level", "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def _load_host(raw_path: str) -> InMemoryFoodSystem | None:
    path = resolve_repo_path(raw_path)
    try:
        return load_food_system(path)
    except (OSError, ValueError) as exc:
        print(f"[error] Invalid host definition {path}: {exc}", flush=True)
        return None


def _report(command: str, result: SessionResult) -> int:
    status = "ok" if result.ok else "error"
    print(f"[{status}] {command} action={result.action} saved={result.saved}", flush=True)
    summary = {**result.counts, **result.stats.as_dict(), "replicas": result.delivered}
    print(f"[summary] {json.dumps(summary)}", flush=True)
    return 0 if result.ok else 1


def run_sync(args: argparse.Namespace) -> int:
    host = _load_host(args.host)
    if host is None:
        return 1
    config_path = resolve_repo_path(args.config)
    print(f"[start] sync host={args.host} config={config_path}", flush=True)
    session = FoodConfigSession(host, ConfigStore(), config_path)
    result = session.on_session_loaded()
    if args.write_host:
        out_path = resolve_repo_path(args.write_host)
        write_food_system(host, out_path)
        print(f"[ok] Wrote patched host to {out_path}", flush=True)
    print(f"[done] sync {config_path}", flush=True)
    return _report("sync", result)


def run_persist(args: argparse.Namespace) -> int:
    host = _load_host(args.host)
    if host is None:
        return 1
    config_path = resolve_repo_path(args.config)
    print(f"[start] persist host={args.host} config={config_path}", flush=True)
    result = FoodConfigSession(host, ConfigStore(), config_path).on_session_persisting()
    print(f"[done] persist {config_path}", flush=True)
    return _report("persist", result)


def run_snapshot(args: argparse.Namespace) -> int:
    host = _load_host(args.host)
    if host is None:
        return 1
    print(json.dumps(config_to_payload(read_food_system(host)), indent=2), flush=True)
    return 0


COMMANDS = {
    "sync": run_sync,
    "persist": run_persist,
    "snapshot": run_snapshot,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main())
