from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .applicator import ApplyStats, apply_to_food_system
from .config_store import ConfigStore
from .live_state import FoodSystemHandle
from .merger import merge_data
from .models import FoodConfig, ProductionMultiplier
from .reader import read_food_system
from .sync_event import FoodSyncEvent, SyncBroadcaster

logger = logging.getLogger(__name__)


@dataclass
class SessionResult:
    ok: bool
    action: str
    saved: bool = False
    stats: ApplyStats = field(default_factory=ApplyStats)
    delivered: int = 0
    counts: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "action": self.action,
            "saved": self.saved,
            "stats": self.stats.as_dict(),
            "delivered": self.delivered,
            "counts": dict(self.counts),
        }


def _with_default_multiplier(config: FoodConfig) -> FoodConfig:
    initial = copy.deepcopy(config)
    if initial.production_multiplier is None:
        initial.production_multiplier = ProductionMultiplier()
    return initial


class FoodConfigSession:
    """Holds the merged config between the host's lifecycle triggers.

    ``on_session_loaded`` runs once the host's food system is ready and
    ``on_session_persisting`` whenever the host saves. The server calls the
    latter from a scheduler thread, so both run under one lock.
    """

    def __init__(
        self,
        handle: FoodSystemHandle | None,
        store: ConfigStore,
        config_path: str | Path,
        broadcaster: SyncBroadcaster | None = None,
    ) -> None:
        self.handle = handle
        self.store = store
        self.config_path = Path(config_path)
        self.broadcaster = broadcaster
        self._current: FoodConfig | None = None
        self._lock = threading.Lock()

    @property
    def current(self) -> FoodConfig | None:
        return self._current

    def _handle_ready(self) -> bool:
        return self.handle is not None and self.handle.is_ready()

    def _broadcast(self, config: FoodConfig) -> int:
        if self.broadcaster is None:
            return 0
        return self.broadcaster.broadcast(config)

    def on_session_loaded(self, handle: FoodSystemHandle | None = None) -> SessionResult:
        with self._lock:
            if handle is not None:
                self.handle = handle
            if not self._handle_ready():
                logger.info("Session loaded before the food system is ready; nothing to do")
                return SessionResult(ok=False, action="unavailable")

            live = read_food_system(self.handle)
            persisted = self.store.load(self.config_path)

            if persisted is None and self.config_path.exists():
                logger.error("Leaving unreadable food config %s untouched", self.config_path)
                self._current = _with_default_multiplier(live)
                return SessionResult(ok=False, action="invalid", counts=self._current.counts())

            if persisted is None:
                merged = _with_default_multiplier(live)
                stats = ApplyStats()
                action = "created"
            else:
                merged = merge_data(persisted, live, preserve_all_local_only=True)
                stats = apply_to_food_system(merged, self.handle)
                action = "merged"

            saved = self.store.save(merged, self.config_path)
            self._current = merged
            delivered = self._broadcast(merged)
            return SessionResult(
                ok=saved,
                action=action,
                saved=saved,
                stats=stats,
                delivered=delivered,
                counts=merged.counts(),
            )

    def on_sync_received(self, event: FoodSyncEvent) -> SessionResult:
        """Replica side: apply a full snapshot from the authoritative host."""
        with self._lock:
            if not self._handle_ready():
                logger.info("Sync event received before the food system is ready; ignoring it")
                return SessionResult(ok=False, action="unavailable")
            stats = event.run(self.handle)
            self._current = event.to_config()
            return SessionResult(ok=True, action="synced", stats=stats, counts=self._current.counts())

    def on_session_persisting(self) -> SessionResult:
        with self._lock:
            if not self._handle_ready():
                logger.info("Food system not ready; skipping persist")
                return SessionResult(ok=False, action="unavailable")

            live = read_food_system(self.handle)
            base = self._current if self._current is not None else self.store.load(self.config_path)
            if base is None:
                merged = _with_default_multiplier(live)
            else:
                merged = merge_data(base, live, preserve_all_local_only=False)

            saved = self.store.save(merged, self.config_path)
            self._current = merged
            return SessionResult(ok=saved, action="persisted", saved=saved, counts=merged.counts())
