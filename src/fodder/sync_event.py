"""Full-snapshot replication of the merged food config.

The authoritative side broadcasts one ``FoodSyncEvent`` after every apply and
resends the latest event in full to any replica that attaches later. There is
no delta protocol.
"""
from __future__ import annotations

import copy
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

import requests

from .applicator import ApplyStats, apply_to_food_system
from .live_state import FoodSystemHandle
from .models import (
    AnimalFood,
    FoodConfig,
    Mixture,
    ProductionMultiplier,
    Recipe,
    config_from_payload,
    config_to_payload,
)

logger = logging.getLogger(__name__)


@dataclass
class FoodSyncEvent:
    animals: list[AnimalFood] = field(default_factory=list)
    mixtures: list[Mixture] = field(default_factory=list)
    recipes: list[Recipe] = field(default_factory=list)
    production_multiplier: ProductionMultiplier | None = None

    @classmethod
    def from_config(cls, config: FoodConfig) -> "FoodSyncEvent":
        snapshot = copy.deepcopy(config)
        return cls(
            animals=snapshot.animals,
            mixtures=snapshot.mixtures,
            recipes=snapshot.recipes,
            production_multiplier=snapshot.production_multiplier,
        )

    def to_config(self) -> FoodConfig:
        return copy.deepcopy(
            FoodConfig(
                animals=self.animals,
                mixtures=self.mixtures,
                recipes=self.recipes,
                production_multiplier=self.production_multiplier,
            )
        )

    def encode(self) -> bytes:
        payload = config_to_payload(self.to_config())
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=True).encode("utf-8")

    @classmethod
    def decode(cls, raw: bytes | str) -> "FoodSyncEvent":
        try:
            payload = json.loads(raw)
        except (TypeError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValueError(f"Invalid sync event: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValueError("Invalid sync event: expected a JSON object.")
        return cls.from_config(config_from_payload(payload))

    def run(self, handle: FoodSystemHandle | None) -> ApplyStats:
        """Apply the received snapshot to a replica's live food system."""
        return apply_to_food_system(self.to_config(), handle)


class Replica(Protocol):
    def send(self, event: FoodSyncEvent) -> None: ...


class HttpReplica:
    def __init__(self, url: str, timeout: float = 15):
        self.url = url.rstrip("/")
        self.timeout = timeout

    def send(self, event: FoodSyncEvent) -> None:
        response = requests.post(
            self.url,
            data=event.encode(),
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()

    def __repr__(self) -> str:
        return f"HttpReplica({self.url!r})"


class SyncBroadcaster:
    def __init__(self) -> None:
        self._replicas: dict[str, Replica] = {}
        self._latest: FoodSyncEvent | None = None
        self._lock = threading.Lock()

    @property
    def latest(self) -> FoodSyncEvent | None:
        return self._latest

    def replica_ids(self) -> list[str]:
        with self._lock:
            return list(self._replicas)

    def attach(self, replica_id: str, replica: Replica) -> bool:
        """Register a replica and resend the latest event to it.

        Returns True when a resend happened and succeeded.
        """
        with self._lock:
            self._replicas[replica_id] = replica
            latest = self._latest
        if latest is None:
            return False
        return self._deliver(replica_id, replica, latest)

    def detach(self, replica_id: str) -> bool:
        with self._lock:
            return self._replicas.pop(replica_id, None) is not None

    def broadcast(self, config: FoodConfig) -> int:
        """Send a full snapshot to every attached replica; returns deliveries."""
        event = FoodSyncEvent.from_config(config)
        with self._lock:
            self._latest = event
            targets = list(self._replicas.items())
        delivered = 0
        for replica_id, replica in targets:
            if self._deliver(replica_id, replica, event):
                delivered += 1
        if targets:
            logger.info("Broadcast food config to %d/%d replicas", delivered, len(targets))
        return delivered

    @staticmethod
    def _deliver(replica_id: str, replica: Replica, event: FoodSyncEvent) -> bool:
        try:
            replica.send(event)
        except requests.RequestException as exc:
            logger.warning("Sync to replica %s failed: %s", replica_id, exc)
            return False
        return True
