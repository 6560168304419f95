from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models import FoodConfig, config_from_payload, config_to_payload

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 20

DOCUMENTATION: tuple[str, ...] = (
    "Animal food configuration. Edit values and restart the session to apply them.",
    "The host shows at most 5 food groups or ingredients per entry.",
    "Set \"disabled\": true on a food group or ingredient to remove it from the game while keeping it here.",
    "Do not disable the grass food group of grazing animals.",
    "consumptionType SERIAL eats food groups in order; PARALLEL eats them by their eatWeight share.",
    "eatWeight, weight and the min/max percentage span are rescaled to sum to 1 after every load.",
    "Mixture and recipe ingredients are matched by position: keep their order stable.",
    "Entries named \"example\" are documentation only and ignored on load.",
)

EXAMPLE_ANIMAL: dict[str, Any] = {
    "consumptionType": "PARALLEL",
    "foodGroups": [
        {"title": "Custom feed", "productionWeight": 0.5, "eatWeight": 0.5, "fillTypes": "WHEAT BARLEY"},
        {"title": "Old feed", "productionWeight": 0.2, "eatWeight": 0.2, "fillTypes": "OAT", "disabled": True},
    ],
}
EXAMPLE_MIXTURE: dict[str, Any] = {
    "ingredients": [
        {"weight": 0.6, "fillTypes": "WHEAT BARLEY"},
        {"weight": 0.4, "fillTypes": "SOYBEAN", "disabled": True},
    ],
}
EXAMPLE_RECIPE: dict[str, Any] = {
    "ingredients": [
        {"name": "grass", "title": "Grass", "minPercentage": 20, "maxPercentage": 60, "fillTypes": "GRASS_WINDROW"},
    ],
}


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")


class ConfigStore:
    """JSON persistence for FoodConfig documents.

    Writes are atomic (temp file then replace). The previous document is
    copied into the history directory before it is overwritten.
    """

    def __init__(self, history_dir: Path | None = None, max_history: int = DEFAULT_MAX_HISTORY):
        self.history_dir = history_dir
        self.max_history = max_history

    def load(self, path: str | Path) -> FoodConfig | None:
        doc_path = Path(path)
        if not doc_path.exists():
            logger.info("No food config at %s", doc_path)
            return None
        try:
            payload = json.loads(doc_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error("Could not read food config %s: %s", doc_path, exc)
            return None
        if not isinstance(payload, dict):
            logger.error("Food config %s is not a JSON object", doc_path)
            return None
        config = config_from_payload(payload)
        logger.info(
            "Loaded food config %s: %d animals, %d mixtures, %d recipes",
            doc_path,
            len(config.animals),
            len(config.mixtures),
            len(config.recipes),
        )
        return config

    def save(self, config: FoodConfig, path: str | Path) -> bool:
        doc_path = Path(path)
        content = self.build_document(config)
        try:
            doc_path.parent.mkdir(parents=True, exist_ok=True)
            if doc_path.exists():
                self._backup(doc_path)
            temp_path = doc_path.with_suffix(doc_path.suffix + ".tmp")
            temp_path.write_text(json.dumps(content, indent=2, ensure_ascii=True) + "\n", encoding="utf-8")
            temp_path.replace(doc_path)
        except OSError as exc:
            logger.error("Could not write food config %s: %s", doc_path, exc)
            return False
        logger.info("Saved food config to %s", doc_path)
        return True

    @staticmethod
    def build_document(config: FoodConfig) -> dict[str, Any]:
        payload = config_to_payload(config)
        document: dict[str, Any] = {"documentation": list(DOCUMENTATION)}
        document.update(payload)
        for key, example in (("animals", EXAMPLE_ANIMAL), ("mixtures", EXAMPLE_MIXTURE), ("recipes", EXAMPLE_RECIPE)):
            if document[key]:
                document[key][0] = {**document[key][0], "example": example}
        return document

    def _history_dir_for(self, doc_path: Path) -> Path:
        return self.history_dir if self.history_dir is not None else doc_path.parent / ".history"

    def _backup(self, doc_path: Path) -> None:
        history_dir = self._history_dir_for(doc_path)
        history_dir.mkdir(parents=True, exist_ok=True)
        backup_path = history_dir / f"{doc_path.stem}.{_utc_stamp()}.json"
        backup_path.write_bytes(doc_path.read_bytes())
        self._rotate(history_dir, doc_path.stem)

    def _rotate(self, history_dir: Path, stem: str) -> None:
        backups = sorted(history_dir.glob(f"{stem}.*.json"))
        excess = len(backups) - self.max_history
        for old in backups[: max(excess, 0)]:
            old.unlink()
