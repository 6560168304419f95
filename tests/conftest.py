from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

from fodder.live_state import InMemoryFoodSystem

HOST_PAYLOAD = {
    "fillTypes": ["GRASS_WINDROW", "HAY", "SILAGE", "WHEAT", "BARLEY", "MAIZE", "SOYBEAN", "FORAGE", "PIGFOOD"],
    "animalTypes": ["COW", "PIG", "SHEEP"],
    "animals": [
        {
            "animalType": "COW",
            "consumptionType": "PARALLEL",
            "foodGroups": [
                {"title": "A", "productionWeight": 0.6, "eatWeight": 0.5, "fillTypes": ["GRASS_WINDROW"]},
                {"title": "C", "productionWeight": 0.4, "eatWeight": 0.5, "fillTypes": ["HAY"]},
            ],
        },
        {
            "animalType": "PIG",
            "consumptionType": "SERIAL",
            "foodGroups": [
                {"title": "Base", "productionWeight": 1.0, "eatWeight": 1.0, "fillTypes": ["MAIZE"]},
            ],
        },
    ],
    "mixtures": [
        {
            "fillType": "PIGFOOD",
            "animalType": "PIG",
            "ingredients": [
                {"weight": 0.5, "fillTypes": ["MAIZE"]},
                {"weight": 0.3, "fillTypes": ["WHEAT", "BARLEY"]},
                {"weight": 0.2, "fillTypes": ["SOYBEAN"]},
            ],
        }
    ],
    "recipes": [
        {
            "fillType": "FORAGE",
            "ingredients": [
                {"name": "grass", "title": "Grass", "minPercentage": 0.0, "maxPercentage": 0.5, "fillTypes": ["GRASS_WINDROW", "HAY"]},
                {"name": "silage", "title": "Silage", "minPercentage": 0.3, "maxPercentage": 0.7, "fillTypes": ["SILAGE"]},
            ],
        }
    ],
}


@pytest.fixture
def host_payload() -> dict:
    return copy.deepcopy(HOST_PAYLOAD)


@pytest.fixture
def host(host_payload) -> InMemoryFoodSystem:
    return InMemoryFoodSystem.from_payload(host_payload)


@pytest.fixture
def host_file(tmp_path: Path, host_payload) -> Path:
    path = tmp_path / "host_state.json"
    path.write_text(json.dumps(host_payload, indent=2) + "\n", encoding="utf-8")
    return path
