"""Live food system owned by the host.

The reconciler never holds the live state itself; it receives a
``FoodSystemHandle`` and reads or patches it through these calls.
``InMemoryFoodSystem`` is a host defined from a JSON document, used by the
CLI, the server and the tests.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

FOOD_CONSUME_TYPE_SERIAL = 1
FOOD_CONSUME_TYPE_PARALLEL = 2

CONSUME_TYPE_NAMES = {
    FOOD_CONSUME_TYPE_SERIAL: "SERIAL",
    FOOD_CONSUME_TYPE_PARALLEL: "PARALLEL",
}
CONSUME_TYPE_VALUES = {name: value for value, name in CONSUME_TYPE_NAMES.items()}


@dataclass
class LiveFoodGroup:
    title: str
    production_weight: float
    eat_weight: float
    fill_types: list[int] = field(default_factory=list)


@dataclass
class LiveAnimalFood:
    animal_type_index: int
    consumption_type: int = FOOD_CONSUME_TYPE_SERIAL
    groups: list[LiveFoodGroup] = field(default_factory=list)


@dataclass
class LiveMixtureIngredient:
    weight: float
    fill_types: list[int] = field(default_factory=list)


@dataclass
class LiveMixture:
    fill_type_index: int
    ingredients: list[LiveMixtureIngredient] = field(default_factory=list)


@dataclass
class LiveRecipeIngredient:
    name: str
    title: str
    min_percentage: float
    max_percentage: float
    ratio: float
    fill_types: list[int] = field(default_factory=list)


@dataclass
class LiveRecipe:
    fill_type_index: int
    ingredients: list[LiveRecipeIngredient] = field(default_factory=list)


class FoodSystemHandle(Protocol):
    def is_ready(self) -> bool: ...

    def fill_type_index(self, name: str) -> int | None: ...

    def fill_type_name(self, index: int) -> str | None: ...

    def animal_type_index(self, name: str) -> int | None: ...

    def animal_type_name(self, index: int) -> str | None: ...

    def list_animal_foods(self) -> list[LiveAnimalFood]: ...

    def get_animal_food(self, animal_type_index: int) -> LiveAnimalFood | None: ...

    def list_mixtures(self) -> list[LiveMixture]: ...

    def get_mixture(self, fill_type_index: int) -> LiveMixture | None: ...

    def mixture_animal_type(self, fill_type_index: int) -> int | None: ...

    def list_recipes(self) -> list[LiveRecipe]: ...

    def get_recipe(self, fill_type_index: int) -> LiveRecipe | None: ...

    def set_production_multiplier(self, value: float) -> None: ...


def _type_key(name: str) -> str:
    return str(name or "").strip().upper()


def _name_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return str(value or "").split()


def _dict_items(value: Any, context: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f"{context}: expected a list of objects")
    return value


def _float(value: Any, default: float, context: str) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{context}: expected a number, got {value!r}") from exc


class InMemoryFoodSystem:
    def __init__(self, fill_types: list[str], animal_types: list[str], *, ready: bool = True) -> None:
        self._fill_types = [_type_key(name) for name in fill_types]
        self._fill_type_indices = {name: idx for idx, name in enumerate(self._fill_types, start=1)}
        self._animal_types = [_type_key(name) for name in animal_types]
        self._animal_type_indices = {name: idx for idx, name in enumerate(self._animal_types, start=1)}
        self.animal_foods: list[LiveAnimalFood] = []
        self.mixtures: list[LiveMixture] = []
        self.mixture_owners: dict[int, int] = {}
        self.recipes: list[LiveRecipe] = []
        self.production_multiplier = 1.0
        self.ready = ready

    def is_ready(self) -> bool:
        return self.ready

    def fill_type_index(self, name: str) -> int | None:
        return self._fill_type_indices.get(_type_key(name))

    def fill_type_name(self, index: int) -> str | None:
        if 1 <= index <= len(self._fill_types):
            return self._fill_types[index - 1]
        return None

    def animal_type_index(self, name: str) -> int | None:
        return self._animal_type_indices.get(_type_key(name))

    def animal_type_name(self, index: int) -> str | None:
        if 1 <= index <= len(self._animal_types):
            return self._animal_types[index - 1]
        return None

    def list_animal_foods(self) -> list[LiveAnimalFood]:
        return self.animal_foods

    def get_animal_food(self, animal_type_index: int) -> LiveAnimalFood | None:
        for animal in self.animal_foods:
            if animal.animal_type_index == animal_type_index:
                return animal
        return None

    def list_mixtures(self) -> list[LiveMixture]:
        return self.mixtures

    def get_mixture(self, fill_type_index: int) -> LiveMixture | None:
        for mixture in self.mixtures:
            if mixture.fill_type_index == fill_type_index:
                return mixture
        return None

    def mixture_animal_type(self, fill_type_index: int) -> int | None:
        return self.mixture_owners.get(fill_type_index)

    def list_recipes(self) -> list[LiveRecipe]:
        return self.recipes

    def get_recipe(self, fill_type_index: int) -> LiveRecipe | None:
        for recipe in self.recipes:
            if recipe.fill_type_index == fill_type_index:
                return recipe
        return None

    def set_production_multiplier(self, value: float) -> None:
        self.production_multiplier = float(value)

    # -- JSON definition ------------------------------------------------

    def _require_fill_type(self, name: str, context: str) -> int:
        index = self.fill_type_index(name)
        if index is None:
            raise ValueError(f"{context}: unknown fill type '{name}'")
        return index

    def _require_animal_type(self, name: str, context: str) -> int:
        index = self.animal_type_index(name)
        if index is None:
            raise ValueError(f"{context}: unknown animal type '{name}'")
        return index

    def _fill_type_indices_for(self, value: Any, context: str) -> list[int]:
        return [self._require_fill_type(name, context) for name in _name_list(value)]

    def _fill_type_names_for(self, indices: list[int]) -> list[str]:
        return [name for name in (self.fill_type_name(index) for index in indices) if name]

    @classmethod
    def from_payload(cls, payload: Any) -> "InMemoryFoodSystem":
        if not isinstance(payload, dict):
            raise ValueError("Host definition must be a JSON object.")
        fill_types = _name_list(payload.get("fillTypes"))
        animal_types = _name_list(payload.get("animalTypes"))
        if not fill_types:
            raise ValueError("Host definition has no fillTypes.")
        system = cls(fill_types, animal_types, ready=bool(payload.get("ready", True)))
        system.production_multiplier = _float(payload.get("productionMultiplier"), 1.0, "productionMultiplier")

        for raw_animal in _dict_items(payload.get("animals"), "animals"):
            name = str(raw_animal.get("animalType") or "")
            context = f"animal {name or '?'}"
            mode = _type_key(raw_animal.get("consumptionType") or "SERIAL")
            if mode not in CONSUME_TYPE_VALUES:
                raise ValueError(f"{context}: unknown consumptionType '{mode}'")
            animal = LiveAnimalFood(
                animal_type_index=system._require_animal_type(name, context),
                consumption_type=CONSUME_TYPE_VALUES[mode],
            )
            for raw_group in _dict_items(raw_animal.get("foodGroups"), context):
                animal.groups.append(
                    LiveFoodGroup(
                        title=str(raw_group.get("title") or ""),
                        production_weight=_float(raw_group.get("productionWeight"), 0.0, context),
                        eat_weight=_float(raw_group.get("eatWeight"), 1.0, context),
                        fill_types=system._fill_type_indices_for(raw_group.get("fillTypes"), context),
                    )
                )
            system.animal_foods.append(animal)

        for raw_mixture in _dict_items(payload.get("mixtures"), "mixtures"):
            name = str(raw_mixture.get("fillType") or "")
            context = f"mixture {name or '?'}"
            mixture = LiveMixture(fill_type_index=system._require_fill_type(name, context))
            owner = raw_mixture.get("animalType")
            if owner:
                system.mixture_owners[mixture.fill_type_index] = system._require_animal_type(str(owner), context)
            for raw_ingredient in _dict_items(raw_mixture.get("ingredients"), context):
                mixture.ingredients.append(
                    LiveMixtureIngredient(
                        weight=_float(raw_ingredient.get("weight"), 0.0, context),
                        fill_types=system._fill_type_indices_for(raw_ingredient.get("fillTypes"), context),
                    )
                )
            system.mixtures.append(mixture)

        for raw_recipe in _dict_items(payload.get("recipes"), "recipes"):
            name = str(raw_recipe.get("fillType") or "")
            context = f"recipe {name or '?'}"
            recipe = LiveRecipe(fill_type_index=system._require_fill_type(name, context))
            for raw_ingredient in _dict_items(raw_recipe.get("ingredients"), context):
                min_pct = _float(raw_ingredient.get("minPercentage"), 0.0, context)
                max_pct = _float(raw_ingredient.get("maxPercentage"), 0.75, context)
                recipe.ingredients.append(
                    LiveRecipeIngredient(
                        name=str(raw_ingredient.get("name") or ""),
                        title=str(raw_ingredient.get("title") or ""),
                        min_percentage=min_pct,
                        max_percentage=max_pct,
                        ratio=_float(raw_ingredient.get("ratio"), max_pct - min_pct, context),
                        fill_types=system._fill_type_indices_for(raw_ingredient.get("fillTypes"), context),
                    )
                )
            system.recipes.append(recipe)
        return system

    def to_payload(self) -> dict[str, Any]:
        return {
            "ready": self.ready,
            "fillTypes": list(self._fill_types),
            "animalTypes": list(self._animal_types),
            "productionMultiplier": self.production_multiplier,
            "animals": [
                {
                    "animalType": self.animal_type_name(animal.animal_type_index),
                    "consumptionType": CONSUME_TYPE_NAMES.get(animal.consumption_type, "SERIAL"),
                    "foodGroups": [
                        {
                            "title": group.title,
                            "productionWeight": group.production_weight,
                            "eatWeight": group.eat_weight,
                            "fillTypes": self._fill_type_names_for(group.fill_types),
                        }
                        for group in animal.groups
                    ],
                }
                for animal in self.animal_foods
            ],
            "mixtures": [
                {
                    "fillType": self.fill_type_name(mixture.fill_type_index),
                    "animalType": self.animal_type_name(self.mixture_owners.get(mixture.fill_type_index, 0)),
                    "ingredients": [
                        {"weight": item.weight, "fillTypes": self._fill_type_names_for(item.fill_types)}
                        for item in mixture.ingredients
                    ],
                }
                for mixture in self.mixtures
            ],
            "recipes": [
                {
                    "fillType": self.fill_type_name(recipe.fill_type_index),
                    "ingredients": [
                        {
                            "name": item.name,
                            "title": item.title,
                            "minPercentage": item.min_percentage,
                            "maxPercentage": item.max_percentage,
                            "ratio": item.ratio,
                            "fillTypes": self._fill_type_names_for(item.fill_types),
                        }
                        for item in recipe.ingredients
                    ],
                }
                for recipe in self.recipes
            ],
        }


def load_food_system(path: str | Path) -> InMemoryFoodSystem:
    host_path = Path(path)
    try:
        payload = json.loads(host_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Host definition {host_path} is not valid JSON: {exc}") from exc
    return InMemoryFoodSystem.from_payload(payload)


def write_food_system(system: InMemoryFoodSystem, path: str | Path) -> None:
    host_path = Path(path)
    host_path.parent.mkdir(parents=True, exist_ok=True)
    host_path.write_text(json.dumps(system.to_payload(), indent=2) + "\n", encoding="utf-8")
