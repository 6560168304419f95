"""Animal food configuration shape.

The same shape is used for every snapshot the engine handles: the document
loaded from disk, the projection of the live food system, the merged result,
and the payload sent to replicas. Documents use camelCase keys; the Python
side uses snake_case dataclasses.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

CONSUMPTION_SERIAL = "SERIAL"
CONSUMPTION_PARALLEL = "PARALLEL"
CONSUMPTION_TYPES: tuple[str, ...] = (CONSUMPTION_SERIAL, CONSUMPTION_PARALLEL)

DEFAULT_PRODUCTION_WEIGHT = 0.0
DEFAULT_EAT_WEIGHT = 1.0
DEFAULT_MIXTURE_WEIGHT = 0.0
DEFAULT_MIN_PERCENTAGE = 0
DEFAULT_MAX_PERCENTAGE = 75


@dataclass
class FoodGroup:
    title: str
    production_weight: float = DEFAULT_PRODUCTION_WEIGHT
    eat_weight: float = DEFAULT_EAT_WEIGHT
    fill_types: str = ""
    disabled: bool = False


@dataclass
class AnimalFood:
    animal_type: str
    consumption_type: str = CONSUMPTION_SERIAL
    food_groups: list[FoodGroup] = field(default_factory=list)


@dataclass
class MixtureIngredient:
    weight: float = DEFAULT_MIXTURE_WEIGHT
    fill_types: str = ""
    disabled: bool = False


@dataclass
class Mixture:
    fill_type: str
    animal_type: str
    ingredients: list[MixtureIngredient] = field(default_factory=list)


@dataclass
class RecipeIngredient:
    name: str = ""
    title: str = ""
    min_percentage: int = DEFAULT_MIN_PERCENTAGE
    max_percentage: int = DEFAULT_MAX_PERCENTAGE
    fill_types: str = ""
    disabled: bool = False


@dataclass
class Recipe:
    fill_type: str
    ingredients: list[RecipeIngredient] = field(default_factory=list)


@dataclass
class ProductionMultiplier:
    multiplier: float = 1.0
    disabled: bool = True


@dataclass
class FoodConfig:
    animals: list[AnimalFood] = field(default_factory=list)
    mixtures: list[Mixture] = field(default_factory=list)
    recipes: list[Recipe] = field(default_factory=list)
    production_multiplier: ProductionMultiplier | None = None

    def counts(self) -> dict[str, int]:
        return {
            "animals": len(self.animals),
            "mixtures": len(self.mixtures),
            "recipes": len(self.recipes),
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def _bool_value(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().casefold()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off", ""}:
            return False
    return default


def _float_value(value: Any, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        logger.warning("Ignoring non-finite number %r, using %s", value, default)
        return default
    return number


def _int_value(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    number = _float_value(value, float(default))
    return int(round(number))


def _consumption_type(value: Any) -> str:
    text = _text(value).upper()
    return text if text in CONSUMPTION_TYPES else CONSUMPTION_SERIAL


def _list_payload(raw: Any, key: str) -> list[dict[str, Any]]:
    items = raw.get(key) if isinstance(raw, dict) else None
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def food_group_from_payload(item: dict[str, Any], context: str) -> FoodGroup | None:
    title = _text(item.get("title"))
    if not title:
        logger.warning("Skipping food group without title in %s", context)
        return None
    return FoodGroup(
        title=title,
        production_weight=_float_value(item.get("productionWeight"), DEFAULT_PRODUCTION_WEIGHT),
        eat_weight=_float_value(item.get("eatWeight"), DEFAULT_EAT_WEIGHT),
        fill_types=_text(item.get("fillTypes")),
        disabled=_bool_value(item.get("disabled")),
    )


def animal_from_payload(item: dict[str, Any]) -> AnimalFood | None:
    animal_type = _text(item.get("animalType"))
    if not animal_type:
        logger.warning("Skipping animal entry without animalType")
        return None
    groups: list[FoodGroup] = []
    for raw_group in _list_payload(item, "foodGroups"):
        group = food_group_from_payload(raw_group, animal_type)
        if group is not None:
            groups.append(group)
    return AnimalFood(
        animal_type=animal_type,
        consumption_type=_consumption_type(item.get("consumptionType")),
        food_groups=groups,
    )


def mixture_from_payload(item: dict[str, Any]) -> Mixture | None:
    fill_type = _text(item.get("fillType"))
    animal_type = _text(item.get("animalType"))
    if not fill_type or not animal_type:
        logger.warning("Skipping mixture entry without fillType/animalType (%r/%r)", fill_type, animal_type)
        return None
    ingredients = [
        MixtureIngredient(
            weight=_float_value(raw.get("weight"), DEFAULT_MIXTURE_WEIGHT),
            fill_types=_text(raw.get("fillTypes")),
            disabled=_bool_value(raw.get("disabled")),
        )
        for raw in _list_payload(item, "ingredients")
    ]
    return Mixture(fill_type=fill_type, animal_type=animal_type, ingredients=ingredients)


def recipe_from_payload(item: dict[str, Any]) -> Recipe | None:
    fill_type = _text(item.get("fillType"))
    if not fill_type:
        logger.warning("Skipping recipe entry without fillType")
        return None
    ingredients = [
        RecipeIngredient(
            name=_text(raw.get("name")),
            title=_text(raw.get("title")),
            min_percentage=_int_value(raw.get("minPercentage"), DEFAULT_MIN_PERCENTAGE),
            max_percentage=_int_value(raw.get("maxPercentage"), DEFAULT_MAX_PERCENTAGE),
            fill_types=_text(raw.get("fillTypes")),
            disabled=_bool_value(raw.get("disabled")),
        )
        for raw in _list_payload(item, "ingredients")
    ]
    return Recipe(fill_type=fill_type, ingredients=ingredients)


def multiplier_from_payload(raw: Any) -> ProductionMultiplier | None:
    if not isinstance(raw, dict):
        return None
    return ProductionMultiplier(
        multiplier=_float_value(raw.get("multiplier"), 1.0),
        disabled=_bool_value(raw.get("disabled"), default=True),
    )


def config_from_payload(raw: Any) -> FoodConfig:
    """Build a FoodConfig from a document payload, dropping malformed entries."""
    config = FoodConfig()
    for item in _list_payload(raw, "animals"):
        animal = animal_from_payload(item)
        if animal is not None:
            config.animals.append(animal)
    for item in _list_payload(raw, "mixtures"):
        mixture = mixture_from_payload(item)
        if mixture is not None:
            config.mixtures.append(mixture)
    for item in _list_payload(raw, "recipes"):
        recipe = recipe_from_payload(item)
        if recipe is not None:
            config.recipes.append(recipe)
    if isinstance(raw, dict):
        config.production_multiplier = multiplier_from_payload(raw.get("productionMultiplier"))
    return config


def _with_disabled(payload: dict[str, Any], disabled: bool) -> dict[str, Any]:
    if disabled:
        payload["disabled"] = True
    return payload


def food_group_to_payload(group: FoodGroup) -> dict[str, Any]:
    return _with_disabled(
        {
            "title": group.title,
            "productionWeight": group.production_weight,
            "eatWeight": group.eat_weight,
            "fillTypes": group.fill_types,
        },
        group.disabled,
    )


def animal_to_payload(animal: AnimalFood) -> dict[str, Any]:
    return {
        "animalType": animal.animal_type,
        "consumptionType": animal.consumption_type,
        "foodGroups": [food_group_to_payload(group) for group in animal.food_groups],
    }


def mixture_to_payload(mixture: Mixture) -> dict[str, Any]:
    return {
        "fillType": mixture.fill_type,
        "animalType": mixture.animal_type,
        "ingredients": [
            _with_disabled({"weight": item.weight, "fillTypes": item.fill_types}, item.disabled)
            for item in mixture.ingredients
        ],
    }


def recipe_to_payload(recipe: Recipe) -> dict[str, Any]:
    return {
        "fillType": recipe.fill_type,
        "ingredients": [
            _with_disabled(
                {
                    "name": item.name,
                    "title": item.title,
                    "minPercentage": item.min_percentage,
                    "maxPercentage": item.max_percentage,
                    "fillTypes": item.fill_types,
                },
                item.disabled,
            )
            for item in recipe.ingredients
        ],
    }


def config_to_payload(config: FoodConfig) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if config.production_multiplier is not None:
        payload["productionMultiplier"] = {
            "multiplier": config.production_multiplier.multiplier,
            "disabled": config.production_multiplier.disabled,
        }
    payload["animals"] = [animal_to_payload(animal) for animal in config.animals]
    payload["mixtures"] = [mixture_to_payload(mixture) for mixture in config.mixtures]
    payload["recipes"] = [recipe_to_payload(recipe) for recipe in config.recipes]
    return payload
