from __future__ import annotations

import logging

from .live_state import CONSUME_TYPE_NAMES, FoodSystemHandle
from .models import (
    CONSUMPTION_SERIAL,
    AnimalFood,
    FoodConfig,
    FoodGroup,
    Mixture,
    MixtureIngredient,
    Recipe,
    RecipeIngredient,
)

logger = logging.getLogger(__name__)


def _fill_type_names(handle: FoodSystemHandle, indices: list[int]) -> str:
    names: list[str] = []
    for index in indices:
        name = handle.fill_type_name(index)
        if name:
            names.append(name)
        else:
            logger.debug("Live state references unknown fill type index %s", index)
    return " ".join(names)


def _percent(value: float) -> int:
    return int(round(float(value) * 100))


def read_animals(handle: FoodSystemHandle) -> list[AnimalFood]:
    animals: list[AnimalFood] = []
    for live in handle.list_animal_foods():
        name = handle.animal_type_name(live.animal_type_index)
        if not name:
            logger.warning("Skipping live animal food with unknown animal type index %s", live.animal_type_index)
            continue
        animals.append(
            AnimalFood(
                animal_type=name,
                consumption_type=CONSUME_TYPE_NAMES.get(live.consumption_type, CONSUMPTION_SERIAL),
                food_groups=[
                    FoodGroup(
                        title=group.title,
                        production_weight=group.production_weight,
                        eat_weight=group.eat_weight,
                        fill_types=_fill_type_names(handle, group.fill_types),
                    )
                    for group in live.groups
                ],
            )
        )
    return animals


def read_mixtures(handle: FoodSystemHandle) -> list[Mixture]:
    mixtures: list[Mixture] = []
    for live in handle.list_mixtures():
        fill_type = handle.fill_type_name(live.fill_type_index)
        owner_index = handle.mixture_animal_type(live.fill_type_index)
        animal_type = handle.animal_type_name(owner_index) if owner_index is not None else None
        if not fill_type or not animal_type:
            logger.warning("Skipping live mixture %s: owning animal type not found", fill_type or live.fill_type_index)
            continue
        mixtures.append(
            Mixture(
                fill_type=fill_type,
                animal_type=animal_type,
                ingredients=[
                    MixtureIngredient(weight=item.weight, fill_types=_fill_type_names(handle, item.fill_types))
                    for item in live.ingredients
                ],
            )
        )
    return mixtures


def read_recipes(handle: FoodSystemHandle) -> list[Recipe]:
    recipes: list[Recipe] = []
    for live in handle.list_recipes():
        fill_type = handle.fill_type_name(live.fill_type_index)
        if not fill_type:
            logger.warning("Skipping live recipe with unknown fill type index %s", live.fill_type_index)
            continue
        recipes.append(
            Recipe(
                fill_type=fill_type,
                ingredients=[
                    RecipeIngredient(
                        name=item.name,
                        title=item.title,
                        min_percentage=_percent(item.min_percentage),
                        max_percentage=_percent(item.max_percentage),
                        fill_types=_fill_type_names(handle, item.fill_types),
                    )
                    for item in live.ingredients
                ],
            )
        )
    return recipes


def read_food_system(handle: FoodSystemHandle | None) -> FoodConfig:
    """Snapshot the live food system into a FoodConfig.

    An unavailable handle is the normal not-yet-initialized case and yields an
    empty config. The snapshot carries no production multiplier.
    """
    if handle is None or not handle.is_ready():
        logger.info("Live food system not available; returning an empty snapshot")
        return FoodConfig()
    return FoodConfig(
        animals=read_animals(handle),
        mixtures=read_mixtures(handle),
        recipes=read_recipes(handle),
    )
