from __future__ import annotations

import copy
import logging
from typing import Callable, Hashable, Sequence, TypeVar

from .identity import animal_key, group_key, index_by_key, mixture_key, positional_keys, recipe_key
from .models import AnimalFood, FoodConfig, Mixture, ProductionMultiplier, Recipe

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _merge_keyed(
    persisted: Sequence[T],
    live: Sequence[T],
    key_fn: Callable[[T], Hashable],
    merge_pair: Callable[[T, T], T],
    preserve_all_local_only: bool,
    context: str,
) -> list[T]:
    live_by_key = index_by_key(live, key_fn)
    out: list[T] = []
    seen: set[Hashable] = set()

    # Persisted order first; live is only consulted to decide inclusion.
    for item in persisted:
        key = key_fn(item)
        if key in seen:
            logger.warning("Duplicate %s entry %r in persisted config; keeping the first one", context, key)
            continue
        seen.add(key)
        live_item = live_by_key.get(key)
        if live_item is not None:
            out.append(merge_pair(item, live_item))
        elif preserve_all_local_only or getattr(item, "disabled", False):
            out.append(copy.deepcopy(item))
        else:
            logger.info("Dropping %s %r: no longer present in the live state", context, key)

    for live_item in live:
        key = key_fn(live_item)
        if key in seen:
            continue
        seen.add(key)
        out.append(copy.deepcopy(live_item))
    return out


def _merge_positional(
    persisted: Sequence[T],
    live: Sequence[T],
    preserve_all_local_only: bool,
    context: str,
) -> list[T]:
    out: list[T] = []
    for item, key in zip(persisted, positional_keys(persisted)):
        if key is None:
            out.append(copy.deepcopy(item))
        elif key <= len(live) or preserve_all_local_only:
            out.append(copy.deepcopy(item))
        else:
            logger.info("Dropping %s ingredient %d: no longer present in the live state", context, key)

    # Ingredients the user disabled are still in the live list at session start,
    # so only positions past the whole persisted list count as upstream additions.
    for position, live_item in enumerate(live, start=1):
        if position > len(persisted):
            out.append(copy.deepcopy(live_item))
    return out


def merge_animals(
    persisted: Sequence[AnimalFood], live: Sequence[AnimalFood], preserve_all_local_only: bool
) -> list[AnimalFood]:
    def merge_pair(local: AnimalFood, remote: AnimalFood) -> AnimalFood:
        return AnimalFood(
            animal_type=local.animal_type,
            consumption_type=local.consumption_type,
            food_groups=_merge_keyed(
                local.food_groups,
                remote.food_groups,
                group_key,
                lambda a, _b: copy.deepcopy(a),
                preserve_all_local_only,
                f"food group of {local.animal_type}",
            ),
        )

    return _merge_keyed(persisted, live, animal_key, merge_pair, preserve_all_local_only, "animal")


def merge_mixtures(
    persisted: Sequence[Mixture], live: Sequence[Mixture], preserve_all_local_only: bool
) -> list[Mixture]:
    def merge_pair(local: Mixture, remote: Mixture) -> Mixture:
        return Mixture(
            fill_type=local.fill_type,
            animal_type=local.animal_type,
            ingredients=_merge_positional(
                local.ingredients, remote.ingredients, preserve_all_local_only, f"mixture {mixture_key(local)}"
            ),
        )

    return _merge_keyed(persisted, live, mixture_key, merge_pair, preserve_all_local_only, "mixture")


def merge_recipes(
    persisted: Sequence[Recipe], live: Sequence[Recipe], preserve_all_local_only: bool
) -> list[Recipe]:
    def merge_pair(local: Recipe, remote: Recipe) -> Recipe:
        return Recipe(
            fill_type=local.fill_type,
            ingredients=_merge_positional(
                local.ingredients, remote.ingredients, preserve_all_local_only, f"recipe {local.fill_type}"
            ),
        )

    return _merge_keyed(persisted, live, recipe_key, merge_pair, preserve_all_local_only, "recipe")


def merge_production_multiplier(persisted: ProductionMultiplier | None) -> ProductionMultiplier:
    if persisted is None:
        return ProductionMultiplier()
    return copy.deepcopy(persisted)


def merge_data(persisted: FoodConfig, live: FoodConfig, preserve_all_local_only: bool) -> FoodConfig:
    """Three-way merge of a persisted config with a fresh live snapshot.

    Persisted entries win on conflict and keep their order; live-only entries
    are appended in live order. Persisted entries missing from the live state
    survive only when ``preserve_all_local_only`` is set (session start) or
    when they are disabled. Neither input is mutated.
    """
    merged = FoodConfig(
        animals=merge_animals(persisted.animals, live.animals, preserve_all_local_only),
        mixtures=merge_mixtures(persisted.mixtures, live.mixtures, preserve_all_local_only),
        recipes=merge_recipes(persisted.recipes, live.recipes, preserve_all_local_only),
        production_multiplier=merge_production_multiplier(persisted.production_multiplier),
    )
    logger.debug(
        "Merged config: %d animals, %d mixtures, %d recipes (preserve_all_local_only=%s)",
        len(merged.animals),
        len(merged.mixtures),
        len(merged.recipes),
        preserve_all_local_only,
    )
    return merged
