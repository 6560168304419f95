"""Patch the live food system from a merged config.

Every collection goes through the same three passes: update entries that
already exist, insert active entries the live state lacks, then remove the
entries marked disabled. The proportional field of each touched collection
is renormalized afterwards.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .live_state import (
    CONSUME_TYPE_VALUES,
    FoodSystemHandle,
    LiveAnimalFood,
    LiveFoodGroup,
    LiveMixture,
    LiveMixtureIngredient,
    LiveRecipe,
    LiveRecipeIngredient,
)
from .models import AnimalFood, FoodConfig, Mixture, ProductionMultiplier, Recipe
from .normalizer import normalize

logger = logging.getLogger(__name__)

MAX_ACTIVE_ENTRIES = 5


@dataclass
class ApplyStats:
    applied: int = 0
    inserted: int = 0
    removed: int = 0
    skipped: int = 0

    @property
    def items_applied(self) -> int:
        return self.applied + self.inserted

    def as_dict(self) -> dict[str, int]:
        return {
            "applied": self.applied,
            "inserted": self.inserted,
            "removed": self.removed,
            "skipped": self.skipped,
            "items_applied": self.items_applied,
        }


def resolve_fill_types(handle: FoodSystemHandle, names: str, context: str) -> list[int]:
    resolved: list[int] = []
    for name in names.split():
        index = handle.fill_type_index(name)
        if index is None:
            logger.warning("Unknown fill type '%s' in %s; skipping it", name, context)
            continue
        resolved.append(index)
    return resolved


def _insert_position(live: Sequence[Any], active_before: int, is_removed: Callable[[Any], bool]) -> int:
    """Slot right after the ``active_before``-th live entry that is being kept."""
    if active_before <= 0:
        return 0
    count = 0
    for index, entry in enumerate(live):
        if is_removed(entry):
            continue
        count += 1
        if count == active_before:
            return index + 1
    return len(live)


def _finish_collection(entries: list[Any], field: str, context: str) -> None:
    normalize(entries, field)
    if len(entries) > MAX_ACTIVE_ENTRIES:
        logger.warning("%s has %d active entries; the host only shows %d", context, len(entries), MAX_ACTIVE_ENTRIES)


def _apply_groups(animal: AnimalFood, live: LiveAnimalFood, handle: FoodSystemHandle, stats: ApplyStats) -> None:
    context = f"animal {animal.animal_type}"
    groups = live.groups
    removed_titles = {group.title for group in animal.food_groups if group.disabled}

    def find(title: str) -> LiveFoodGroup | None:
        for entry in groups:
            if entry.title == title:
                return entry
        return None

    for group in animal.food_groups:
        if group.disabled:
            continue
        target = find(group.title)
        if target is None:
            continue
        target.production_weight = group.production_weight
        target.eat_weight = group.eat_weight
        if group.fill_types:
            resolved = resolve_fill_types(handle, group.fill_types, f"{context} group '{group.title}'")
            if resolved:
                target.fill_types = resolved
            else:
                logger.warning("No fill types resolved for %s group '%s'; keeping live ones", context, group.title)
        stats.applied += 1

    active_before = 0
    for group in animal.food_groups:
        if group.disabled:
            continue
        if find(group.title) is None:
            resolved = resolve_fill_types(handle, group.fill_types, f"{context} group '{group.title}'")
            if not resolved:
                logger.warning("Not inserting %s group '%s': none of its fill types resolved", context, group.title)
                stats.skipped += 1
                continue
            position = _insert_position(groups, active_before, lambda entry: entry.title in removed_titles)
            groups.insert(
                position,
                LiveFoodGroup(
                    title=group.title,
                    production_weight=group.production_weight,
                    eat_weight=group.eat_weight,
                    fill_types=resolved,
                ),
            )
            stats.inserted += 1
        active_before += 1

    for index in range(len(groups) - 1, -1, -1):
        if groups[index].title in removed_titles:
            del groups[index]
            stats.removed += 1

    _finish_collection(groups, "eat_weight", context)


def apply_animal(animal: AnimalFood, handle: FoodSystemHandle, stats: ApplyStats) -> None:
    animal_index = handle.animal_type_index(animal.animal_type)
    live = handle.get_animal_food(animal_index) if animal_index is not None else None
    if live is None:
        logger.info("Animal type %s not found in the live food system; skipping", animal.animal_type)
        stats.skipped += 1
        return
    mode = CONSUME_TYPE_VALUES.get(animal.consumption_type)
    if mode is not None:
        live.consumption_type = mode
    _apply_groups(animal, live, handle, stats)


def _apply_positional(
    merged: Sequence[Any],
    live_items: list[Any],
    update: Callable[[Any, Any], None],
    build: Callable[[Any], Any | None],
    field: str,
    context: str,
    stats: ApplyStats,
) -> None:
    original = list(live_items)
    removed_ids = {id(original[i]) for i, item in enumerate(merged) if item.disabled and i < len(original)}

    for i, item in enumerate(merged):
        if item.disabled or i >= len(original):
            continue
        update(item, original[i])
        stats.applied += 1

    active_before = 0
    for i, item in enumerate(merged):
        if item.disabled:
            continue
        if i >= len(original):
            entry = build(item)
            if entry is None:
                logger.warning("Not inserting ingredient %d of %s: none of its fill types resolved", i + 1, context)
                stats.skipped += 1
                continue
            position = _insert_position(live_items, active_before, lambda existing: id(existing) in removed_ids)
            live_items.insert(position, entry)
            stats.inserted += 1
        active_before += 1

    for index in range(len(live_items) - 1, -1, -1):
        if id(live_items[index]) in removed_ids:
            del live_items[index]
            stats.removed += 1

    _finish_collection(live_items, field, context)


def apply_mixture(mixture: Mixture, handle: FoodSystemHandle, stats: ApplyStats) -> None:
    context = f"mixture {mixture.fill_type}"
    fill_index = handle.fill_type_index(mixture.fill_type)
    live: LiveMixture | None = handle.get_mixture(fill_index) if fill_index is not None else None
    if live is None:
        logger.info("Mixture %s not found in the live food system; skipping", mixture.fill_type)
        stats.skipped += 1
        return

    def update(item, target: LiveMixtureIngredient) -> None:
        target.weight = item.weight
        if item.fill_types:
            resolved = resolve_fill_types(handle, item.fill_types, context)
            if resolved:
                target.fill_types = resolved

    def build(item) -> LiveMixtureIngredient | None:
        resolved = resolve_fill_types(handle, item.fill_types, context)
        if not resolved:
            return None
        return LiveMixtureIngredient(weight=item.weight, fill_types=resolved)

    _apply_positional(mixture.ingredients, live.ingredients, update, build, "weight", context, stats)


def apply_recipe(recipe: Recipe, handle: FoodSystemHandle, stats: ApplyStats) -> None:
    context = f"recipe {recipe.fill_type}"
    fill_index = handle.fill_type_index(recipe.fill_type)
    live: LiveRecipe | None = handle.get_recipe(fill_index) if fill_index is not None else None
    if live is None:
        logger.info("Recipe %s not found in the live food system; skipping", recipe.fill_type)
        stats.skipped += 1
        return

    def update(item, target: LiveRecipeIngredient) -> None:
        target.min_percentage = item.min_percentage / 100
        target.max_percentage = item.max_percentage / 100
        target.ratio = target.max_percentage - target.min_percentage
        if item.fill_types:
            resolved = resolve_fill_types(handle, item.fill_types, context)
            if resolved:
                target.fill_types = resolved

    def build(item) -> LiveRecipeIngredient | None:
        resolved = resolve_fill_types(handle, item.fill_types, context)
        if not resolved:
            return None
        min_pct = item.min_percentage / 100
        max_pct = item.max_percentage / 100
        return LiveRecipeIngredient(
            name=item.name,
            title=item.title,
            min_percentage=min_pct,
            max_percentage=max_pct,
            ratio=max_pct - min_pct,
            fill_types=resolved,
        )

    _apply_positional(recipe.ingredients, live.ingredients, update, build, "ratio", context, stats)


def apply_production_multiplier(setting: ProductionMultiplier | None, handle: FoodSystemHandle) -> None:
    if setting is None:
        return
    value = 1.0 if setting.disabled else setting.multiplier
    handle.set_production_multiplier(value)


def apply_to_food_system(config: FoodConfig, handle: FoodSystemHandle | None) -> ApplyStats:
    """Mutate the live food system in place to match ``config``.

    Problems with a single entry are logged and counted as skipped; the rest
    of the config still applies.
    """
    stats = ApplyStats()
    if handle is None or not handle.is_ready():
        logger.info("Live food system not available; nothing applied")
        return stats

    for animal in config.animals:
        apply_animal(animal, handle, stats)
    for mixture in config.mixtures:
        apply_mixture(mixture, handle, stats)
    for recipe in config.recipes:
        apply_recipe(recipe, handle, stats)
    apply_production_multiplier(config.production_multiplier, handle)

    logger.info(
        "Applied food config: %d updated, %d inserted, %d removed, %d skipped",
        stats.applied,
        stats.inserted,
        stats.removed,
        stats.skipped,
    )
    return stats
