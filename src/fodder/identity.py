"""Merge keys for each configuration kind.

Animals, food groups, mixtures and recipes are keyed by name. Mixture and
recipe ingredients have no name of their own and are keyed by position among
the active entries of their list, so reordering ingredients between sessions
reassigns their identity.
"""
from __future__ import annotations

from typing import Any, Callable, Hashable, Iterable, Sequence, TypeVar

from .models import AnimalFood, FoodGroup, Mixture, Recipe

T = TypeVar("T")


def animal_key(animal: AnimalFood) -> str:
    return animal.animal_type


def group_key(group: FoodGroup) -> str:
    return group.title


def mixture_key(mixture: Mixture) -> str:
    return f"{mixture.fill_type}_{mixture.animal_type}"


def recipe_key(recipe: Recipe) -> str:
    return recipe.fill_type


def positional_keys(items: Sequence[Any]) -> list[int | None]:
    """1-based position of each active entry among the active entries.

    Disabled entries get ``None``.
    """
    keys: list[int | None] = []
    position = 0
    for item in items:
        if getattr(item, "disabled", False):
            keys.append(None)
            continue
        position += 1
        keys.append(position)
    return keys


def index_by_key(items: Iterable[T], key_fn: Callable[[T], Hashable]) -> dict[Hashable, T]:
    """First-wins lookup table."""
    lookup: dict[Hashable, T] = {}
    for item in items:
        lookup.setdefault(key_fn(item), item)
    return lookup
