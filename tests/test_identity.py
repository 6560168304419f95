from __future__ import annotations

from fodder.identity import (
    animal_key,
    group_key,
    index_by_key,
    mixture_key,
    positional_keys,
    recipe_key,
)
from fodder.models import AnimalFood, FoodGroup, Mixture, MixtureIngredient, Recipe


def test_name_keys():
    assert animal_key(AnimalFood(animal_type="COW")) == "COW"
    assert group_key(FoodGroup(title="Hay")) == "Hay"
    assert mixture_key(Mixture(fill_type="PIGFOOD", animal_type="PIG")) == "PIGFOOD_PIG"
    assert recipe_key(Recipe(fill_type="FORAGE")) == "FORAGE"


def test_positional_keys_skip_disabled_entries():
    items = [
        MixtureIngredient(weight=0.5),
        MixtureIngredient(weight=0.3, disabled=True),
        MixtureIngredient(weight=0.2),
    ]
    assert positional_keys(items) == [1, None, 2]


def test_index_by_key_keeps_first_occurrence():
    first = FoodGroup(title="Hay", eat_weight=0.1)
    second = FoodGroup(title="Hay", eat_weight=0.9)
    lookup = index_by_key([first, second], group_key)
    assert lookup["Hay"] is first
