from __future__ import annotations

import json

from fodder.merger import merge_data
from fodder.models import (
    AnimalFood,
    FoodConfig,
    FoodGroup,
    Mixture,
    MixtureIngredient,
    ProductionMultiplier,
    Recipe,
    RecipeIngredient,
    config_to_payload,
)


def _cow(*groups: FoodGroup, mode: str = "SERIAL") -> AnimalFood:
    return AnimalFood(animal_type="COW", consumption_type=mode, food_groups=list(groups))


def _titles(animal: AnimalFood) -> list[str]:
    return [group.title for group in animal.food_groups]


def _dump(config: FoodConfig) -> str:
    return json.dumps(config_to_payload(config), sort_keys=True)


def test_cow_example_keeps_disabled_and_appends_live_only():
    persisted = FoodConfig(animals=[_cow(FoodGroup("A", eat_weight=0.8), FoodGroup("B", eat_weight=0.2, disabled=True))])
    live = FoodConfig(animals=[_cow(FoodGroup("A", eat_weight=0.5), FoodGroup("C", eat_weight=0.5))])

    merged = merge_data(persisted, live, preserve_all_local_only=False)

    cow = merged.animals[0]
    assert _titles(cow) == ["A", "B", "C"]
    assert cow.food_groups[0].eat_weight == 0.8
    assert cow.food_groups[1].disabled is True
    assert cow.food_groups[2].eat_weight == 0.5


def test_cold_start_keeps_custom_groups_steady_state_drops_them():
    persisted = FoodConfig(animals=[_cow(FoodGroup("A"), FoodGroup("Custom"), FoodGroup("Old", disabled=True))])
    live = FoodConfig(animals=[_cow(FoodGroup("A"))])

    cold = merge_data(persisted, live, preserve_all_local_only=True)
    steady = merge_data(persisted, live, preserve_all_local_only=False)

    assert _titles(cold.animals[0]) == ["A", "Custom", "Old"]
    assert _titles(steady.animals[0]) == ["A", "Old"]


def test_output_follows_persisted_order_then_live_additions():
    persisted = FoodConfig(animals=[_cow(FoodGroup("C"), FoodGroup("A"))])
    live = FoodConfig(animals=[_cow(FoodGroup("A"), FoodGroup("C"), FoodGroup("D"))])

    merged = merge_data(persisted, live, preserve_all_local_only=False)

    assert _titles(merged.animals[0]) == ["C", "A", "D"]


def test_animals_missing_from_live_and_live_only_animals():
    persisted = FoodConfig(animals=[AnimalFood("HORSE"), _cow(FoodGroup("A"), mode="PARALLEL")])
    live = FoodConfig(animals=[_cow(FoodGroup("A")), AnimalFood("SHEEP", food_groups=[FoodGroup("Grass")])])

    merged = merge_data(persisted, live, preserve_all_local_only=False)

    assert [a.animal_type for a in merged.animals] == ["COW", "SHEEP"]
    assert merged.animals[0].consumption_type == "PARALLEL"
    assert _titles(merged.animals[1]) == ["Grass"]

    cold = merge_data(persisted, live, preserve_all_local_only=True)
    assert [a.animal_type for a in cold.animals] == ["HORSE", "COW", "SHEEP"]


def test_merge_is_deterministic_and_does_not_mutate_inputs():
    persisted = FoodConfig(
        animals=[_cow(FoodGroup("A", eat_weight=0.8), FoodGroup("B", disabled=True))],
        mixtures=[Mixture("PIGFOOD", "PIG", [MixtureIngredient(0.5, "MAIZE")])],
    )
    live = FoodConfig(
        animals=[_cow(FoodGroup("A", eat_weight=0.5), FoodGroup("C"))],
        mixtures=[Mixture("PIGFOOD", "PIG", [MixtureIngredient(1.0, "MAIZE"), MixtureIngredient(1.0, "WHEAT")])],
    )
    before = (_dump(persisted), _dump(live))

    first = merge_data(persisted, live, preserve_all_local_only=True)
    second = merge_data(persisted, live, preserve_all_local_only=True)

    assert _dump(first) == _dump(second)
    assert (_dump(persisted), _dump(live)) == before
    assert first.animals[0].food_groups[0] is not persisted.animals[0].food_groups[0]


def test_positional_ingredients_keep_disabled_entry_and_persisted_values():
    persisted = FoodConfig(
        mixtures=[
            Mixture(
                "PIGFOOD",
                "PIG",
                [
                    MixtureIngredient(0.5, "MAIZE"),
                    MixtureIngredient(0.3, "WHEAT", disabled=True),
                    MixtureIngredient(0.2, "SOYBEAN"),
                ],
            )
        ]
    )
    live = FoodConfig(
        mixtures=[
            Mixture(
                "PIGFOOD",
                "PIG",
                [MixtureIngredient(0.4, "MAIZE"), MixtureIngredient(0.4, "WHEAT"), MixtureIngredient(0.2, "SOYBEAN")],
            )
        ]
    )

    merged = merge_data(persisted, live, preserve_all_local_only=False)

    ingredients = merged.mixtures[0].ingredients
    assert [item.weight for item in ingredients] == [0.5, 0.3, 0.2]
    assert [item.disabled for item in ingredients] == [False, True, False]


def test_positional_ingredients_append_upstream_additions():
    persisted = FoodConfig(recipes=[Recipe("FORAGE", [RecipeIngredient("grass", min_percentage=10)])])
    live = FoodConfig(
        recipes=[Recipe("FORAGE", [RecipeIngredient("grass"), RecipeIngredient("silage", max_percentage=40)])]
    )

    merged = merge_data(persisted, live, preserve_all_local_only=False)

    ingredients = merged.recipes[0].ingredients
    assert [item.name for item in ingredients] == ["grass", "silage"]
    assert ingredients[0].min_percentage == 10
    assert ingredients[1].max_percentage == 40


def test_positional_custom_ingredient_only_survives_cold_start():
    persisted = FoodConfig(
        mixtures=[Mixture("PIGFOOD", "PIG", [MixtureIngredient(0.5, "MAIZE"), MixtureIngredient(0.5, "WHEAT")])]
    )
    live = FoodConfig(mixtures=[Mixture("PIGFOOD", "PIG", [MixtureIngredient(1.0, "MAIZE")])])

    cold = merge_data(persisted, live, preserve_all_local_only=True)
    steady = merge_data(persisted, live, preserve_all_local_only=False)

    assert len(cold.mixtures[0].ingredients) == 2
    assert [item.fill_types for item in steady.mixtures[0].ingredients] == ["MAIZE"]


def test_production_multiplier_persisted_wins_else_default():
    live = FoodConfig()
    merged = merge_data(FoodConfig(production_multiplier=ProductionMultiplier(2.0, False)), live, False)
    assert merged.production_multiplier == ProductionMultiplier(2.0, False)

    defaulted = merge_data(FoodConfig(), live, False)
    assert defaulted.production_multiplier == ProductionMultiplier(1.0, True)


def test_duplicate_persisted_keys_keep_first(caplog):
    persisted = FoodConfig(animals=[_cow(FoodGroup("A", eat_weight=0.1), FoodGroup("A", eat_weight=0.9))])
    live = FoodConfig(animals=[_cow(FoodGroup("A"))])

    with caplog.at_level("WARNING"):
        merged = merge_data(persisted, live, preserve_all_local_only=True)

    assert [g.eat_weight for g in merged.animals[0].food_groups] == [0.1]
    assert "Duplicate" in caplog.text
