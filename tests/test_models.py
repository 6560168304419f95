from __future__ import annotations

from fodder.models import FoodGroup, ProductionMultiplier, config_from_payload, food_group_to_payload


def test_malformed_entries_are_skipped(caplog):
    payload = {
        "animals": [
            {"consumptionType": "SERIAL", "foodGroups": []},
            {"animalType": "COW", "foodGroups": [{"eatWeight": 1}, {"title": "Hay", "disabled": "true"}]},
        ],
        "mixtures": [{"fillType": "PIGFOOD"}, {"fillType": "PIGFOOD", "animalType": "PIG", "ingredients": [{}]}],
        "recipes": [{"ingredients": []}, "not-an-object"],
    }

    with caplog.at_level("WARNING"):
        config = config_from_payload(payload)

    assert [a.animal_type for a in config.animals] == ["COW"]
    assert config.animals[0].food_groups == [FoodGroup(title="Hay", disabled=True)]
    assert len(config.mixtures) == 1
    assert config.mixtures[0].ingredients[0].weight == 0.0
    assert config.recipes == []
    assert "animalType" in caplog.text


def test_defaults_and_consumption_type_fallback():
    config = config_from_payload(
        {
            "animals": [{"animalType": "COW", "consumptionType": "sometimes", "foodGroups": [{"title": "A"}]}],
            "recipes": [{"fillType": "FORAGE", "ingredients": [{"name": "grass", "minPercentage": "12.6"}]}],
            "productionMultiplier": {"multiplier": 2},
        }
    )

    group = config.animals[0].food_groups[0]
    assert config.animals[0].consumption_type == "SERIAL"
    assert (group.production_weight, group.eat_weight) == (0.0, 1.0)
    ingredient = config.recipes[0].ingredients[0]
    assert (ingredient.min_percentage, ingredient.max_percentage) == (13, 75)
    assert config.production_multiplier == ProductionMultiplier(multiplier=2.0, disabled=True)


def test_disabled_written_only_when_true():
    assert "disabled" not in food_group_to_payload(FoodGroup("A"))
    assert food_group_to_payload(FoodGroup("A", disabled=True))["disabled"] is True


def test_non_finite_numbers_fall_back_to_defaults(caplog):
    with caplog.at_level("WARNING"):
        config = config_from_payload(
            {
                "animals": [{"animalType": "COW", "foodGroups": [{"title": "A", "eatWeight": "NaN", "productionWeight": float("inf")}]}],
                "mixtures": [{"fillType": "PIGFOOD", "animalType": "PIG", "ingredients": [{"weight": "-inf"}]}],
                "recipes": [{"fillType": "FORAGE", "ingredients": [{"name": "grass", "minPercentage": 1e400, "maxPercentage": "inf"}]}],
                "productionMultiplier": {"multiplier": float("nan")},
            }
        )

    group = config.animals[0].food_groups[0]
    assert (group.production_weight, group.eat_weight) == (0.0, 1.0)
    assert config.mixtures[0].ingredients[0].weight == 0.0
    ingredient = config.recipes[0].ingredients[0]
    assert (ingredient.min_percentage, ingredient.max_percentage) == (0, 75)
    assert config.production_multiplier.multiplier == 1.0
    assert "non-finite" in caplog.text
