"""Tests for requirements and ingredient aggregation."""

import pytest

from menu_planner.planner import (
    AggregatedIngredient,
    AggregationKey,
    Dish,
    IngredientRequirement,
    aggregate,
    parse_amount,
)


def make_requirement(
    ingredient: str,
    amount: float | str | None,
    unit: str,
    dish_id: int = 1,
    requirement_id: int = 0,
) -> IngredientRequirement:
    """Helper to create an IngredientRequirement for tests."""
    return IngredientRequirement(
        id=requirement_id,
        dish_id=dish_id,
        ingredient=ingredient,
        amount=amount,  # type: ignore[arg-type]
        unit=unit,
    )


class TestParseAmount:
    """Tests for parse_amount function."""

    def test_numbers(self):
        assert parse_amount(0.5) == 0.5
        assert parse_amount(3) == 3.0
        assert parse_amount("1.25") == 1.25

    def test_zero_is_kept(self):
        assert parse_amount(0) == 0.0

    def test_empty_is_none(self):
        assert parse_amount(None) is None
        assert parse_amount("") is None
        assert parse_amount("   ") is None

    def test_invalid_is_none(self):
        assert parse_amount("lots") is None
        assert parse_amount(-1) is None
        assert parse_amount(float("nan")) is None
        assert parse_amount(True) is None


class TestModels:
    """Tests for the data classes."""

    def test_dish_round_trip(self):
        dish = Dish(id=3, name="Salad", description="Fresh")
        assert Dish.from_dict(dish.to_dict()) == dish

    def test_requirement_round_trip(self):
        req = make_requirement("Tomato", 0.3, "Pounds", requirement_id=7)
        assert IngredientRequirement.from_dict(req.to_dict()) == req

    def test_requirement_str(self):
        assert str(make_requirement("Tomato", 0.3, "Pounds")) == "0.3 Pounds Tomato"
        assert str(make_requirement("Pasta", 100.0, "Grams")) == "100 Grams Pasta"
        assert str(make_requirement("Salt", None, "Grams")) == "Salt (no amount)"

    def test_display_name(self):
        primary = AggregatedIngredient(AggregationKey("Flour"), 1.0, "Grams")
        fallback = AggregatedIngredient(AggregationKey("Flour", "Bag"), 1.0, "Bag")
        assert primary.display_name == "Flour"
        assert fallback.display_name == "Flour (Bag)"
        assert fallback.ingredient == "Flour"

    def test_keys_do_not_collide_with_parenthesised_names(self):
        # An ingredient literally called "Flour (Bag)" is not the Bag fallback of "Flour"
        assert AggregationKey("Flour (Bag)") != AggregationKey("Flour", "Bag")


class TestAggregate:
    """Tests for aggregate function."""

    def test_scales_by_servings(self):
        result = aggregate([make_requirement("Tomato", 0.3, "Pounds")], 4)

        assert len(result) == 1
        assert result[0].ingredient == "Tomato"
        assert result[0].amount == pytest.approx(1.2)
        assert result[0].unit == "Pounds"

    def test_same_unit_summed(self):
        reqs = [
            make_requirement("Tomato", 1, "Pounds", dish_id=1),
            make_requirement("Tomato", 2, "Pounds", dish_id=2),
        ]
        result = aggregate(reqs, 2)

        assert len(result) == 1
        assert result[0].amount == 6

    def test_same_unit_order_independent(self):
        a = make_requirement("Rice", 1.5, "Cups")
        b = make_requirement("Rice", 0.5, "Cups")
        assert aggregate([a, b], 3)[0].amount == aggregate([b, a], 3)[0].amount

    def test_first_unit_wins(self):
        reqs = [
            make_requirement("Tomato", 1, "Pounds"),
            make_requirement("Tomato", 2, "Kilograms"),
        ]
        result = aggregate(reqs, 1)

        assert len(result) == 1
        assert result[0].unit == "Pounds"
        assert result[0].amount == pytest.approx(1 + 2000 / 453.592)
        assert result[0].amount == pytest.approx(5.409, abs=1e-3)

    def test_first_unit_wins_reversed(self):
        reqs = [
            make_requirement("Tomato", 2, "Kilograms"),
            make_requirement("Tomato", 1, "Pounds"),
        ]
        result = aggregate(reqs, 1)

        assert result[0].unit == "Kilograms"
        assert result[0].amount == pytest.approx(2 + 0.453592)

    def test_discrete_mismatch_splits(self):
        reqs = [
            make_requirement("Flour", 1, "Grams"),
            make_requirement("Flour", 1, "Bag"),
        ]
        result = aggregate(reqs, 1)

        assert [r.display_name for r in result] == ["Flour", "Flour (Bag)"]
        assert [r.unit for r in result] == ["Grams", "Bag"]
        assert result[1].key == AggregationKey("Flour", "Bag")

    def test_fallback_lines_aggregate(self):
        reqs = [
            make_requirement("Flour", 100, "Grams"),
            make_requirement("Flour", 1, "Bag"),
            make_requirement("Flour", 2, "Bag"),
        ]
        result = aggregate(reqs, 2)

        assert len(result) == 2
        assert result[1].amount == 6

    def test_fallback_family_converts(self):
        reqs = [
            make_requirement("Butter", 100, "Grams"),
            make_requirement("Butter", 1, "Cups"),
            make_requirement("Butter", 120, "Milliliters"),
        ]
        result = aggregate(reqs, 1)

        assert [r.display_name for r in result] == ["Butter", "Butter (Cups)"]
        assert result[1].amount == pytest.approx(1.5)

    def test_separate_discrete_units_stay_apart(self):
        reqs = [
            make_requirement("Water", 1, "Liters"),
            make_requirement("Water", 1, "Bag"),
            make_requirement("Water", 1, "Case"),
        ]
        result = aggregate(reqs, 1)

        assert [r.display_name for r in result] == ["Water", "Water (Bag)", "Water (Case)"]

    def test_skips_empty_amount_and_name(self):
        reqs = [
            make_requirement("Tomato", None, "Pounds"),
            make_requirement("Tomato", "", "Pounds"),
            make_requirement("", 1, "Pounds"),
            make_requirement("Basil", 1, "Ounces"),
        ]
        result = aggregate(reqs, 1)

        assert [r.ingredient for r in result] == ["Basil"]

    def test_skipped_row_does_not_fix_unit(self):
        reqs = [
            make_requirement("Tomato", None, "Kilograms"),
            make_requirement("Tomato", 1, "Pounds"),
        ]
        result = aggregate(reqs, 1)

        assert result[0].unit == "Pounds"

    def test_zero_amount_is_kept(self):
        result = aggregate([make_requirement("Salt", 0, "Grams")], 4)
        assert result[0].amount == 0

    def test_order_of_first_appearance(self):
        reqs = [
            make_requirement("Lettuce", 1, "Pounds"),
            make_requirement("Flour", 1, "Grams"),
            make_requirement("Lettuce", 1, "Bag"),
            make_requirement("Apple", 1, "Pounds"),
            make_requirement("Flour", 1, "Ounces"),
        ]
        result = aggregate(reqs, 1)

        assert [r.display_name for r in result] == [
            "Lettuce",
            "Flour",
            "Lettuce (Bag)",
            "Apple",
        ]

    def test_names_are_trimmed(self):
        reqs = [
            make_requirement("Tomato ", 1, "Pounds"),
            make_requirement(" Tomato", 1, "Pounds"),
        ]
        result = aggregate(reqs, 1)

        assert len(result) == 1
        assert result[0].ingredient == "Tomato"

    def test_empty(self):
        assert aggregate([], 4) == []
