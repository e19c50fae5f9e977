"""Tests for shopping list construction and price estimation."""

import pytest

from menu_planner.catalog import Catalog
from menu_planner.planner import AggregatedIngredient, AggregationKey, IngredientRequirement
from menu_planner.shopping import (
    ShoppingLine,
    build_shopping_list,
    generate,
    on_manual_price_entered,
    on_units_or_type_changed,
    refresh_prices,
    resolve_price,
    update_line,
)


def make_line(
    ingredient: str = "Tomato",
    num_units: int | None = None,
    type_of_unit: str | None = "Pounds",
    price: float | None = None,
    price_auto: bool = True,
    display_name: str | None = None,
) -> ShoppingLine:
    """Helper to create a ShoppingLine for tests."""
    return ShoppingLine(
        ingredient=ingredient,
        display_name=display_name or ingredient,
        total_amount=1.2,
        unit="Pounds",
        num_units=num_units,
        type_of_unit=type_of_unit,
        price=price,
        price_auto=price_auto,
    )


class TestResolvePrice:
    """Tests for resolve_price function."""

    def test_prices_from_catalog(self, tomato_catalog):
        line = resolve_price(make_line(num_units=2), tomato_catalog)
        assert line.price == 3.0
        assert line.price_auto is True

    def test_rounds_to_cents(self):
        catalog = Catalog({"Spice": {"Grams": 0.01234}})
        line = resolve_price(make_line("Spice", num_units=3, type_of_unit="Grams"), catalog)
        assert line.price == 0.04

    def test_derives_from_other_unit(self, tomato_catalog):
        line = resolve_price(make_line(num_units=1, type_of_unit="Kilograms"), tomato_catalog)
        assert line.price == round(1.5 / 453.592 * 1000, 2)

    def test_missing_num_units_clears(self, tomato_catalog):
        line = resolve_price(make_line(num_units=None, price=5.0), tomato_catalog)
        assert line.price is None
        assert line.price_auto is True

    def test_zero_num_units_clears(self, tomato_catalog):
        line = resolve_price(make_line(num_units=0, price=5.0), tomato_catalog)
        assert line.price is None

    def test_missing_type_clears(self, tomato_catalog):
        line = resolve_price(make_line(num_units=1, type_of_unit=None), tomato_catalog)
        assert line.price is None

    def test_no_catalog_price_clears(self, tomato_catalog):
        line = resolve_price(make_line(num_units=1, type_of_unit="Bag", price=2.0), tomato_catalog)
        assert line.price is None
        assert line.price_auto is True

    def test_unknown_ingredient(self, tomato_catalog):
        line = resolve_price(make_line("Saffron", num_units=1), tomato_catalog)
        assert line.price is None

    def test_manual_price_untouched(self, tomato_catalog):
        line = make_line(num_units=2, price=9.99, price_auto=False)
        resolve_price(line, tomato_catalog)
        assert line.price == 9.99
        assert line.price_auto is False

    def test_manual_flag_without_price_recomputes(self, tomato_catalog):
        line = make_line(num_units=2, price=None, price_auto=False)
        resolve_price(line, tomato_catalog)
        assert line.price == 3.0
        assert line.price_auto is True

    def test_fallback_line_uses_base_ingredient(self):
        catalog = Catalog({"Flour": {"Bag": 4.0}})
        line = make_line("Flour", num_units=2, type_of_unit="Bag", display_name="Flour (Bag)")
        assert resolve_price(line, catalog).price == 8.0


class TestBuildShoppingList:
    """Tests for build_shopping_list function."""

    def test_initial_fields(self, tomato_catalog):
        aggregated = [AggregatedIngredient(AggregationKey("Tomato"), 1.2, "Pounds")]
        lines = build_shopping_list(aggregated, tomato_catalog)

        assert lines == [
            ShoppingLine(
                ingredient="Tomato",
                display_name="Tomato",
                total_amount=1.2,
                unit="Pounds",
                num_units=None,
                type_of_unit="Pounds",
                price=None,
                price_auto=True,
            )
        ]

    def test_fallback_names(self):
        aggregated = [
            AggregatedIngredient(AggregationKey("Flour"), 2.0, "Grams"),
            AggregatedIngredient(AggregationKey("Flour", "Bag"), 1.0, "Bag"),
        ]
        lines = build_shopping_list(aggregated, Catalog())

        assert [(line.ingredient, line.display_name) for line in lines] == [
            ("Flour", "Flour"),
            ("Flour", "Flour (Bag)"),
        ]
        assert lines[1].type_of_unit == "Bag"

    def test_order_preserved(self):
        aggregated = [
            AggregatedIngredient(AggregationKey(name), 1.0, "Grams") for name in ["C", "A", "B"]
        ]
        lines = build_shopping_list(aggregated, Catalog())
        assert [line.ingredient for line in lines] == ["C", "A", "B"]


class TestGenerate:
    """End-to-end tests for generate."""

    def test_salad_example(self, tomato_catalog):
        reqs = [
            IngredientRequirement(
                id=1, dish_id=1, ingredient="Tomato", amount=0.3, unit="Pounds"
            )
        ]
        lines = generate(reqs, 4, tomato_catalog)

        assert len(lines) == 1
        line = lines[0]
        assert line.total_amount == pytest.approx(1.2)
        assert line.unit == "Pounds"
        assert line.price is None

        update_line(line, tomato_catalog, num_units=1, type_of_unit="Pounds")
        assert line.price == 1.5
        assert line.price_auto is True

    def test_rebuild_is_fresh(self, tomato_catalog):
        reqs = [
            IngredientRequirement(id=1, dish_id=1, ingredient="Tomato", amount=1, unit="Pounds")
        ]
        first = generate(reqs, 1, tomato_catalog)
        on_manual_price_entered(first[0], 9.99, tomato_catalog)

        second = generate(reqs, 1, tomato_catalog)
        assert second[0].price is None
        assert second[0].price_auto is True


class TestUpdateLine:
    """Tests for update_line and on_units_or_type_changed."""

    def test_only_given_fields_change(self, tomato_catalog):
        line = make_line(num_units=None, type_of_unit="Pounds")
        update_line(line, tomato_catalog, num_units=2)

        assert line.num_units == 2
        assert line.type_of_unit == "Pounds"
        assert line.price == 3.0

    def test_change_type_reprices(self, tomato_catalog):
        line = make_line(num_units=1, type_of_unit="Pounds")
        resolve_price(line, tomato_catalog)
        update_line(line, tomato_catalog, type_of_unit="Ounces")

        assert line.price == round(1.5 / 453.592 * 28.3495, 2)

    def test_clear_num_units(self, tomato_catalog):
        line = resolve_price(make_line(num_units=1), tomato_catalog)
        update_line(line, tomato_catalog, num_units=None)

        assert line.num_units is None
        assert line.price is None

    @pytest.mark.parametrize("value", ["", "abc", "1.7", -2, True, 1.7, float("inf"), float("nan")])
    def test_invalid_num_units_become_empty(self, tomato_catalog, value):
        line = make_line(num_units=3)
        update_line(line, tomato_catalog, num_units=value)
        assert line.num_units is None
        assert line.price is None

    def test_whole_float_num_units(self, tomato_catalog):
        line = make_line()
        update_line(line, tomato_catalog, num_units=2.0)
        assert line.num_units == 2
        assert line.price == 3.0

    def test_string_num_units(self, tomato_catalog):
        line = make_line()
        update_line(line, tomato_catalog, num_units="2")
        assert line.num_units == 2
        assert line.price == 3.0

    def test_on_units_or_type_changed(self, tomato_catalog):
        line = make_line()
        line.num_units = 4
        assert on_units_or_type_changed(line, tomato_catalog).price == 6.0


class TestManualPrice:
    """Tests for on_manual_price_entered."""

    def test_manual_price_is_sticky(self, tomato_catalog):
        line = make_line(num_units=1, type_of_unit="Pounds")
        on_manual_price_entered(line, 9.99, tomato_catalog)

        assert line.price == 9.99
        assert line.price_auto is False

        line.type_of_unit = "Kilograms"
        on_units_or_type_changed(line, tomato_catalog)
        assert line.price == 9.99

        update_line(line, tomato_catalog, num_units=5)
        assert line.price == 9.99

    def test_updates_catalog(self, tomato_catalog):
        line = make_line(num_units=2, type_of_unit="Pounds")
        result = on_manual_price_entered(line, 5.0, tomato_catalog)

        assert result is tomato_catalog
        assert tomato_catalog.lookup_price_per_unit("Tomato", "Pounds") == pytest.approx(2.5)
        assert tomato_catalog.lookup_price_per_unit("Tomato", "Grams") == pytest.approx(
            2.5 / 453.592
        )

    def test_fallback_line_updates_base_ingredient(self):
        catalog = Catalog()
        line = make_line("Flour", num_units=2, type_of_unit="Bag", display_name="Flour (Bag)")
        on_manual_price_entered(line, 7.0, catalog)

        assert catalog.prices_for("Flour") == {"Bag": 3.5}

    def test_without_units_does_not_touch_catalog(self, tomato_catalog):
        line = make_line(num_units=None)
        on_manual_price_entered(line, 4.0, tomato_catalog)

        assert line.price == 4.0
        assert line.price_auto is False
        assert tomato_catalog.prices_for("Tomato") == {"Pounds": 1.5}

    def test_zero_units_cleared(self, tomato_catalog):
        line = make_line(num_units=0)
        on_manual_price_entered(line, 4.0, tomato_catalog)

        assert line.num_units is None
        assert line.price == 4.0
        assert tomato_catalog.prices_for("Tomato") == {"Pounds": 1.5}

    @pytest.mark.parametrize("bad_price", [-1.0, "abc", float("nan")])
    def test_invalid_price_cleared(self, tomato_catalog, bad_price):
        line = make_line(num_units=1)
        on_manual_price_entered(line, bad_price, tomato_catalog)

        # Falls back to the catalog estimate
        assert line.price == 1.5
        assert line.price_auto is True
        assert tomato_catalog.prices_for("Tomato") == {"Pounds": 1.5}

    def test_clearing_restores_auto_price(self, tomato_catalog):
        line = make_line(num_units=2)
        on_manual_price_entered(line, 9.99, tomato_catalog)
        on_manual_price_entered(line, None, tomato_catalog)

        # Catalog learned 9.99 / 2 per pound from the manual entry
        assert line.price_auto is True
        assert line.price == 9.99

    def test_learned_price_reaches_other_lines(self):
        catalog = Catalog()
        pounds = make_line("Tomato", num_units=2, type_of_unit="Pounds")
        kilos = make_line("Tomato", num_units=1, type_of_unit="Kilograms")

        on_manual_price_entered(pounds, 3.0, catalog)
        refresh_prices([pounds, kilos], catalog)

        assert pounds.price == 3.0
        assert kilos.price == round(1.5 / 453.592 * 1000, 2)
