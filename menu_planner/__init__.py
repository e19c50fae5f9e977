"""Menu Planner - unit-aware shopping lists and price estimates for a menu."""

__version__ = "1.0.0"

from .catalog import Catalog, InvalidInputError
from .planner import AggregatedIngredient, AggregationKey, Dish, IngredientRequirement, aggregate
from .shopping import (
    ShoppingLine,
    build_shopping_list,
    generate,
    on_manual_price_entered,
    on_units_or_type_changed,
    resolve_price,
)
from .state import MalformedStateError, PlannerError, PlannerState, load_state, save_state
from .units import convert, convert_price_per_unit

__all__ = [
    "Catalog",
    "InvalidInputError",
    "Dish",
    "IngredientRequirement",
    "AggregationKey",
    "AggregatedIngredient",
    "aggregate",
    "ShoppingLine",
    "build_shopping_list",
    "generate",
    "resolve_price",
    "on_manual_price_entered",
    "on_units_or_type_changed",
    "PlannerState",
    "PlannerError",
    "MalformedStateError",
    "load_state",
    "save_state",
    "convert",
    "convert_price_per_unit",
]
