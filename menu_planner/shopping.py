"""Shopping list construction and price estimation."""

import math
from dataclasses import dataclass
from typing import Any

from .catalog import Catalog, InvalidInputError
from .log import get_logger
from .planner import AggregatedIngredient, IngredientRequirement, aggregate

logger = get_logger(__name__)

_UNSET: Any = object()


@dataclass
class ShoppingLine:
    """
    One row of the shopping list.

    ``num_units`` and ``type_of_unit`` describe what will actually be bought
    (e.g. 2 x Bag), independently of the ``total_amount`` the menu needs.
    ``price_auto`` is True while the price comes from the catalog and is
    recomputed on every change; a price typed by the user sets it to False
    and the price then stays fixed until cleared.
    """

    ingredient: str
    display_name: str
    total_amount: float
    unit: str
    num_units: int | None = None
    type_of_unit: str | None = None
    price: float | None = None
    price_auto: bool = True

    @property
    def is_manual_price(self) -> bool:
        return not self.price_auto and self.price is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ingredient": self.ingredient,
            "display_name": self.display_name,
            "total_amount": self.total_amount,
            "unit": self.unit,
            "num_units": self.num_units,
            "type_of_unit": self.type_of_unit,
            "price": self.price,
            "price_auto": self.price_auto,
        }


def resolve_price(line: ShoppingLine, catalog: Catalog) -> ShoppingLine:
    """
    Recompute the estimated price of a line from the catalog.

    A manual price is never replaced. Lines without a unit count or unit
    type, or whose ingredient has no usable catalog price, end up unpriced.

    Args:
        line: The line to update in place
        catalog: Price catalog

    Returns:
        The same line
    """
    if line.is_manual_price:
        return line

    line.price_auto = True

    if not line.num_units or not line.type_of_unit:
        line.price = None
        return line

    price_per_unit = catalog.lookup_price_per_unit(line.ingredient, line.type_of_unit)
    if price_per_unit is None:
        line.price = None
    else:
        line.price = round(price_per_unit * line.num_units, 2)

    return line


def build_shopping_list(
    aggregated: list[AggregatedIngredient], catalog: Catalog
) -> list[ShoppingLine]:
    """
    Turn aggregated ingredients into priced shopping lines.

    Args:
        aggregated: Output of ``aggregate``
        catalog: Price catalog

    Returns:
        One line per aggregated ingredient, in the same order
    """
    lines = []
    for item in aggregated:
        line = ShoppingLine(
            ingredient=item.ingredient,
            display_name=item.display_name,
            total_amount=item.amount,
            unit=item.unit,
            num_units=None,
            type_of_unit=item.unit,
            price=None,
            price_auto=True,
        )
        lines.append(resolve_price(line, catalog))
    return lines


def generate(
    requirements: list[IngredientRequirement], servings: int, catalog: Catalog
) -> list[ShoppingLine]:
    """Build a fresh shopping list for ``servings`` servings of every dish."""
    return build_shopping_list(aggregate(requirements, servings), catalog)


def on_units_or_type_changed(line: ShoppingLine, catalog: Catalog) -> ShoppingLine:
    """Re-estimate a line after its unit count or unit type was edited."""
    return resolve_price(line, catalog)


def update_line(
    line: ShoppingLine,
    catalog: Catalog,
    *,
    num_units: int | None = _UNSET,
    type_of_unit: str | None = _UNSET,
) -> ShoppingLine:
    """
    Change what will be bought for a line and re-estimate its price.

    Only the fields passed are changed; pass None to clear one.
    """
    if num_units is not _UNSET:
        line.num_units = _parse_num_units(num_units)
    if type_of_unit is not _UNSET:
        line.type_of_unit = type_of_unit or None
    return on_units_or_type_changed(line, catalog)


def on_manual_price_entered(
    line: ShoppingLine, total_price: float | None, catalog: Catalog
) -> Catalog:
    """
    Apply a price typed by the user and learn from it.

    The price becomes sticky (``price_auto`` False). When the line says how
    many of which unit the price covers, the catalog learns the price per
    unit for the whole unit family. Entering None clears the override and
    re-estimates the line from the catalog.

    Invalid input is not raised: a bad unit count is cleared from the line
    (the manual price is kept), and a bad price is cleared from the line.

    Args:
        line: The line being edited (updated in place)
        total_price: Price for ``num_units`` x ``type_of_unit``, or None
        catalog: Catalog to update in place

    Returns:
        The catalog
    """
    if total_price is None:
        line.price = None
        line.price_auto = True
        resolve_price(line, catalog)
        return catalog

    try:
        price = float(total_price)
        if price < 0 or not math.isfinite(price):
            raise ValueError(total_price)
    except (TypeError, ValueError):
        logger.info("Ignoring invalid price %r for %s", total_price, line.display_name)
        line.price = None
        line.price_auto = True
        resolve_price(line, catalog)
        return catalog

    line.price = price
    line.price_auto = False

    if line.num_units is None or not line.type_of_unit:
        return catalog

    try:
        catalog.record_price(line.ingredient, line.num_units, line.type_of_unit, price)
    except InvalidInputError as e:
        logger.info("Not recording price for %s: %s", line.display_name, e)
        line.num_units = None

    return catalog


def refresh_prices(lines: list[ShoppingLine], catalog: Catalog) -> list[ShoppingLine]:
    """Re-estimate every auto-priced line, e.g. after the catalog changed."""
    for line in lines:
        resolve_price(line, catalog)
    return lines


def _parse_num_units(value: Any) -> int | None:
    """Parse a unit count; empty or invalid input becomes None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if count < 0:
        return None
    return count
