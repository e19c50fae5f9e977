"""Ingredient price catalog with cross-unit lookup and price learning."""

import math
from collections.abc import Iterator
from typing import Any

from .log import get_logger
from .units import base_factor, convert_price_per_unit, family_id, family_units

logger = get_logger(__name__)


class InvalidInputError(ValueError):
    """Exception raised when a price or unit count cannot be used."""

    pass


def _as_number(value: Any, field_name: str) -> float:
    """Coerce a user-supplied value to a finite float."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field_name} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{field_name} must be a number, got {value!r}") from e
    if not math.isfinite(number):
        raise InvalidInputError(f"{field_name} must be finite, got {value!r}")
    return number


def _as_price(value: Any) -> float:
    price = _as_number(value, "price")
    if price < 0:
        raise InvalidInputError(f"price must not be negative, got {value!r}")
    return price


def _check_family_consistency(ingredient: str, units: dict[str, float]) -> None:
    """Reject prices where two units of one family imply different base-unit prices."""
    per_base: dict[str, tuple[str, float]] = {}
    for unit, price in units.items():
        factor = base_factor(unit)
        if factor is None:
            continue
        family = family_id(unit)
        if family not in per_base:
            per_base[family] = (unit, price / factor)
            continue
        first_unit, first_price = per_base[family]
        if not math.isclose(price / factor, first_price, rel_tol=1e-9, abs_tol=1e-12):
            raise InvalidInputError(
                f"prices for {ingredient!r} disagree: {first_unit} and {unit} "
                "imply different prices for the same quantity"
            )


class Catalog:
    """
    Known prices per one unit of each ingredient.

    Prices are stored as ``{ingredient: {unit: price_per_unit}}``. Whenever a
    price is recorded for a weight or volume unit, every unit of that family
    is rewritten from the same per-gram or per-milliliter price, so family
    members never disagree.
    """

    def __init__(self, prices: dict[str, dict[str, float]] | None = None) -> None:
        """
        Create a catalog from stored prices.

        Raises:
            InvalidInputError: If a price is not a non-negative number, or two
                units of the same family disagree about the price
        """
        self._prices: dict[str, dict[str, float]] = {}
        for ingredient, units in (prices or {}).items():
            checked = {unit: _as_price(price) for unit, price in units.items()}
            _check_family_consistency(ingredient, checked)
            self._prices[ingredient] = checked

    def __contains__(self, ingredient: object) -> bool:
        return ingredient in self._prices

    def __iter__(self) -> Iterator[str]:
        return iter(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Catalog):
            return NotImplemented
        return self._prices == other._prices

    def __repr__(self) -> str:
        return f"Catalog({self._prices!r})"

    def prices_for(self, ingredient: str) -> dict[str, float]:
        """Get a copy of the unit -> price mapping for an ingredient."""
        return dict(self._prices.get(ingredient, {}))

    def entries(self) -> Iterator[tuple[str, str, float]]:
        """Iterate (ingredient, unit, price_per_unit) in insertion order."""
        for ingredient, units in self._prices.items():
            for unit, price in units.items():
                yield ingredient, unit, price

    def set_price(self, ingredient: str, unit: str, price_per_unit: float) -> None:
        """
        Store the price of one ``unit`` of an ingredient.

        Units of the same family that already have a price are rewritten to
        agree with it; no new units are added. To learn a price for the
        whole family from a purchase, use ``record_price``.
        """
        price = _as_price(price_per_unit)
        known = self._prices.setdefault(ingredient, {})
        updates = {unit: price}
        for known_unit in known:
            if known_unit == unit:
                continue
            converted = convert_price_per_unit(price, unit, known_unit)
            if converted is not None:
                updates[known_unit] = converted
        known.update(updates)

    def remove_ingredient(self, ingredient: str) -> bool:
        """Remove all prices for an ingredient. Returns True if it was present."""
        return self._prices.pop(ingredient, None) is not None

    def lookup_price_per_unit(self, ingredient: str, unit: str) -> float | None:
        """
        Find the price of one ``unit`` of an ingredient.

        Args:
            ingredient: Ingredient name (without any unit suffix)
            unit: The unit to price

        Returns:
            The stored price, a price derived from another unit of the same
            family, or None if neither exists
        """
        units = self._prices.get(ingredient)
        if not units:
            return None

        if unit in units:
            return units[unit]

        for known_unit, price in units.items():
            converted = convert_price_per_unit(price, known_unit, unit)
            if converted is not None:
                return converted

        return None

    def record_price(
        self, ingredient: str, num_units: float, unit: str, total_price: float
    ) -> float:
        """
        Learn a price from a purchase of ``num_units`` x ``unit``.

        Args:
            ingredient: Ingredient name
            num_units: How many units the total price covers (must be > 0)
            unit: Unit bought
            total_price: Price paid for all units

        Returns:
            The derived price per one ``unit``

        Raises:
            InvalidInputError: If num_units is not positive or either value
                is not a non-negative number
        """
        count = _as_number(num_units, "num_units")
        if count <= 0:
            raise InvalidInputError(f"num_units must be greater than 0, got {num_units!r}")
        total = _as_number(total_price, "total_price")
        if total < 0:
            raise InvalidInputError(f"total_price must not be negative, got {total_price!r}")

        price_per_unit = total / count

        # Discrete units are their own single-member family
        updates: dict[str, float] = {}
        for family_unit in family_units(unit):
            converted = convert_price_per_unit(price_per_unit, unit, family_unit)
            if converted is not None:
                updates[family_unit] = converted

        # Whole family written in a single update
        self._prices.setdefault(ingredient, {}).update(updates)
        logger.debug(
            "Recorded %s at %.4f per %s (%d unit(s) updated)",
            ingredient,
            price_per_unit,
            unit,
            len(updates),
        )
        return price_per_unit

    def to_dict(self) -> dict[str, dict[str, float]]:
        """Convert to a JSON-serializable dict."""
        return {ingredient: dict(units) for ingredient, units in self._prices.items()}

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, float]]) -> "Catalog":
        """
        Create from a dict.

        Raises:
            InvalidInputError: If the data is not a mapping of mappings of
                non-negative numbers
        """
        if not isinstance(data, dict):
            raise InvalidInputError(f"catalog must be a mapping, got {type(data).__name__}")
        for ingredient, units in data.items():
            if not isinstance(units, dict):
                raise InvalidInputError(f"catalog entry for {ingredient!r} must be a mapping")
        return cls(data)
