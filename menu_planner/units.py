"""Unit registry and conversion for ingredient quantities and prices."""

from dataclasses import dataclass
from typing import Literal

Unit = Literal[
    "Pounds",
    "Ounces",
    "Grams",
    "Kilograms",
    "Liters",
    "Milliliters",
    "Cups",
    "Bag",
    "Case",
]


@dataclass(frozen=True)
class Weight:
    """Weight unit, measured in grams per one unit."""

    grams: float


@dataclass(frozen=True)
class Volume:
    """Volume unit, measured in milliliters per one unit."""

    milliliters: float


@dataclass(frozen=True)
class Discrete:
    """Countable unit that only converts to itself (a bag, a case)."""


UnitFamily = Weight | Volume | Discrete

# Conversions to base units (grams for weight, milliliters for volume)
UNIT_INFO: dict[str, UnitFamily] = {
    # Weight -> grams
    "Pounds": Weight(453.592),
    "Ounces": Weight(28.3495),
    "Grams": Weight(1.0),
    "Kilograms": Weight(1000.0),
    # Volume -> milliliters
    "Liters": Volume(1000.0),
    "Milliliters": Volume(1.0),
    "Cups": Volume(240.0),
    # Discrete
    "Bag": Discrete(),
    "Case": Discrete(),
}

WEIGHT_UNITS: tuple[str, ...] = tuple(u for u, f in UNIT_INFO.items() if isinstance(f, Weight))
VOLUME_UNITS: tuple[str, ...] = tuple(u for u, f in UNIT_INFO.items() if isinstance(f, Volume))
DISCRETE_UNITS: tuple[str, ...] = tuple(
    u for u, f in UNIT_INFO.items() if isinstance(f, Discrete)
)
ALL_UNITS: tuple[str, ...] = tuple(UNIT_INFO)


def get_unit_family(unit: str | None) -> UnitFamily:
    """Get the family of a unit. Unknown units are treated as discrete."""
    if unit is None:
        return Discrete()
    return UNIT_INFO.get(unit, Discrete())


def is_known_unit(unit: str | None) -> bool:
    """Check whether a unit is in the registry."""
    return unit in UNIT_INFO


def family_id(unit: str) -> str:
    """
    Identify the conversion family a unit belongs to.

    Weight and volume units share "weight" and "volume"; every discrete
    unit is a family of its own and is identified by its name.
    """
    match get_unit_family(unit):
        case Weight():
            return "weight"
        case Volume():
            return "volume"
        case _:
            return unit


def is_convertible(unit: str | None) -> bool:
    """Check if a unit belongs to a convertible (weight or volume) family."""
    return not isinstance(get_unit_family(unit), Discrete)


def family_units(unit: str) -> tuple[str, ...]:
    """Get every unit in the same family as ``unit`` (including itself)."""
    match get_unit_family(unit):
        case Weight():
            return WEIGHT_UNITS
        case Volume():
            return VOLUME_UNITS
        case _:
            return (unit,)


def _base_factors(from_unit: str, to_unit: str) -> tuple[float, float] | None:
    """Get (from, to) base-unit factors if both units share a convertible family."""
    match get_unit_family(from_unit), get_unit_family(to_unit):
        case Weight(grams=from_g), Weight(grams=to_g):
            return from_g, to_g
        case Volume(milliliters=from_ml), Volume(milliliters=to_ml):
            return from_ml, to_ml
        case _:
            return None


def can_convert(from_unit: str | None, to_unit: str | None) -> bool:
    """
    Check if an amount in one unit can be expressed in another.

    Args:
        from_unit: Source unit
        to_unit: Target unit

    Returns:
        True if the units are equal or share a convertible family
    """
    if from_unit is None or to_unit is None:
        return False
    if from_unit == to_unit:
        return True
    return _base_factors(from_unit, to_unit) is not None


def convert(amount: float, from_unit: str, to_unit: str) -> float | None:
    """
    Convert an amount between two units.

    Examples:
        convert(2, "Kilograms", "Grams") -> 2000.0
        convert(1, "Cups", "Milliliters") -> 240.0
        convert(1, "Grams", "Liters") -> None
        convert(3, "Bag", "Bag") -> 3

    Returns:
        Converted amount, or None if the units are not convertible
    """
    if from_unit == to_unit:
        return amount

    factors = _base_factors(from_unit, to_unit)
    if factors is None:
        return None

    from_factor, to_factor = factors
    return amount * from_factor / to_factor


def convert_price_per_unit(price: float, from_unit: str, to_unit: str) -> float | None:
    """
    Convert a price for one ``from_unit`` into the price for one ``to_unit``.

    Price scales inversely to amount: a price per pound becomes a larger
    price per kilogram.

    Returns:
        Converted price, or None if the units are not convertible
    """
    if from_unit == to_unit:
        return price

    factors = _base_factors(from_unit, to_unit)
    if factors is None:
        return None

    from_factor, to_factor = factors
    price_per_base = price / from_factor
    return price_per_base * to_factor


def base_factor(unit: str) -> float | None:
    """Get how many base units (grams or milliliters) one ``unit`` holds."""
    match get_unit_family(unit):
        case Weight(grams=grams):
            return grams
        case Volume(milliliters=milliliters):
            return milliliters
        case _:
            return None
