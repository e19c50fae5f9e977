"""Menu planning: dishes, per-serving requirements and ingredient aggregation."""

import math
from dataclasses import dataclass
from typing import Any

from .units import convert, family_id


@dataclass
class Dish:
    """A dish on the menu."""

    id: int
    name: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Dish":
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
        )


@dataclass
class IngredientRequirement:
    """How much of one ingredient a single serving of a dish needs."""

    id: int
    dish_id: int
    ingredient: str
    amount: float | None
    unit: str

    def __str__(self) -> str:
        if self.amount is None:
            return f"{self.ingredient} (no amount)"
        qty = self.amount
        qty_str = str(int(qty)) if qty == int(qty) else f"{qty:.3f}".rstrip("0").rstrip(".")
        return f"{qty_str} {self.unit} {self.ingredient}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "dish_id": self.dish_id,
            "ingredient": self.ingredient,
            "amount": self.amount,
            "unit": self.unit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IngredientRequirement":
        return cls(
            id=int(data["id"]),
            dish_id=int(data["dish_id"]),
            ingredient=str(data.get("ingredient", "")),
            amount=parse_amount(data.get("amount")),
            unit=str(data["unit"]),
        )


@dataclass(frozen=True)
class AggregationKey:
    """
    Identity of one shopping line.

    ``family`` is None for the ingredient's primary line. Entries whose unit
    cannot be converted into the primary line's unit are collected on a
    separate key carrying their unit family ("weight", "volume", or the
    discrete unit's own name).
    """

    ingredient: str
    family: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.family is not None


@dataclass
class AggregatedIngredient:
    """Total amount of an ingredient across all dishes and servings."""

    key: AggregationKey
    amount: float
    unit: str

    @property
    def ingredient(self) -> str:
        return self.key.ingredient

    @property
    def display_name(self) -> str:
        """Ingredient name, with the unit appended for fallback lines."""
        if self.key.is_fallback:
            return f"{self.key.ingredient} ({self.unit})"
        return self.key.ingredient


def parse_amount(value: Any) -> float | None:
    """
    Parse a stored or typed amount.

    Empty values and anything that is not a non-negative number become None
    ("ignore this row"), never zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount < 0:
        return None
    return amount


def aggregate(
    requirements: list[IngredientRequirement], servings: int
) -> list[AggregatedIngredient]:
    """
    Scale per-serving requirements and merge them into shopping totals.

    The first requirement seen for an ingredient fixes its unit; later
    requirements in a convertible unit are converted into it. Requirements
    that cannot be converted are totalled separately per unit family.

    Args:
        requirements: Per-serving requirements, in display order
        servings: Number of servings to buy for

    Returns:
        Aggregated ingredients in order of first appearance
    """
    totals: dict[AggregationKey, AggregatedIngredient] = {}

    for requirement in requirements:
        name = requirement.ingredient.strip()
        amount = parse_amount(requirement.amount)
        if not name or amount is None:
            continue

        scaled = amount * servings
        primary = AggregationKey(name)

        if primary not in totals:
            totals[primary] = AggregatedIngredient(primary, scaled, requirement.unit)
            continue

        if _add_converted(totals[primary], scaled, requirement.unit):
            continue

        fallback = AggregationKey(name, family_id(requirement.unit))
        if fallback in totals:
            # Same family id, so always convertible
            _add_converted(totals[fallback], scaled, requirement.unit)
        else:
            totals[fallback] = AggregatedIngredient(fallback, scaled, requirement.unit)

    return list(totals.values())


def _add_converted(entry: AggregatedIngredient, amount: float, unit: str) -> bool:
    """Add ``amount`` to ``entry`` in the entry's unit. Returns False if not convertible."""
    converted = convert(amount, unit, entry.unit)
    if converted is None:
        return False
    entry.amount += converted
    return True
