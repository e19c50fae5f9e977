"""Planner state: dishes, requirements, catalog and servings, with JSON storage."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from .catalog import Catalog, InvalidInputError
from .log import get_logger
from .planner import Dish, IngredientRequirement, parse_amount
from .shopping import ShoppingLine, generate
from .units import is_known_unit

logger = get_logger(__name__)

STATE_VERSION = 1


class PlannerError(Exception):
    """Exception raised for invalid edits to the planner state."""

    pass


class DuplicateDishError(PlannerError):
    """A dish with the same name already exists."""


class UnknownDishError(PlannerError):
    """No dish matches the given id or name."""


class UnknownRequirementError(PlannerError):
    """No ingredient requirement matches the given id."""


class MalformedStateError(ValueError):
    """Stored state could not be parsed."""

    pass


def _dish_key(name: str) -> str:
    """Normalize a dish name for uniqueness checks."""
    return name.strip().lower()


def normalize_servings(value: Any) -> int:
    """Parse a servings count; anything below 1 or unparsable becomes 1."""
    try:
        servings = int(value)
    except (TypeError, ValueError, OverflowError):
        return 1
    return max(1, servings)


@dataclass
class PlannerState:
    """Everything the planner persists between runs."""

    dishes: list[Dish] = field(default_factory=list)
    requirements: list[IngredientRequirement] = field(default_factory=list)
    catalog: Catalog = field(default_factory=Catalog)
    servings: int = 1
    updated_at: datetime | None = None

    # -- dishes ---------------------------------------------------------------

    def _next_dish_id(self) -> int:
        return max((d.id for d in self.dishes), default=0) + 1

    def _next_requirement_id(self) -> int:
        return max((r.id for r in self.requirements), default=0) + 1

    def find_dish(self, name: str) -> Dish | None:
        """Find a dish by name (case-insensitive)."""
        key = _dish_key(name)
        for dish in self.dishes:
            if _dish_key(dish.name) == key:
                return dish
        return None

    def get_dish(self, dish_id: int) -> Dish:
        """
        Get a dish by id.

        Raises:
            UnknownDishError: If no dish has this id
        """
        for dish in self.dishes:
            if dish.id == dish_id:
                return dish
        raise UnknownDishError(f"Dish #{dish_id} not found")

    def resolve_dish(self, ref: str | int) -> Dish:
        """
        Get a dish by id or name.

        Raises:
            UnknownDishError: If nothing matches
        """
        if isinstance(ref, int):
            return self.get_dish(ref)
        dish = self.find_dish(ref)
        if dish is None and ref.strip().isdigit():
            return self.get_dish(int(ref))
        if dish is None:
            raise UnknownDishError(f"Dish '{ref}' not found")
        return dish

    def _check_name_free(self, name: str, exclude_id: int | None = None) -> None:
        if not name.strip():
            raise PlannerError("Dish name must not be empty")
        existing = self.find_dish(name)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateDishError(f"Dish '{existing.name}' already exists")

    def add_dish(self, name: str, description: str = "") -> Dish:
        """
        Add a dish to the menu.

        Raises:
            DuplicateDishError: If a dish with this name exists
            PlannerError: If the name is empty
        """
        self._check_name_free(name)
        dish = Dish(id=self._next_dish_id(), name=name.strip(), description=description)
        self.dishes.append(dish)
        return dish

    def rename_dish(self, ref: str | int, new_name: str) -> Dish:
        """Rename a dish. Requirements follow automatically since they hold the id."""
        dish = self.resolve_dish(ref)
        self._check_name_free(new_name, exclude_id=dish.id)
        dish.name = new_name.strip()
        return dish

    def update_description(self, ref: str | int, description: str) -> Dish:
        dish = self.resolve_dish(ref)
        dish.description = description
        return dish

    def remove_dish(self, ref: str | int) -> Dish:
        """Remove a dish together with all of its ingredient requirements."""
        dish = self.resolve_dish(ref)
        self.dishes = [d for d in self.dishes if d.id != dish.id]
        self.requirements = [r for r in self.requirements if r.dish_id != dish.id]
        return dish

    # -- requirements ---------------------------------------------------------

    def get_requirement(self, requirement_id: int) -> IngredientRequirement:
        for requirement in self.requirements:
            if requirement.id == requirement_id:
                return requirement
        raise UnknownRequirementError(f"Ingredient row #{requirement_id} not found")

    def requirements_for(self, ref: str | int) -> list[IngredientRequirement]:
        """Get the requirements of one dish, in list order."""
        dish = self.resolve_dish(ref)
        return [r for r in self.requirements if r.dish_id == dish.id]

    def add_requirement(
        self,
        dish: str | int,
        ingredient: str,
        amount: float | str | None,
        unit: str,
    ) -> IngredientRequirement:
        """
        Add a per-serving ingredient requirement to a dish.

        An empty or unparsable amount is stored as None, which aggregation
        ignores.

        Raises:
            UnknownDishError: If the dish does not exist
            PlannerError: If the unit is not a known unit
        """
        target = self.resolve_dish(dish)
        if not is_known_unit(unit):
            raise PlannerError(f"Unknown unit '{unit}'")
        requirement = IngredientRequirement(
            id=self._next_requirement_id(),
            dish_id=target.id,
            ingredient=ingredient.strip(),
            amount=parse_amount(amount),
            unit=unit,
        )
        self.requirements.append(requirement)
        return requirement

    def update_requirement(
        self,
        requirement_id: int,
        *,
        dish: str | int | None = None,
        ingredient: str | None = None,
        amount: float | str | None = None,
        unit: str | None = None,
    ) -> IngredientRequirement:
        """Change fields of an existing requirement; None leaves a field as is."""
        requirement = self.get_requirement(requirement_id)
        if unit is not None and not is_known_unit(unit):
            raise PlannerError(f"Unknown unit '{unit}'")
        if dish is not None:
            requirement.dish_id = self.resolve_dish(dish).id
        if ingredient is not None:
            requirement.ingredient = ingredient.strip()
        if amount is not None:
            requirement.amount = parse_amount(amount)
        if unit is not None:
            requirement.unit = unit
        return requirement

    def remove_requirement(self, requirement_id: int) -> IngredientRequirement:
        requirement = self.get_requirement(requirement_id)
        self.requirements = [r for r in self.requirements if r.id != requirement_id]
        return requirement

    def set_servings(self, servings: Any) -> int:
        self.servings = normalize_servings(servings)
        return self.servings

    def generate(self, servings: int | None = None) -> list[ShoppingLine]:
        """Build the shopping list from this state's requirements and catalog."""
        count = self.servings if servings is None else normalize_servings(servings)
        return generate(self.requirements, count, self.catalog)

    # -- serialization --------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "version": STATE_VERSION,
            "dishes": [d.to_dict() for d in self.dishes],
            "requirements": [r.to_dict() for r in self.requirements],
            "catalog": self.catalog.to_dict(),
            "servings": self.servings,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> PlannerState:
        """
        Create from a dict.

        Also accepts the older layout in which requirements name their dish
        (``"dish": "Salad"``) instead of referencing its id.

        Raises:
            MalformedStateError: If the data cannot be interpreted
        """
        if not isinstance(data, dict):
            raise MalformedStateError(f"State must be an object, got {type(data).__name__}")

        try:
            state = cls(
                catalog=Catalog.from_dict(data.get("catalog", {})),
                servings=normalize_servings(data.get("servings", 1)),
            )
            for raw in data.get("dishes", []):
                if "id" in raw:
                    state.dishes.append(Dish.from_dict(raw))
                else:
                    state.dishes.append(
                        Dish(
                            id=state._next_dish_id(),
                            name=str(raw.get("name", "")),
                            description=str(raw.get("description", "")),
                        )
                    )
            for raw in data.get("requirements", []):
                state.requirements.append(state._requirement_from_raw(raw))
            if data.get("updated_at"):
                state.updated_at = datetime.fromisoformat(data["updated_at"])
        except MalformedStateError:
            raise
        except (
            InvalidInputError,
            PlannerError,
            KeyError,
            TypeError,
            ValueError,
            OverflowError,
            AttributeError,
        ) as e:
            raise MalformedStateError(f"Invalid state data: {e}") from e

        return state

    def _requirement_from_raw(self, raw: dict[str, Any]) -> IngredientRequirement:
        if not is_known_unit(raw.get("unit")):
            raise MalformedStateError(f"Unknown unit {raw.get('unit')!r}")

        if "dish_id" in raw:
            requirement = IngredientRequirement.from_dict(
                {"id": raw.get("id", self._next_requirement_id()), **raw}
            )
            self.get_dish(requirement.dish_id)
            return requirement

        dish_name = str(raw.get("dish", ""))
        dish = self.find_dish(dish_name) if dish_name.strip() else None
        if dish is None:
            # Rows pointing at a missing dish are kept under a placeholder dish
            dish = Dish(id=self._next_dish_id(), name=dish_name.strip() or "Unassigned")
            self.dishes.append(dish)
        return IngredientRequirement(
            id=self._next_requirement_id(),
            dish_id=dish.id,
            ingredient=str(raw.get("ingredient", "")),
            amount=parse_amount(raw.get("amount")),
            unit=str(raw["unit"]),
        )

    @classmethod
    def seed(cls) -> PlannerState:
        """Starter menu used on first run and when stored state is unreadable."""
        state = cls()
        salad = state.add_dish("Salad", "Fresh garden salad")
        spaghetti = state.add_dish("Spaghetti", "Classic pasta with tomato sauce")
        state.add_requirement(salad.id, "Lettuce", 0.5, "Pounds")
        state.add_requirement(salad.id, "Tomato", 0.3, "Pounds")
        state.add_requirement(salad.id, "Olive Oil", 0.05, "Liters")
        state.add_requirement(spaghetti.id, "Spaghetti Pasta", 100, "Grams")
        state.add_requirement(spaghetti.id, "Tomato Sauce", 0.5, "Liters")
        state.catalog = Catalog(
            {
                "Lettuce": {"Pounds": 2.0},
                "Tomato": {"Pounds": 1.5},
                "Olive Oil": {"Liters": 10.0},
                "Spaghetti Pasta": {"Grams": 0.01},
                "Tomato Sauce": {"Liters": 3.0},
            }
        )
        state.servings = 4
        return state


def load_state(state_file: Path) -> PlannerState:
    """
    Load planner state from disk.

    Falls back to the seed data when the file is missing or unreadable;
    unreadable files are logged, never raised.
    """
    if not state_file.exists():
        return PlannerState.seed()

    try:
        with open(state_file, encoding="utf-8") as f:
            data = json.load(f)
        return PlannerState.from_dict(data)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, MalformedStateError) as e:
        logger.warning("Could not read %s, using sample data instead: %s", state_file, e)
        return PlannerState.seed()


def save_state(state: PlannerState, state_file: Path) -> None:
    """Save planner state to disk."""
    state.updated_at = datetime.now()
    state_file.parent.mkdir(parents=True, exist_ok=True)
    with open(state_file, "w", encoding="utf-8") as f:
        json.dump(state.to_dict(), f, indent=2, ensure_ascii=False)
    logger.debug("Saved state to %s", state_file)
