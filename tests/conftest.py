"""Shared fixtures for menu-planner tests."""

import pytest

from menu_planner.catalog import Catalog
from menu_planner.state import PlannerState


@pytest.fixture
def tomato_catalog() -> Catalog:
    """Catalog knowing only the price of a pound of tomatoes."""
    return Catalog({"Tomato": {"Pounds": 1.5}})


@pytest.fixture
def seed_state() -> PlannerState:
    """The sample menu (Salad and Spaghetti, 4 servings)."""
    return PlannerState.seed()


@pytest.fixture
def state_file(tmp_path):
    """Path for a state file that does not exist yet."""
    return tmp_path / "state.json"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.menu-planner and user environment."""
    monkeypatch.setattr("menu_planner.config.STATE_FILE", tmp_path / "default-state.json")
    monkeypatch.delenv("MENU_PLANNER_STATE_FILE", raising=False)
    monkeypatch.delenv("MENU_PLANNER_CURRENCY", raising=False)
    monkeypatch.delenv("MENU_PLANNER_LOG_LEVEL", raising=False)
