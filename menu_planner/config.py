"""Configuration and file locations for Menu Planner."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# App directories
APP_NAME = "menu-planner"
CONFIG_DIR = Path(os.getenv("MENU_PLANNER_HOME", str(Path.home() / f".{APP_NAME}")))
STATE_FILE = CONFIG_DIR / "state.json"

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_CURRENCY_SYMBOL = "$"


def get_state_file() -> Path:
    """Get the state file path, honouring MENU_PLANNER_STATE_FILE."""
    override = os.getenv("MENU_PLANNER_STATE_FILE")
    if override:
        return Path(override).expanduser()
    return STATE_FILE


def get_log_level() -> str:
    """Get the configured log level name."""
    return os.getenv("MENU_PLANNER_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()


def get_currency_symbol() -> str:
    """Get the symbol shown in front of prices."""
    return os.getenv("MENU_PLANNER_CURRENCY", DEFAULT_CURRENCY_SYMBOL)
