"""Logging setup shared by the CLI and the TUI."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "WARNING", logger: logging.Logger | None = None) -> None:
    """
    Attach a stderr handler unless the logger already has one.

    Args:
        level: Level name, e.g. "INFO"
        logger: Logger to configure (default: the root logger)
    """
    target = logger or logging.getLogger()
    if target.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    target.addHandler(handler)
    target.setLevel(level)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or "menu_planner")
