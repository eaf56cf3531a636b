"""
Configuration management for the Meal Finder API.

This module centralizes environment variable loading from the .env file at the
project root. It should be imported early (api/main.py does so first thing) so
that .env is loaded before any other code reads environment variables.

In production, .env will usually not exist; load_dotenv() is safe to call and
will no-op, and platform environment variables are used instead.

Environment Variables:
- MEALDB_BASE_URL: Optional, defaults to "https://www.themealdb.com/api/json/v1/1"
- MEALDB_TIMEOUT_SECONDS: Optional, per-request timeout, defaults to 10
- TRENDING_COUNT: Optional, random picks used for the trending set, defaults to 8
- SUGGESTION_LIMIT: Optional, maximum live suggestions, defaults to 6
- CORRECTION_THRESHOLD: Optional, did-you-mean score threshold, defaults to 0.4
- SEARCH_MAX_WORKERS: Optional, worker threads for concurrent fetches, defaults to 8
- FAVORITES_PATH: Optional, JSON file for favorites, defaults to "favorites.json"
- LOG_LEVEL: Optional, defaults to "INFO"
"""

import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_env_file() -> None:
    """
    Load environment variables from .env file at project root.

    The project root is found by going up from this file's location
    (api/config.py -> api/ -> project root). Safe to call multiple times;
    existing environment variables take precedence (override=False).
    """
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env", override=False)


# Load .env file on module import
load_env_file()


def _get_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r, using default %d", name, raw, default)
        return default
    if value < minimum:
        logger.warning("%s=%d is below minimum %d, using default %d", name, value, minimum, default)
        return default
    return value


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r, using default %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s=%s must be positive, using default %s", name, raw, default)
        return default
    return value


class MealFinderConfig:
    """Configuration for the TheMealDB gateway and the search orchestrator."""

    @staticmethod
    def get_base_url() -> str:
        """TheMealDB base URL with trailing slash removed."""
        return os.getenv("MEALDB_BASE_URL", "https://www.themealdb.com/api/json/v1/1").rstrip("/")

    @staticmethod
    def get_timeout_seconds() -> float:
        return _get_float("MEALDB_TIMEOUT_SECONDS", 10.0)

    @staticmethod
    def get_trending_count() -> int:
        return _get_int("TRENDING_COUNT", 8)

    @staticmethod
    def get_suggestion_limit() -> int:
        return _get_int("SUGGESTION_LIMIT", 6)

    @staticmethod
    def get_correction_threshold() -> float:
        """
        Score a did-you-mean candidate must stay strictly under.

        Returns:
            Threshold as float (default: 0.4)
        """
        return _get_float("CORRECTION_THRESHOLD", 0.4)

    @staticmethod
    def get_max_workers() -> int:
        return _get_int("SEARCH_MAX_WORKERS", 8)

    @staticmethod
    def get_favorites_path() -> Path:
        return Path(os.getenv("FAVORITES_PATH", "favorites.json"))

    @staticmethod
    def get_log_level() -> str:
        return os.getenv("LOG_LEVEL", "INFO").upper()


def get_config_summary() -> Dict[str, object]:
    """
    Get the effective configuration (useful for the health endpoint and debugging).

    Returns:
        Dictionary of setting name -> effective value
    """
    return {
        "mealdb_base_url": MealFinderConfig.get_base_url(),
        "mealdb_timeout_seconds": MealFinderConfig.get_timeout_seconds(),
        "trending_count": MealFinderConfig.get_trending_count(),
        "suggestion_limit": MealFinderConfig.get_suggestion_limit(),
        "correction_threshold": MealFinderConfig.get_correction_threshold(),
        "search_max_workers": MealFinderConfig.get_max_workers(),
        "favorites_path": str(MealFinderConfig.get_favorites_path()),
    }
