"""
Base data source abstract class for meal database integrations.

This module defines the abstract base class that the remote meal gateway must
implement. The search orchestrator only depends on this interface, so tests can
hand it a Mock and a different meal API could be plugged in later.

All sources must:
- Provide one method per query shape (ingredient, category, area, lists, lookup, random)
- Return normalized MealSummary / MealDetail models, never raw payloads
- Raise GatewayError for transport, status or parse failures
- Return an empty list (not raise) when the remote source simply has no matches
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from mealfinder.models import MealDetail, MealSummary


class GatewayError(Exception):
    """
    Exception raised when a call to the remote meal API fails.

    Raised when:
    - The HTTP request fails at the transport level (connection, timeout)
    - The API responds with a non-success status
    - The response body is not a parseable JSON object

    An empty result is never a GatewayError.
    """

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class BaseMealSource(ABC):
    """
    Abstract base class for remote meal sources.

    Attributes:
        source: String identifier for the source (e.g., "mealdb")
    """
    source: str

    @abstractmethod
    def filter_by_ingredient(self, ingredient: str) -> List[MealSummary]:
        """Return meals that use the given main ingredient."""

    @abstractmethod
    def filter_by_category(self, category: str) -> List[MealSummary]:
        """Return meals in the given category (e.g., "Seafood")."""

    @abstractmethod
    def filter_by_area(self, area: str) -> List[MealSummary]:
        """Return meals from the given cuisine / area (e.g., "Italian")."""

    @abstractmethod
    def list_categories(self) -> List[str]:
        """Return all known category names."""

    @abstractmethod
    def list_areas(self) -> List[str]:
        """Return all known area names."""

    @abstractmethod
    def lookup_by_id(self, meal_id: str) -> Optional[MealDetail]:
        """Return the full recipe for a meal id, or None if the source has no such meal."""

    @abstractmethod
    def random_pick(self) -> MealSummary:
        """Return one random meal."""
