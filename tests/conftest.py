"""
Shared fixtures for meal finder tests.

The gateway is always a Mock built on BaseMealSource so no test ever reaches
TheMealDB. Every test gets a fresh SearchContext and cache.
"""

from typing import Iterable, List
from unittest.mock import Mock

import pytest

from mealfinder.connectors.base import BaseMealSource
from mealfinder.models import MealSummary
from mealfinder.search import MealSearchService, SearchContext


def make_meals(ids: Iterable[str], prefix: str = "Meal") -> List[MealSummary]:
    """Build MealSummary objects named '<prefix> <id>'."""
    return [MealSummary(id=str(i), name=f"{prefix} {i}") for i in ids]


@pytest.fixture
def gateway():
    mock_gateway = Mock(spec=BaseMealSource)
    mock_gateway.filter_by_ingredient.return_value = []
    mock_gateway.filter_by_category.return_value = []
    mock_gateway.filter_by_area.return_value = []
    mock_gateway.list_categories.return_value = []
    mock_gateway.list_areas.return_value = []
    mock_gateway.lookup_by_id.return_value = None
    return mock_gateway


@pytest.fixture
def context(gateway):
    return SearchContext(gateway)


@pytest.fixture
def service(context):
    search_service = MealSearchService(context, max_workers=4)
    yield search_service
    search_service.close()
