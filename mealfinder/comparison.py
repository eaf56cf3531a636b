"""
Sorting and pagination utilities for published meal results.

The orchestrator publishes one full, deduplicated result list per search. The
view layer then asks for a sorted page of it; these helpers keep that logic on
the backend so every client pages the same way.

Key functions:
- sort_meals: Sort by name, ascending or descending, case-insensitively
- paginate: Slice a 1-indexed page out of a list
"""

from typing import List, Optional, Tuple

from mealfinder.models import MealSummary

PAGE_SIZE = 12

SORT_OPTIONS = ("name-asc", "name-desc")
DEFAULT_SORT = "name-asc"


def sort_meals(meals: List[MealSummary], sort_by: Optional[str] = None) -> List[MealSummary]:
    """
    Sort meals by name.

    Args:
        meals: Meals to sort (not mutated)
        sort_by: "name-asc" or "name-desc"; None keeps the original order

    Returns:
        New sorted list. Ties fall back to the meal id for a stable, deterministic order.

    Raises:
        ValueError: If sort_by is not a known option
    """
    if sort_by is None:
        return list(meals)
    if sort_by not in SORT_OPTIONS:
        raise ValueError(f"Invalid sort_by: '{sort_by}'. Valid options: {', '.join(SORT_OPTIONS)}")
    return sorted(
        meals,
        key=lambda m: (m.name.casefold(), m.id),
        reverse=(sort_by == "name-desc"),
    )


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    """Number of pages for `count` items; never less than 1."""
    return max(1, -(-count // page_size))


def paginate(
    meals: List[MealSummary], page: int, page_size: int = PAGE_SIZE
) -> Tuple[List[MealSummary], int, int]:
    """
    Return one page of meals.

    Pages are 1-indexed. A page past the end is clamped to the last page.

    Returns:
        Tuple of (page_items, page, total_pages) where page is the clamped page number
    """
    pages = total_pages(len(meals), page_size)
    page = min(max(page, 1), pages)
    start = (page - 1) * page_size
    return meals[start:start + page_size], page, pages
