"""
AND-combination and deduplication of meal result lists.

Each active filter (every ingredient term, the category, the area) is served by
its own API call. A meal matches the query only if it shows up in every one of
those lists, so the lists are intersected by meal id.

Key functions:
- intersect_by_id: Meals present in every input list, in first-list order
- dedupe_by_id: Collapse duplicate ids, keeping first-seen order
"""

from typing import Dict, List, Sequence

from mealfinder.models import MealSummary


def intersect_by_id(lists: Sequence[List[MealSummary]]) -> List[MealSummary]:
    """
    Intersect meal lists by id.

    Records and order are taken from the first list. Zero lists give an empty
    result (callers must not use this to mean "match all"); a single list is
    returned as-is.

    Args:
        lists: One result list per active filter

    Returns:
        Meals whose id appears in every list

    Examples:
        >>> a = [MealSummary(id="1", name="A"), MealSummary(id="2", name="B")]
        >>> b = [MealSummary(id="2", name="B")]
        >>> [m.id for m in intersect_by_id([a, b])]
        ['2']
    """
    if not lists:
        return []
    if len(lists) == 1:
        return lists[0]

    result = lists[0]
    for other in lists[1:]:
        ids = {meal.id for meal in other}
        result = [meal for meal in result if meal.id in ids]
        if not result:
            break
    return result


def dedupe_by_id(meals: Sequence[MealSummary]) -> List[MealSummary]:
    """
    Deduplicate meals by id.

    The last record seen for an id wins, but it keeps the position where the id
    first appeared (dict insertion order). Idempotent.
    """
    by_id: Dict[str, MealSummary] = {}
    for meal in meals:
        by_id[meal.id] = meal
    return list(by_id.values())
