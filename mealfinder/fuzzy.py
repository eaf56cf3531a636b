"""
Fuzzy matching and suggestion engine.

Scores free-text queries against a small pool of candidate terms (trending meal
names, categories, areas, previously searched ingredients and a fixed fallback
vocabulary) to power two features:

- Live suggestions while the user types (suggest)
- A single "did you mean" correction after a search comes back empty (best_correction)

Scoring (lower is better):
- inf when either string is blank
- 0.0 when the candidate contains the query (case-insensitive)
- otherwise Levenshtein distance divided by the candidate length

Edit distances come from rapidfuzz with unit insert/delete/substitute weights.
"""

import math
from typing import Iterable, List, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from mealfinder.models import MealSummary

DEFAULT_SUGGESTION_LIMIT = 6
DEFAULT_CORRECTION_THRESHOLD = 0.4

# Popular dishes that are always offered, even before anything was fetched
FALLBACK_VOCABULARY = ("biryani", "pasta", "pizza", "curry", "salad", "fried rice")


def levenshtein(a: str, b: str) -> int:
    """
    Case-insensitive Levenshtein distance between two strings.

    Examples:
        >>> levenshtein("chiken", "Chicken")
        1
        >>> levenshtein("", "rice")
        4
    """
    if not a:
        return len(b or "")
    if not b:
        return len(a)
    return Levenshtein.distance(a.lower(), b.lower())


def score_match(query: str, candidate: str) -> float:
    """
    Score how well a candidate matches a query (lower is better).

    Args:
        query: User input
        candidate: Term from the suggestion pool

    Returns:
        0.0 for substring containment, the length-normalized edit distance
        otherwise, or math.inf when either string is blank
    """
    q = (query or "").strip().lower()
    c = (candidate or "").strip().lower()
    if not q or not c:
        return math.inf
    if q in c:
        return 0.0
    return levenshtein(q, c) / max(len(c), 1)


def suggest(query: str, pool: Iterable[str], limit: int = DEFAULT_SUGGESTION_LIMIT) -> List[str]:
    """
    Rank pool candidates against a query for live suggestions.

    Candidates with a non-finite score are dropped. The sort is stable, so ties
    keep pool order.

    Args:
        query: Current text in the search box
        pool: Candidate terms
        limit: Maximum number of suggestions (default: 6)

    Returns:
        Up to `limit` candidate strings, best first
    """
    if not query or not query.strip():
        return []
    scored = [(candidate, score_match(query, candidate)) for candidate in pool]
    scored = [item for item in scored if math.isfinite(item[1])]
    scored.sort(key=lambda item: item[1])
    return [candidate for candidate, _ in scored[:limit]]


def best_correction(
    query: str,
    pool: Iterable[str],
    threshold: float = DEFAULT_CORRECTION_THRESHOLD,
) -> Optional[str]:
    """
    Pick a single "did you mean" correction for a query that found nothing.

    The lowest-scoring candidate is returned only if its score is strictly below
    the threshold and it differs (case-insensitively) from the query itself.

    Examples:
        >>> best_correction("chiken", ["chicken curry", "chicken", "rice"])
        'chicken'
    """
    if not query or not query.strip():
        return None

    best: Optional[str] = None
    best_score = math.inf
    for candidate in pool:
        candidate_score = score_match(query, candidate)
        if candidate_score < best_score:
            best, best_score = candidate, candidate_score

    if best is None or best_score >= threshold:
        return None
    if best.strip().lower() == query.strip().lower():
        return None
    return best


def build_candidate_pool(
    trending: Sequence[MealSummary] = (),
    categories: Sequence[str] = (),
    areas: Sequence[str] = (),
    ingredient_keys: Sequence[str] = (),
    fallback: Sequence[str] = FALLBACK_VOCABULARY,
) -> List[str]:
    """
    Build the deduplicated suggestion pool.

    Order: trending meal names, categories, areas, cached ingredient keys, then
    the fallback vocabulary. Exact duplicates are kept once at their first position.
    """
    pool = {}
    for term in (
        *(meal.name for meal in trending),
        *categories,
        *areas,
        *ingredient_keys,
        *fallback,
    ):
        if term:
            pool.setdefault(term, None)
    return list(pool)
