"""
In-process result cache for meal lookups.

This module provides a simple, lightweight cache for filter results and recipe
details to avoid redundant round-trips to TheMealDB within a session.

The cache is owned by a SearchContext (one per session) rather than living at
module level, so every test can start from a fresh instance. Entries are
write-once per key and never expire: the meal catalog is close to static, so
there is no TTL and no eviction.

Stores:
- ingredient: normalized ingredient term -> List[MealSummary]
- category: normalized category name -> List[MealSummary]
- area: normalized area name -> List[MealSummary]
- lookup: meal id -> MealDetail
"""

import logging
import threading
from typing import Callable, Dict, List, Tuple

from mealfinder.models import MealDetail, MealSummary

logger = logging.getLogger(__name__)

FILTER_KINDS = ("ingredient", "category", "area")
LOOKUP_KIND = "lookup"


def make_cache_key(key: str) -> str:
    """
    Normalize a lookup key so "Chicken " and "chicken" hit the same entry.

    Args:
        key: Free-text term, categorical value or meal id

    Returns:
        Trimmed, lower-cased key
    """
    return (key or "").strip().lower()


class ResultCache:
    """
    Memoized store for filter results and recipe details.

    The orchestrator fetches on worker threads, so every read and write of the
    underlying dicts happens under a lock. The fetch itself runs outside the lock:
    two racing misses on the same key may both hit the network, and the first
    successful write wins.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stores: Dict[str, Dict[str, object]] = {
            kind: {} for kind in FILTER_KINDS + (LOOKUP_KIND,)
        }

    def _store(self, kind: str) -> Dict[str, object]:
        if kind not in self._stores:
            raise ValueError(f"Unknown cache kind '{kind}'. Valid kinds: {', '.join(self._stores)}")
        return self._stores[kind]

    def _get_or_fetch(self, kind: str, key: str, fetcher: Callable[[], object]) -> Tuple[object, bool]:
        store = self._store(kind)
        cache_key = make_cache_key(key)

        with self._lock:
            if cache_key in store:
                logger.debug("Cache hit: kind=%s key=%r", kind, cache_key)
                return store[cache_key], True

        logger.debug("Cache miss: kind=%s key=%r", kind, cache_key)
        # A raising fetcher propagates here and leaves no entry behind
        value = fetcher()

        with self._lock:
            # setdefault keeps the first successful write if another thread raced us
            return store.setdefault(cache_key, value), False

    def get_or_fetch(self, kind: str, key: str, fetcher: Callable[[], List[MealSummary]]) -> List[MealSummary]:
        """
        Return cached meals for (kind, key), fetching and storing them on a miss.

        Args:
            kind: One of "ingredient", "category", "area"
            key: Lookup key (normalized before use)
            fetcher: Zero-argument callable performing the network call

        Returns:
            List of MealSummary for the key

        Raises:
            ValueError: If kind is not a filter kind
            Exception: Whatever the fetcher raises (the failure is not cached)
        """
        if kind not in FILTER_KINDS:
            raise ValueError(f"Unknown filter kind '{kind}'. Valid kinds: {', '.join(FILTER_KINDS)}")
        value, _ = self._get_or_fetch(kind, key, fetcher)
        return value  # type: ignore[return-value]

    def get_or_fetch_detail(self, meal_id: str, fetcher: Callable[[], MealDetail]) -> MealDetail:
        """Return the cached recipe detail for meal_id, fetching it on a miss."""
        value, _ = self._get_or_fetch(LOOKUP_KIND, meal_id, fetcher)
        return value  # type: ignore[return-value]

    def contains(self, kind: str, key: str) -> bool:
        with self._lock:
            return make_cache_key(key) in self._store(kind)

    def keys(self, kind: str, include_empty: bool = True) -> List[str]:
        """
        Return the normalized keys stored for a kind, in insertion order.

        Args:
            kind: Cache kind
            include_empty: If False, skip keys whose cached value is empty
        """
        with self._lock:
            return [k for k, v in self._store(kind).items() if include_empty or v]

    def clear(self) -> None:
        """Clear all stores (useful for testing)."""
        with self._lock:
            for store in self._stores.values():
                store.clear()

    def size(self) -> int:
        """Get the total number of cached entries across all stores."""
        with self._lock:
            return sum(len(store) for store in self._stores.values())
