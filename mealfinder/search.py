"""
Search orchestration across TheMealDB filter endpoints.

This module provides the core search functionality that:
- Resolves one result list per active filter (each ingredient term, category, area)
  through the session cache, fetching the lists concurrently
- AND-combines the lists by meal id and deduplicates the result
- Falls back to the trending set when no filter is active
- Offers a "did you mean" correction when a search comes back empty
- Turns any gateway failure into a Failed outcome without partial results

The MealSearchService is the main entry point for the view layer. It owns a
SearchContext (gateway, cache, trending list, known categories and areas) that
lives for one session; tests create a fresh context per test.

Search flow: UI -> MealSearchService.search() -> SearchContext.fetch_filter() -> ResultCache
-> MealDBConnector -> intersect_by_id() -> dedupe_by_id() -> best_correction() (empty only) -> SearchOutcome
"""

import itertools
import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Tuple

from mealfinder.comparison import DEFAULT_SORT, paginate, sort_meals
from mealfinder.connectors.base import BaseMealSource, GatewayError
from mealfinder.fuzzy import (
    DEFAULT_CORRECTION_THRESHOLD,
    DEFAULT_SUGGESTION_LIMIT,
    best_correction,
    build_candidate_pool,
    suggest,
)
from mealfinder.intersection import dedupe_by_id, intersect_by_id
from mealfinder.models import FilterSet, MealDetail, MealSummary, SearchOutcome, SearchState
from mealfinder.utils.cache import ResultCache

logger = logging.getLogger(__name__)

DEFAULT_TRENDING_COUNT = 8
DEFAULT_MAX_WORKERS = 8

# Shown on the landing view before anything was searched
QUICK_PICKS = ("chicken", "egg", "rice", "tomato", "beef", "cheese")

FAILED_MESSAGE = "Something went wrong. Please try again."
RANDOM_FAILED_MESSAGE = "Could not load a random recipe. Try again."
NO_RESULTS_MESSAGE = "No recipes found. Try different filters."
DID_YOU_MEAN_MESSAGE = 'No results for "{query}". Did you mean "{suggestion}"? Click the suggestion to search.'


class DetailNotFoundError(LookupError):
    """Raised when a recipe lookup returns no record for the requested id."""

    def __init__(self, meal_id: str):
        super().__init__(f"No recipe found for meal id {meal_id}")
        self.meal_id = meal_id


class SearchContext:
    """
    Per-session state shared by all searches.

    Attributes:
        gateway: Remote meal source
        cache: Result cache for filter lists and recipe details
        trending: Current trending set (fallback results)
        categories: Known category names
        areas: Known area names
    """

    def __init__(self, gateway: BaseMealSource, cache: Optional[ResultCache] = None) -> None:
        self.gateway = gateway
        self.cache = cache or ResultCache()
        self.trending: List[MealSummary] = []
        self.categories: List[str] = []
        self.areas: List[str] = []

    def _filter_fetchers(self) -> Dict[str, Callable[[str], List[MealSummary]]]:
        # Resolved per call so tests can swap gateway methods on the instance
        return {
            "ingredient": self.gateway.filter_by_ingredient,
            "category": self.gateway.filter_by_category,
            "area": self.gateway.filter_by_area,
        }

    def fetch_filter(self, kind: str, key: str) -> List[MealSummary]:
        """
        Resolve one filter list through the cache.

        Ingredient terms are already lower-cased by FilterSet; category and area
        values are sent to the API as given and only normalized for the cache key.
        """
        fetcher = self._filter_fetchers()[kind]
        return self.cache.get_or_fetch(kind, key, lambda: fetcher(key))

    def candidate_pool(self) -> List[str]:
        """
        Current suggestion pool (recomputed on every call).

        Ingredient terms that returned no meals are left out: a failed term would
        otherwise match itself and hide the real correction.
        """
        return build_candidate_pool(
            trending=self.trending,
            categories=self.categories,
            areas=self.areas,
            ingredient_keys=self.cache.keys("ingredient", include_empty=False),
        )


class MealSearchService:
    """
    Search orchestrator for one session.

    Every invocation (search, surprise_me, reset_to_trending) gets an increasing
    id. Only the settlement of the newest invocation is published to `outcome`;
    an older search that settles late is returned to its caller but never
    overwrites newer results.

    Args:
        context: Session context (gateway, cache, trending, filter options)
        suggestion_limit: Maximum live suggestions (default: 6)
        correction_threshold: Score a correction must stay under (default: 0.4)
        trending_count: Random picks used to build the trending set (default: 8)
        max_workers: Worker threads for concurrent fetches (default: 8)
    """

    def __init__(
        self,
        context: SearchContext,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
        correction_threshold: float = DEFAULT_CORRECTION_THRESHOLD,
        trending_count: int = DEFAULT_TRENDING_COUNT,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.context = context
        self.suggestion_limit = suggestion_limit
        self.correction_threshold = correction_threshold
        self.trending_count = trending_count
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mealfinder")
        self._lock = threading.Lock()
        self._invocations = itertools.count(1)
        self._latest_invocation = 0
        self.outcome = SearchOutcome()

    def close(self) -> None:
        """Shut down the worker pool."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # Invocation bookkeeping
    # ------------------------------------------------------------------

    def _start_invocation(self, filters: FilterSet) -> int:
        with self._lock:
            invocation_id = next(self._invocations)
            self._latest_invocation = invocation_id
            self.outcome = SearchOutcome(
                state=SearchState.SEARCHING,
                filters=filters,
                results=self.outcome.results,
                invocation_id=invocation_id,
            )
        return invocation_id

    def _publish(self, outcome: SearchOutcome) -> SearchOutcome:
        with self._lock:
            if outcome.invocation_id == self._latest_invocation:
                self.outcome = outcome
            else:
                logger.info(
                    "Dropping stale settlement: invocation=%d latest=%d state=%s",
                    outcome.invocation_id, self._latest_invocation, outcome.state.value,
                )
        return outcome

    # ------------------------------------------------------------------
    # Background population
    # ------------------------------------------------------------------

    def _join(self, futures: List[Future]) -> None:
        """Wait for all futures, failing fast on the first exception."""
        if not futures:
            return
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        for future in done:
            error = future.exception()
            if error is not None:
                for pending in not_done:
                    pending.cancel()
                raise error

    def load_trending(self, count: Optional[int] = None) -> List[MealSummary]:
        """
        Build the trending set from concurrent random picks, merged by id.

        Any failure degrades to an empty trending list; it never raises.
        """
        count = self.trending_count if count is None else count
        futures = [self._executor.submit(self.context.gateway.random_pick) for _ in range(count)]
        try:
            self._join(futures)
            trending = dedupe_by_id([f.result() for f in futures])
        except GatewayError as e:
            logger.warning("Trending refresh failed, falling back to empty list: %s", e)
            trending = []
        self.context.trending = trending
        logger.info("Trending set loaded: %d meals from %d picks", len(trending), count)
        return trending

    def load_filter_options(self) -> Tuple[List[str], List[str]]:
        """
        Load category and area names for the dropdowns.

        Each list degrades to empty on failure without affecting the other.
        """
        category_future = self._executor.submit(self.context.gateway.list_categories)
        area_future = self._executor.submit(self.context.gateway.list_areas)
        try:
            self.context.categories = category_future.result()
        except GatewayError as e:
            logger.warning("Loading categories failed, using empty list: %s", e)
            self.context.categories = []
        try:
            self.context.areas = area_future.result()
        except GatewayError as e:
            logger.warning("Loading areas failed, using empty list: %s", e)
            self.context.areas = []
        return self.context.categories, self.context.areas

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _resolve_lists(self, filters: FilterSet) -> List[List[MealSummary]]:
        """
        Fetch every filter list concurrently and return the lists to intersect.

        The per-ingredient lists are intersected first and count as one list.
        """
        fetch = self.context.fetch_filter
        ingredient_futures = [self._executor.submit(fetch, "ingredient", term) for term in filters.ingredients]
        category_future = self._executor.submit(fetch, "category", filters.category) if filters.category else None
        area_future = self._executor.submit(fetch, "area", filters.area) if filters.area else None

        pending = [f for f in (*ingredient_futures, category_future, area_future) if f is not None]
        self._join(pending)

        lists: List[List[MealSummary]] = []
        if ingredient_futures:
            lists.append(intersect_by_id([f.result() for f in ingredient_futures]))
        if category_future is not None:
            lists.append(category_future.result())
        if area_future is not None:
            lists.append(area_future.result())
        return lists

    def search(self, filters: FilterSet) -> SearchOutcome:
        """
        Run one search and publish its outcome.

        Args:
            filters: Active query; an empty FilterSet shows the trending set

        Returns:
            SearchOutcome with one of the states SUCCEEDED, FAILED,
            EMPTY_WITH_SUGGESTION or EMPTY_NO_SUGGESTION
        """
        invocation_id = self._start_invocation(filters)
        logger.info(
            "Search request: invocation=%d ingredients=%r category=%r area=%r",
            invocation_id, filters.ingredients, filters.category, filters.area,
        )

        try:
            lists = self._resolve_lists(filters)
        except GatewayError as e:
            logger.warning("Search failed: invocation=%d error=%s", invocation_id, e)
            return self._publish(SearchOutcome(
                state=SearchState.FAILED,
                filters=filters,
                message=FAILED_MESSAGE,
                invocation_id=invocation_id,
            ))

        if not lists:
            merged = self.context.trending
        elif len(lists) == 1:
            merged = lists[0]
        else:
            merged = intersect_by_id(lists)

        results = dedupe_by_id(merged)
        logger.info("Search settled: invocation=%d lists=%d results=%d", invocation_id, len(lists), len(results))

        if results:
            return self._publish(SearchOutcome(
                state=SearchState.SUCCEEDED,
                filters=filters,
                results=results,
                page=1,
                invocation_id=invocation_id,
            ))

        correction = best_correction(filters.raw_query, self.context.candidate_pool(), self.correction_threshold)
        if correction is not None:
            logger.info("No results for %r, suggesting %r", filters.raw_query, correction)
            return self._publish(SearchOutcome(
                state=SearchState.EMPTY_WITH_SUGGESTION,
                filters=filters,
                message=DID_YOU_MEAN_MESSAGE.format(query=filters.raw_query, suggestion=correction),
                suggestion=correction,
                invocation_id=invocation_id,
            ))

        return self._publish(SearchOutcome(
            state=SearchState.EMPTY_NO_SUGGESTION,
            filters=filters,
            message=NO_RESULTS_MESSAGE,
            invocation_id=invocation_id,
        ))

    def search_inputs(
        self,
        ingredient_text: Optional[str] = None,
        category: Optional[str] = None,
        area: Optional[str] = None,
    ) -> SearchOutcome:
        """Convenience wrapper: build a FilterSet from raw inputs and search."""
        return self.search(FilterSet.from_inputs(ingredient_text, category, area))

    def apply_suggestion(self, term: str, previous: Optional[FilterSet] = None) -> SearchOutcome:
        """
        Re-run a search with `term` as the ingredient query.

        Args:
            term: Did-you-mean term replacing the ingredient text
            previous: Filters of the search that produced the suggestion; its
                category and area are kept. Defaults to the published outcome's
                filters, which callers sharing one service should not rely on.
        """
        previous = previous if previous is not None else self.outcome.filters
        return self.search(FilterSet.from_inputs(term, previous.category, previous.area))

    def live_suggestions(self, text: str) -> List[str]:
        """Ranked suggestions for the text currently typed in the search box."""
        return suggest(text, self.context.candidate_pool(), self.suggestion_limit)

    # ------------------------------------------------------------------
    # Other user actions
    # ------------------------------------------------------------------

    def surprise_me(self) -> SearchOutcome:
        """Publish a single random meal as the result list."""
        filters = FilterSet()
        invocation_id = self._start_invocation(filters)
        try:
            meal = self.context.gateway.random_pick()
        except GatewayError as e:
            logger.warning("Random pick failed: %s", e)
            return self._publish(SearchOutcome(
                state=SearchState.FAILED,
                filters=filters,
                message=RANDOM_FAILED_MESSAGE,
                invocation_id=invocation_id,
            ))
        return self._publish(SearchOutcome(
            state=SearchState.SUCCEEDED,
            filters=filters,
            results=[meal],
            invocation_id=invocation_id,
        ))

    def reset_to_trending(self) -> SearchOutcome:
        """Clear all filters and show the trending set again."""
        with self._lock:
            invocation_id = next(self._invocations)
            self._latest_invocation = invocation_id
        return self._publish(SearchOutcome(
            state=SearchState.IDLE,
            results=list(self.context.trending),
            invocation_id=invocation_id,
        ))

    def open_detail(self, meal_id: str) -> MealDetail:
        """
        Return the full recipe for a meal, using the lookup cache first.

        Raises:
            DetailNotFoundError: If TheMealDB has no record for the id
            GatewayError: If the lookup request fails
        """
        def fetch() -> MealDetail:
            detail = self.context.gateway.lookup_by_id(meal_id)
            if detail is None:
                raise DetailNotFoundError(meal_id)
            return detail

        return self.context.cache.get_or_fetch_detail(meal_id, fetch)

    def results_page(
        self,
        page: int = 1,
        sort_by: Optional[str] = DEFAULT_SORT,
        outcome: Optional[SearchOutcome] = None,
    ) -> Tuple[List[MealSummary], int, int]:
        """
        Sorted page of an outcome's results.

        Args:
            page: Requested page (clamped to the valid range)
            sort_by: "name-asc", "name-desc" or None for API order
            outcome: Outcome to page through; defaults to the published one

        Returns:
            Tuple of (page_items, page, total_pages)
        """
        outcome = outcome if outcome is not None else self.outcome
        return paginate(sort_meals(outcome.results, sort_by), page)
