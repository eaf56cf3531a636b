"""
Tests for the search orchestrator.

All gateway calls go to a Mock; each test gets a fresh SearchContext.
Covers:
- AND-combination across ingredients, category and area
- Trending fallback for an empty FilterSet
- Did-you-mean corrections and the empty states
- Cache reuse across searches
- Stale settlements, detail lookups, random picks, reset and paging
"""

from unittest.mock import Mock

import pytest

from mealfinder.connectors.base import GatewayError
from mealfinder.models import FilterSet, MealDetail, MealSummary, SearchOutcome, SearchState
from mealfinder.search import (
    FAILED_MESSAGE,
    NO_RESULTS_MESSAGE,
    RANDOM_FAILED_MESSAGE,
    DetailNotFoundError,
    MealSearchService,
)

from tests.conftest import make_meals


def ingredient_lists(mapping):
    """side_effect for filter_by_ingredient returning lists per term."""
    return lambda term: mapping.get(term, [])


class TestSearchCombination:
    """AND-combination of filter lists."""

    def test_two_ingredients_are_intersected(self, service, gateway):
        gateway.filter_by_ingredient.side_effect = ingredient_lists({
            "chicken": make_meals(["1", "2", "3"]),
            "garlic": make_meals(["2", "3", "4"]),
        })

        outcome = service.search_inputs("chicken, garlic")

        assert outcome.state == SearchState.SUCCEEDED
        assert [m.id for m in outcome.results] == ["2", "3"]
        assert outcome.page == 1
        assert service.outcome is outcome

    def test_ingredients_category_and_area(self, service, gateway):
        gateway.filter_by_ingredient.side_effect = ingredient_lists({
            "chicken": make_meals(["1", "2", "3", "5"]),
            "garlic": make_meals(["2", "3", "5"]),
        })
        gateway.filter_by_category.return_value = make_meals(["3", "5", "9"])
        gateway.filter_by_area.return_value = make_meals(["5", "3"])

        outcome = service.search_inputs("chicken,garlic", category="Chicken", area="Indian")

        assert [m.id for m in outcome.results] == ["3", "5"]
        gateway.filter_by_category.assert_called_once_with("Chicken")
        gateway.filter_by_area.assert_called_once_with("Indian")

    def test_single_list_used_directly(self, service, gateway):
        gateway.filter_by_category.return_value = make_meals(["7", "8"])
        outcome = service.search(FilterSet(category="Dessert"))
        assert [m.id for m in outcome.results] == ["7", "8"]
        gateway.filter_by_ingredient.assert_not_called()

    def test_results_are_deduplicated(self, service, gateway):
        gateway.filter_by_area.return_value = make_meals(["1", "2", "1"])
        outcome = service.search(FilterSet(area="Thai"))
        assert [m.id for m in outcome.results] == ["1", "2"]

    def test_ingredient_terms_sent_lower_cased(self, service, gateway):
        gateway.filter_by_ingredient.return_value = make_meals(["1"])
        service.search_inputs(" Chicken Breast ")
        gateway.filter_by_ingredient.assert_called_once_with("chicken breast")


class TestTrendingFallback:
    """Empty FilterSet and trending loading."""

    def test_no_filters_returns_trending(self, service, context, gateway):
        context.trending = make_meals(["10", "11"])

        outcome = service.search(FilterSet())

        assert outcome.state == SearchState.SUCCEEDED
        assert outcome.results == context.trending
        gateway.filter_by_ingredient.assert_not_called()
        gateway.filter_by_category.assert_not_called()
        gateway.filter_by_area.assert_not_called()

    def test_load_trending_merges_by_id(self, service, context, gateway):
        gateway.random_pick.side_effect = make_meals(["1", "2", "1", "3"])

        trending = service.load_trending(count=4)

        # picks settle on worker threads, so only the merged id set is deterministic
        assert sorted(m.id for m in trending) == ["1", "2", "3"]
        assert context.trending == trending
        assert gateway.random_pick.call_count == 4

    def test_load_trending_failure_degrades_to_empty(self, service, context, gateway):
        context.trending = make_meals(["old"])
        gateway.random_pick.side_effect = [MealSummary(id="1", name="One"), GatewayError("down")]

        assert service.load_trending(count=2) == []
        assert context.trending == []

    def test_load_filter_options(self, service, context, gateway):
        gateway.list_categories.return_value = ["Beef", "Seafood"]
        gateway.list_areas.side_effect = GatewayError("down")

        categories, areas = service.load_filter_options()

        assert categories == ["Beef", "Seafood"]
        assert areas == []
        assert context.categories == ["Beef", "Seafood"]


class TestEmptyResults:
    """Did-you-mean flow for searches without results."""

    def test_typo_gets_suggestion(self, service, context, gateway):
        context.trending = [MealSummary(id="1", name="chicken curry")]
        context.categories = ["chicken"]
        context.areas = ["rice"]

        outcome = service.search_inputs("chiken")

        assert outcome.state == SearchState.EMPTY_WITH_SUGGESTION
        assert outcome.suggestion == "chicken"
        assert outcome.results == []
        assert '"chiken"' in outcome.message and '"chicken"' in outcome.message

    def test_no_close_candidate(self, service, gateway):
        outcome = service.search_inputs("qqqqqqqq")
        assert outcome.state == SearchState.EMPTY_NO_SUGGESTION
        assert outcome.message == NO_RESULTS_MESSAGE
        assert outcome.suggestion is None

    def test_correction_uses_only_ingredient_text(self, service, context, gateway):
        context.areas = ["Italian"]
        gateway.filter_by_area.return_value = []

        outcome = service.search_inputs("", area="Italain")

        assert outcome.state == SearchState.EMPTY_NO_SUGGESTION
        assert outcome.suggestion is None

    def test_failed_term_does_not_hide_correction(self, service, context, gateway):
        context.categories = ["chicken"]
        service.search_inputs("chiken")
        # "chiken" is now cached with no meals; it must not be offered back
        outcome = service.search_inputs("chiken")
        assert outcome.suggestion == "chicken"
        assert "chiken" not in context.candidate_pool()

    def test_custom_threshold(self, context, gateway):
        context.categories = ["chicken"]
        strict = MealSearchService(context, correction_threshold=0.1)
        try:
            assert strict.search_inputs("chiken").state == SearchState.EMPTY_NO_SUGGESTION
        finally:
            strict.close()

    def test_apply_suggestion_keeps_category_and_area(self, service, context, gateway):
        context.categories = ["chicken"]
        gateway.filter_by_category.return_value = make_meals(["1", "2"])
        gateway.filter_by_ingredient.side_effect = ingredient_lists({"chicken": make_meals(["2"])})

        first = service.search_inputs("chiken", category="Chicken")
        assert first.state == SearchState.EMPTY_WITH_SUGGESTION

        second = service.apply_suggestion(first.suggestion)

        assert second.state == SearchState.SUCCEEDED
        assert [m.id for m in second.results] == ["2"]
        assert second.filters.category == "Chicken"
        assert second.filters.ingredients == ["chicken"]

    def test_apply_suggestion_with_explicit_filters(self, service, context, gateway):
        context.categories = ["chicken"]
        gateway.filter_by_category.return_value = make_meals(["1", "2"])
        gateway.filter_by_ingredient.side_effect = ingredient_lists({"chicken": make_meals(["2"])})

        first = service.search_inputs("chiken", category="Chicken")
        service.search(FilterSet(area="Thai"))

        second = service.apply_suggestion(first.suggestion, first.filters)

        assert [m.id for m in second.results] == ["2"]
        assert second.filters.category == "Chicken"
        assert second.filters.area is None


class TestCaching:
    """Cache reuse across searches."""

    def test_repeated_ingredient_search_hits_network_once(self, service, gateway):
        gateway.filter_by_ingredient.return_value = make_meals(["1"])

        service.search_inputs("chicken")
        service.search_inputs("Chicken")

        assert gateway.filter_by_ingredient.call_count == 1

    def test_searched_ingredients_feed_suggestions(self, service, gateway):
        gateway.filter_by_ingredient.return_value = make_meals(["1"])
        service.search_inputs("saffron")
        assert "saffron" in service.live_suggestions("safron")

    def test_failed_fetch_retried_next_time(self, service, gateway):
        gateway.filter_by_ingredient.side_effect = [GatewayError("down"), make_meals(["1"])]

        assert service.search_inputs("egg").state == SearchState.FAILED
        assert service.search_inputs("egg").state == SearchState.SUCCEEDED


class TestSupersededSearches:
    """Only the newest invocation is published."""

    def test_stale_settlement_is_not_published(self, service):
        first_id = service._start_invocation(FilterSet())
        second_id = service._start_invocation(FilterSet())
        newer = SearchOutcome(state=SearchState.SUCCEEDED, results=make_meals(["new"]), invocation_id=second_id)
        stale = SearchOutcome(state=SearchState.SUCCEEDED, results=make_meals(["old"]), invocation_id=first_id)

        service._publish(newer)
        returned = service._publish(stale)

        assert returned is stale
        assert service.outcome is newer

    def test_searching_state_while_in_flight(self, service, gateway):
        observed = []

        def fetch(term):
            observed.append(service.outcome.state)
            return make_meals(["1"])

        gateway.filter_by_ingredient.side_effect = fetch
        service.search_inputs("rice")

        assert observed == [SearchState.SEARCHING]
        assert service.outcome.state == SearchState.SUCCEEDED


class TestOtherActions:
    """Detail lookup, random pick, reset and paging."""

    def test_open_detail_uses_cache(self, service, gateway):
        detail = MealDetail(id="52772", name="Teriyaki Chicken Casserole")
        gateway.lookup_by_id.return_value = detail

        assert service.open_detail("52772") is detail
        assert service.open_detail("52772") is detail
        gateway.lookup_by_id.assert_called_once_with("52772")

    def test_open_detail_not_found(self, service, context, gateway):
        gateway.lookup_by_id.return_value = None
        with pytest.raises(DetailNotFoundError):
            service.open_detail("0")
        assert not context.cache.contains("lookup", "0")

    def test_open_detail_gateway_error_propagates(self, service, gateway):
        gateway.lookup_by_id.side_effect = GatewayError("down")
        with pytest.raises(GatewayError):
            service.open_detail("1")

    def test_open_detail_does_not_touch_results(self, service, context, gateway):
        context.trending = make_meals(["1"])
        service.search(FilterSet())
        gateway.lookup_by_id.return_value = None
        with pytest.raises(DetailNotFoundError):
            service.open_detail("1")
        assert [m.id for m in service.outcome.results] == ["1"]

    def test_surprise_me(self, service, gateway):
        gateway.random_pick.return_value = MealSummary(id="42", name="Mystery Stew")
        outcome = service.surprise_me()
        assert outcome.state == SearchState.SUCCEEDED
        assert [m.id for m in outcome.results] == ["42"]

    def test_surprise_me_failure(self, service, gateway):
        gateway.random_pick.side_effect = GatewayError("down")
        outcome = service.surprise_me()
        assert outcome.state == SearchState.FAILED
        assert outcome.message == RANDOM_FAILED_MESSAGE

    def test_reset_to_trending(self, service, context, gateway):
        context.trending = make_meals(["1", "2"])
        gateway.filter_by_ingredient.return_value = make_meals(["9"])
        service.search_inputs("beef")

        outcome = service.reset_to_trending()

        assert outcome.state == SearchState.IDLE
        assert [m.id for m in outcome.results] == ["1", "2"]
        assert outcome.filters.is_empty()
        assert service.outcome is outcome

    def test_results_page_sorts_and_slices(self, service, gateway):
        meals = [MealSummary(id=str(i), name=f"Dish {i:02d}") for i in range(15)]
        gateway.filter_by_area.return_value = meals
        service.search(FilterSet(area="British"))

        items, page, pages = service.results_page(2, "name-desc")

        assert pages == 2
        assert page == 2
        assert [m.name for m in items] == ["Dish 02", "Dish 01", "Dish 00"]

    def test_results_page_of_given_outcome(self, service, gateway):
        gateway.filter_by_area.return_value = make_meals(["b", "a"])
        mine = service.search(FilterSet(area="Greek"))
        gateway.filter_by_category.return_value = make_meals(["z"])
        service.search(FilterSet(category="Dessert"))

        items, page, pages = service.results_page(1, "name-asc", mine)

        assert [m.id for m in items] == ["a", "b"]
        assert (page, pages) == (1, 1)

    def test_failed_message(self, service, gateway):
        gateway.filter_by_category.side_effect = GatewayError("down")
        outcome = service.search(FilterSet(category="Beef"))
        assert outcome.message == FAILED_MESSAGE
