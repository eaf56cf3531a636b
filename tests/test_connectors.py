"""
Tests for the TheMealDB connector using a mocked requests session.

These tests mock requests.Session to avoid making real API calls during testing.
The tests verify that:
- Each operation hits the right endpoint with the right query parameters
- Responses are normalized into MealSummary / MealDetail
- A null "meals" payload is an empty result, not an error
- Transport, status and parse failures raise GatewayError
"""

from unittest.mock import Mock

import pytest
import requests

from mealfinder.connectors.base import GatewayError
from mealfinder.connectors.mealdb_connector import DEFAULT_BASE_URL, MealDBConnector
from mealfinder.models import MealDetail


def make_response(payload=None, status_code=200, json_error=None):
    """Build a mock requests.Response."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    if status_code >= 400:
        error = requests.exceptions.HTTPError(f"{status_code} Error")
        error.response = response
        response.raise_for_status.side_effect = error
    else:
        response.raise_for_status.return_value = None
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


def make_connector(response):
    session = Mock(spec=requests.Session)
    session.get.return_value = response
    return MealDBConnector(session=session, timeout=5), session


FILTER_PAYLOAD = {
    "meals": [
        {"strMeal": "Brown Stew Chicken", "strMealThumb": "https://example.com/1.jpg", "idMeal": "52940"},
        {"strMeal": "Chicken Handi", "strMealThumb": "https://example.com/2.jpg", "idMeal": "52795"},
    ]
}

LOOKUP_PAYLOAD = {
    "meals": [
        {
            "idMeal": "52772",
            "strMeal": "Teriyaki Chicken Casserole",
            "strCategory": "Chicken",
            "strArea": "Japanese",
            "strInstructions": "Preheat oven to 350F.",
            "strMealThumb": "https://example.com/teriyaki.jpg",
            "strYoutube": "https://www.youtube.com/watch?v=4aZr5hZXP_s",
            "strSource": "",
            "strIngredient1": "soy sauce",
            "strMeasure1": "3/4 cup",
            "strIngredient2": "water",
            "strMeasure2": "1/2 cup",
            "strIngredient3": "",
            "strMeasure3": "",
            "strIngredient4": "brown sugar",
            "strMeasure4": " ",
            "strIngredient5": None,
            "strMeasure5": None,
        }
    ]
}


class TestMealDBConnector:
    """Tests for MealDBConnector."""

    def test_defaults(self):
        connector = MealDBConnector()
        assert connector.base_url == DEFAULT_BASE_URL
        assert connector.timeout == 10.0
        assert connector.source == "mealdb"

    def test_base_url_trailing_slash_removed(self):
        connector = MealDBConnector(base_url="http://localhost:9000/api/")
        assert connector.base_url == "http://localhost:9000/api"

    def test_filter_by_ingredient_normalizes_results(self):
        connector, session = make_connector(make_response(FILTER_PAYLOAD))

        results = connector.filter_by_ingredient("chicken breast")

        session.get.assert_called_once_with(
            f"{DEFAULT_BASE_URL}/filter.php", params={"i": "chicken breast"}, timeout=5
        )
        assert [m.id for m in results] == ["52940", "52795"]
        assert results[0].name == "Brown Stew Chicken"
        assert results[0].thumbnail_url == "https://example.com/1.jpg"

    @pytest.mark.parametrize("method, param", [
        ("filter_by_category", "c"),
        ("filter_by_area", "a"),
    ])
    def test_filter_endpoints(self, method, param):
        connector, session = make_connector(make_response(FILTER_PAYLOAD))
        results = getattr(connector, method)("Value")
        assert session.get.call_args.kwargs["params"] == {param: "Value"}
        assert len(results) == 2

    @pytest.mark.parametrize("payload", [{"meals": None}, {}, {"meals": []}])
    def test_null_meals_is_empty(self, payload):
        connector, _ = make_connector(make_response(payload))
        assert connector.filter_by_ingredient("xyz") == []

    def test_malformed_records_skipped(self):
        payload = {"meals": [{"strMeal": "No id"}, {"idMeal": "1", "strMeal": "Ok"}, "garbage"]}
        connector, _ = make_connector(make_response(payload))
        assert [m.id for m in connector.filter_by_area("Canadian")] == ["1"]

    def test_list_categories_and_areas(self):
        connector, session = make_connector(make_response({"meals": [{"strCategory": "Beef"}, {"strCategory": "Dessert"}]}))
        assert connector.list_categories() == ["Beef", "Dessert"]
        assert session.get.call_args.kwargs["params"] == {"c": "list"}

        connector, session = make_connector(make_response({"meals": [{"strArea": "Italian"}, {"strArea": ""}]}))
        assert connector.list_areas() == ["Italian"]
        assert session.get.call_args.kwargs["params"] == {"a": "list"}

    def test_lookup_by_id_builds_detail(self):
        connector, session = make_connector(make_response(LOOKUP_PAYLOAD))

        detail = connector.lookup_by_id("52772")

        assert session.get.call_args.kwargs["params"] == {"i": "52772"}
        assert isinstance(detail, MealDetail)
        assert detail.category == "Chicken"
        assert detail.area == "Japanese"
        assert detail.source_url is None
        assert detail.video_url == "https://www.youtube.com/watch?v=4aZr5hZXP_s"
        assert [(i.name, i.measure) for i in detail.ingredients] == [
            ("soy sauce", "3/4 cup"),
            ("water", "1/2 cup"),
            ("brown sugar", None),
        ]

    def test_lookup_missing_returns_none(self):
        connector, _ = make_connector(make_response({"meals": None}))
        assert connector.lookup_by_id("0") is None

    def test_random_pick(self):
        connector, session = make_connector(make_response(LOOKUP_PAYLOAD))
        meal = connector.random_pick()
        assert session.get.call_args.args[0] == f"{DEFAULT_BASE_URL}/random.php"
        assert meal.id == "52772"

    def test_random_pick_empty_raises(self):
        connector, _ = make_connector(make_response({"meals": None}))
        with pytest.raises(GatewayError, match="no meal"):
            connector.random_pick()


class TestMealDBConnectorErrors:
    """Failure handling of MealDBConnector."""

    def test_http_error_raises_gateway_error(self):
        connector, _ = make_connector(make_response(status_code=503))
        with pytest.raises(GatewayError) as exc_info:
            connector.filter_by_ingredient("chicken")
        assert exc_info.value.status_code == 503
        assert exc_info.value.url.endswith("/filter.php")

    def test_connection_error_raises_gateway_error(self):
        session = Mock(spec=requests.Session)
        session.get.side_effect = requests.exceptions.ConnectionError("DNS failure")
        connector = MealDBConnector(session=session)
        with pytest.raises(GatewayError, match="Network error"):
            connector.list_areas()

    def test_timeout_raises_gateway_error(self):
        session = Mock(spec=requests.Session)
        session.get.side_effect = requests.exceptions.Timeout("slow")
        connector = MealDBConnector(session=session)
        with pytest.raises(GatewayError):
            connector.random_pick()

    def test_invalid_json_raises_gateway_error(self):
        connector, _ = make_connector(make_response(json_error=ValueError("Expecting value")))
        with pytest.raises(GatewayError, match="invalid JSON"):
            connector.filter_by_category("Beef")

    def test_non_object_envelope_raises_gateway_error(self):
        connector, _ = make_connector(make_response(["not", "an", "object"]))
        with pytest.raises(GatewayError, match="Unexpected response format"):
            connector.filter_by_category("Beef")
