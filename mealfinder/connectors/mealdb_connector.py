"""
TheMealDB connector using the public JSON API.

This connector interfaces with TheMealDB (https://www.themealdb.com) over plain
HTTP GET requests and normalizes its responses into MealSummary / MealDetail.

The connector:
- Issues one GET per operation against the v1 JSON endpoints (filter, list, lookup, random)
- Percent-encodes query parameters via requests
- Treats a null/absent "meals" payload as an empty result, never as an error
- Raises GatewayError on transport failures, non-success statuses and unparseable JSON
- Skips malformed records (missing idMeal / strMeal) with a warning

The base URL and timeout come from MealFinderConfig (MEALDB_BASE_URL,
MEALDB_TIMEOUT_SECONDS) unless passed explicitly.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from mealfinder.models import MealDetail, MealSummary

from .base import BaseMealSource, GatewayError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.themealdb.com/api/json/v1/1"
DEFAULT_TIMEOUT_SECONDS = 10.0


class MealDBConnector(BaseMealSource):
    """
    Connector for TheMealDB public API.

    A single requests.Session is reused for all calls so connections are pooled
    across the concurrent fetches the orchestrator issues.
    """
    source = "mealdb"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the connector.

        Args:
            base_url: API base URL (optional, defaults to the public v1 endpoint)
            timeout: Per-request timeout in seconds (optional, default: 10)
            session: requests.Session to use (optional, a new one is created if omitted)
        """
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def _get_meals(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
        """
        GET an endpoint and return the raw "meals" payload.

        Args:
            endpoint: Endpoint file name, e.g. "filter.php"
            params: Query parameters (percent-encoded by requests)

        Returns:
            List of raw meal dictionaries (empty if "meals" is null or absent)

        Raises:
            GatewayError: On transport failure, non-success status or bad JSON
        """
        url = f"{self.base_url}/{endpoint}"
        logger.debug("GET %s params=%r", url, params)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise GatewayError(
                f"TheMealDB returned HTTP {status_code} for {endpoint}",
                url=url,
                status_code=status_code,
            ) from e
        except requests.exceptions.RequestException as e:
            raise GatewayError(f"Network error calling TheMealDB {endpoint}: {e}", url=url) from e

        try:
            data = response.json()
        except ValueError as e:
            raise GatewayError(f"TheMealDB returned invalid JSON for {endpoint}", url=url) from e

        if not isinstance(data, dict):
            raise GatewayError(f"Unexpected response format from TheMealDB {endpoint}", url=url)

        meals = data.get("meals")
        if not meals:
            return []
        if not isinstance(meals, list):
            raise GatewayError(f"Unexpected 'meals' payload from TheMealDB {endpoint}", url=url)
        return [m for m in meals if isinstance(m, dict)]

    def _to_summaries(self, raw_meals: List[Dict[str, Any]]) -> List[MealSummary]:
        summaries: List[MealSummary] = []
        for raw in raw_meals:
            try:
                summaries.append(MealSummary.from_raw(raw))
            except ValueError as e:
                logger.warning("MealDB connector: skipping malformed meal record: %s", e)
        return summaries

    def filter_by_ingredient(self, ingredient: str) -> List[MealSummary]:
        return self._to_summaries(self._get_meals("filter.php", {"i": ingredient}))

    def filter_by_category(self, category: str) -> List[MealSummary]:
        return self._to_summaries(self._get_meals("filter.php", {"c": category}))

    def filter_by_area(self, area: str) -> List[MealSummary]:
        return self._to_summaries(self._get_meals("filter.php", {"a": area}))

    def list_categories(self) -> List[str]:
        raw_meals = self._get_meals("list.php", {"c": "list"})
        return [str(m["strCategory"]).strip() for m in raw_meals if m.get("strCategory")]

    def list_areas(self) -> List[str]:
        raw_meals = self._get_meals("list.php", {"a": "list"})
        return [str(m["strArea"]).strip() for m in raw_meals if m.get("strArea")]

    def lookup_by_id(self, meal_id: str) -> Optional[MealDetail]:
        """
        Look up the full recipe for a meal id.

        Returns:
            MealDetail, or None if TheMealDB has no record for this id

        Raises:
            GatewayError: On transport/status/parse failures or a malformed record
        """
        raw_meals = self._get_meals("lookup.php", {"i": meal_id})
        if not raw_meals:
            return None
        try:
            return MealDetail.from_raw(raw_meals[0])
        except ValueError as e:
            raise GatewayError(f"Malformed meal record for id {meal_id}: {e}") from e

    def random_pick(self) -> MealSummary:
        """
        Fetch one random meal.

        Raises:
            GatewayError: On request failure or when the payload holds no valid meal
        """
        summaries = self._to_summaries(self._get_meals("random.php"))
        if not summaries:
            raise GatewayError("TheMealDB random.php returned no meal")
        return summaries[0]
