"""
FastAPI application for the Meal Finder API.

This module exposes the meal search core to the view layer:
- GET /search: Search meals by ingredients, category and area
- POST /search/suggestion: Re-run a search with a did-you-mean term
- GET /suggestions: Live suggestions while typing
- GET /trending, POST /trending/reset, POST /random: Trending set and random picks
- GET /quick-picks: Ingredient chips for the landing view
- GET /categories, GET /areas: Dropdown options
- GET /meals/{meal_id}: Full recipe details
- GET /favorites, GET /favorites/{meal_id}, POST /favorites/{meal_id}/toggle: Favorite meals

One MealSearchService (with its session cache) is created lazily on the first
request and shared by all requests of the process. Its worker pool is shut
down when the app stops.

Run the API with:
    uvicorn api.main:app --reload

Access API documentation at:
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

# Import config early to load .env file before any other code accesses environment variables
from api.config import MealFinderConfig, get_config_summary
import logging
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, status

from api.schemas import (
    FavoriteStatusResponse,
    FavoritesResponse,
    MealListResponse,
    OptionsResponse,
    SearchResponse,
    SuggestionsResponse,
)
from mealfinder.comparison import DEFAULT_SORT, SORT_OPTIONS
from mealfinder.connectors.base import GatewayError
from mealfinder.connectors.mealdb_connector import MealDBConnector
from mealfinder.favorites import FavoritesStore, JsonFileKeyValueStore
from mealfinder.models import FilterSet, MealDetail, SearchOutcome
from mealfinder.search import QUICK_PICKS, DetailNotFoundError, MealSearchService, SearchContext

logging.basicConfig(
    level=MealFinderConfig.get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

# Track app start time for uptime calculation
_APP_START_TIME = time.time()

_service: Optional[MealSearchService] = None
_favorites: Optional[FavoritesStore] = None
_init_lock = threading.Lock()


def shutdown_service() -> None:
    """Stop the shared service's worker pool; the next request builds a new one."""
    global _service
    with _init_lock:
        if _service is not None:
            _service.close()
            logger.info("Search service closed")
        _service = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    shutdown_service()


app = FastAPI(
    title="Meal Finder API",
    description="Find TheMealDB recipes by ingredients, category and cuisine, with did-you-mean corrections",
    version="1.0.0",
    lifespan=lifespan,
    tags_metadata=[
        {"name": "search", "description": "Search meals and get live suggestions."},
        {"name": "meals", "description": "Trending meals, random picks and recipe details."},
        {"name": "favorites", "description": "Favorite meal ids."},
        {"name": "health", "description": "Health check and monitoring endpoints."},
    ],
)


def build_service() -> MealSearchService:
    """Create a search service wired to TheMealDB and load its background data."""
    gateway = MealDBConnector(
        base_url=MealFinderConfig.get_base_url(),
        timeout=MealFinderConfig.get_timeout_seconds(),
    )
    service = MealSearchService(
        SearchContext(gateway),
        suggestion_limit=MealFinderConfig.get_suggestion_limit(),
        correction_threshold=MealFinderConfig.get_correction_threshold(),
        trending_count=MealFinderConfig.get_trending_count(),
        max_workers=MealFinderConfig.get_max_workers(),
    )
    service.load_filter_options()
    service.load_trending()
    return service


def get_service() -> MealSearchService:
    global _service
    with _init_lock:
        if _service is None:
            _service = build_service()
        return _service


def get_favorites() -> FavoritesStore:
    global _favorites
    with _init_lock:
        if _favorites is None:
            _favorites = FavoritesStore(JsonFileKeyValueStore(MealFinderConfig.get_favorites_path()))
        return _favorites


def validate_sort(sort_by: str) -> str:
    """
    Validate the sort_by query parameter.

    Raises:
        HTTPException 400: If sort_by is not a known option
    """
    if sort_by not in SORT_OPTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid sort_by: '{sort_by}'. Valid options: {', '.join(SORT_OPTIONS)}",
        )
    return sort_by


def outcome_to_response(
    service: MealSearchService, outcome: SearchOutcome, page: int, sort_by: str
) -> SearchResponse:
    """Convert a search outcome into one sorted page of results."""
    page_items, page, pages = service.results_page(page, sort_by, outcome)
    return SearchResponse(
        state=outcome.state,
        message=outcome.message,
        suggestion=outcome.suggestion,
        results=page_items,
        page=page,
        total_pages=pages,
        total_results=len(outcome.results),
        sort_by=sort_by,
    )


@app.get(
    "/search",
    response_model=SearchResponse,
    tags=["search"],
    summary="Search meals by ingredients, category and area",
    description="Multiple comma-separated ingredients are AND-combined, and so are category and area. "
                "Without any filter the trending set is returned. An empty result may carry a did-you-mean suggestion.",
)
def search(
    ingredients: Optional[str] = Query(None, description="Comma-separated ingredients, e.g. 'chicken, garlic'"),
    category: Optional[str] = Query(None, description="Meal category, e.g. 'Seafood'"),
    area: Optional[str] = Query(None, description="Cuisine / area, e.g. 'Italian'"),
    sort_by: str = Query(DEFAULT_SORT, description="Sort order: 'name-asc' or 'name-desc'"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    service: MealSearchService = Depends(get_service),
) -> SearchResponse:
    """
    Search meals.

    Gateway failures do not produce an HTTP error: the response carries
    state "failed" and a retry message, like any other outcome.

    Example:
        ```bash
        GET /search?ingredients=chicken,garlic&area=Indian&sort_by=name-desc
        ```
    """
    sort_by = validate_sort(sort_by)
    outcome = service.search_inputs(ingredients, category, area)
    return outcome_to_response(service, outcome, page, sort_by)


@app.post("/search/suggestion", response_model=SearchResponse, tags=["search"])
def search_suggestion(
    term: str = Query(..., min_length=1, description="Suggested term to search instead"),
    category: Optional[str] = Query(None, description="Category of the search that produced the suggestion"),
    area: Optional[str] = Query(None, description="Area of the search that produced the suggestion"),
    sort_by: str = Query(DEFAULT_SORT),
    service: MealSearchService = Depends(get_service),
) -> SearchResponse:
    """
    Re-run a search with the did-you-mean term as ingredient query.

    The client sends back the category and area it searched with; the service
    is shared by all clients, so its last outcome is not used.

    Example:
        ```bash
        POST /search/suggestion?term=chicken&category=Chicken
        ```
    """
    sort_by = validate_sort(sort_by)
    outcome = service.apply_suggestion(term, FilterSet.from_inputs(None, category, area))
    return outcome_to_response(service, outcome, 1, sort_by)


@app.get("/suggestions", response_model=SuggestionsResponse, tags=["search"])
def suggestions(
    q: str = Query("", description="Text currently typed in the search box"),
    service: MealSearchService = Depends(get_service),
) -> SuggestionsResponse:
    return SuggestionsResponse(query=q, suggestions=service.live_suggestions(q))


@app.get("/trending", response_model=MealListResponse, tags=["meals"])
def trending(service: MealSearchService = Depends(get_service)) -> MealListResponse:
    return MealListResponse(results=service.context.trending)


@app.post("/trending/reset", response_model=SearchResponse, tags=["meals"])
def reset_trending(
    sort_by: str = Query(DEFAULT_SORT),
    service: MealSearchService = Depends(get_service),
) -> SearchResponse:
    """Clear all filters and show the trending set."""
    sort_by = validate_sort(sort_by)
    return outcome_to_response(service, service.reset_to_trending(), 1, sort_by)


@app.post("/random", response_model=SearchResponse, tags=["meals"])
def random_meal(service: MealSearchService = Depends(get_service)) -> SearchResponse:
    """Surprise me: publish one random meal as the result list."""
    return outcome_to_response(service, service.surprise_me(), 1, DEFAULT_SORT)


@app.get("/quick-picks", response_model=OptionsResponse, tags=["search"])
def quick_picks() -> OptionsResponse:
    """Ingredient chips offered before anything was searched."""
    return OptionsResponse(options=list(QUICK_PICKS))


@app.get("/categories", response_model=OptionsResponse, tags=["meals"])
def categories(service: MealSearchService = Depends(get_service)) -> OptionsResponse:
    return OptionsResponse(options=service.context.categories)


@app.get("/areas", response_model=OptionsResponse, tags=["meals"])
def areas(service: MealSearchService = Depends(get_service)) -> OptionsResponse:
    return OptionsResponse(options=service.context.areas)


@app.get("/meals/{meal_id}", response_model=MealDetail, tags=["meals"])
def meal_detail(meal_id: str, service: MealSearchService = Depends(get_service)) -> MealDetail:
    """
    Get the full recipe for a meal.

    Raises:
        HTTPException 404: If TheMealDB has no such meal
        HTTPException 502: If TheMealDB could not be reached
    """
    try:
        return service.open_detail(meal_id)
    except DetailNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except GatewayError as e:
        logger.warning("Recipe lookup failed for %s: %s", meal_id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not load recipe details. Please try again.",
        ) from e


@app.get("/favorites", response_model=FavoritesResponse, tags=["favorites"])
def list_favorites(favorites: FavoritesStore = Depends(get_favorites)) -> FavoritesResponse:
    return FavoritesResponse(ids=favorites.ids())


@app.get("/favorites/{meal_id}", response_model=FavoriteStatusResponse, tags=["favorites"])
def favorite_status(meal_id: str, favorites: FavoritesStore = Depends(get_favorites)) -> FavoriteStatusResponse:
    return FavoriteStatusResponse(meal_id=meal_id, is_favorite=favorites.is_favorite(meal_id))


@app.post("/favorites/{meal_id}/toggle", response_model=FavoriteStatusResponse, tags=["favorites"])
def toggle_favorite(meal_id: str, favorites: FavoritesStore = Depends(get_favorites)) -> FavoriteStatusResponse:
    return FavoriteStatusResponse(meal_id=meal_id, is_favorite=favorites.toggle(meal_id))


@app.get("/health", tags=["health"])
def health():
    """
    Health check endpoint for monitoring and status checks.

    Always returns 200 OK if the endpoint is reachable. Does not call TheMealDB.
    """
    return {
        "status": "ok",
        "name": "Meal Finder API",
        "version": "1.0.0",
        "uptime_seconds": int(time.time() - _APP_START_TIME),
        "config": get_config_summary(),
    }


@app.get("/")
def root():
    """API name, version and docs location."""
    return {
        "name": "Meal Finder API",
        "version": "1.0.0",
        "description": "Find TheMealDB recipes by ingredients, category and cuisine",
        "docs": "/docs",
    }
