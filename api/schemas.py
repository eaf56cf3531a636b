"""
Pydantic schemas for FastAPI request and response models.

This module defines the response models of the Meal Finder API. They wrap the
core models from mealfinder.models with the paging and status fields the view
layer needs.

The schemas include:
- SearchResponse: Search state, message, optional correction and one page of results
- SuggestionsResponse: Live suggestions for the search box
- MealListResponse: Plain list of meals (trending, random)
- OptionsResponse: Category or area names for the dropdowns
- FavoritesResponse / FavoriteStatusResponse: Favorites id set and per-meal status
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mealfinder.models import MealSummary, SearchState


class SearchResponse(BaseModel):
    """
    Response model for the search endpoints.

    results holds only the requested page; total_results counts the full list.
    """
    state: SearchState = Field(..., description="Outcome state of the search")
    message: Optional[str] = Field(None, description="User-facing message for failed or empty searches")
    suggestion: Optional[str] = Field(None, description="Did-you-mean term, if any")
    results: List[MealSummary] = Field(default_factory=list, description="Meals on the requested page")
    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    total_pages: int = Field(1, ge=1, description="Total number of pages")
    total_results: int = Field(0, ge=0, description="Number of meals across all pages")
    sort_by: str = Field("name-asc", description="Sort applied to the results")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "state": "empty_with_suggestion",
                "message": 'No results for "chiken". Did you mean "chicken"? Click the suggestion to search.',
                "suggestion": "chicken",
                "results": [],
                "page": 1,
                "total_pages": 1,
                "total_results": 0,
                "sort_by": "name-asc",
            }
        }
    )


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: List[str] = Field(default_factory=list)


class MealListResponse(BaseModel):
    results: List[MealSummary] = Field(default_factory=list)


class OptionsResponse(BaseModel):
    options: List[str] = Field(default_factory=list)


class FavoritesResponse(BaseModel):
    ids: List[str] = Field(default_factory=list, description="Favorite meal ids, oldest first")


class FavoriteStatusResponse(BaseModel):
    meal_id: str
    is_favorite: bool
