"""
Meal and search models for the meal finder core.

This module defines the canonical schemas used throughout the search pipeline.
The connector maps raw TheMealDB records into these models at the boundary, so
nothing downstream ever touches the loosely-typed API payloads.

Models:
- MealSummary: Lightweight record returned by filter, list and random calls
- IngredientLine: One ingredient/measure pair from a full recipe
- MealDetail: Full recipe record returned by lookup-by-id
- FilterSet: The active query (ingredient terms, category, area)
- SearchState: States of a single search invocation
- SearchOutcome: What the orchestrator publishes to the view layer

# NOTE: Raw TheMealDB field names (idMeal, strMeal, strMealThumb, ...) only appear
    in MealSummary.from_raw() and MealDetail.from_raw(). Everything else uses the
    normalized snake_case names.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

# TheMealDB exposes exactly 20 numbered ingredient/measure slots per recipe
INGREDIENT_SLOTS = 20


def _clean(value: Any) -> Optional[str]:
    """Return a stripped string, or None for missing/blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class MealSummary(BaseModel):
    """
    Meal summary as returned by filter, list and random endpoints.

    Identity is the id. Instances are frozen so they can be shared between the
    cache, intersections and the published result list without copies.
    """
    id: str = Field(..., min_length=1, description="Opaque stable meal id from TheMealDB (idMeal)")
    name: str = Field(..., min_length=1, description="Meal name (strMeal)")
    thumbnail_url: Optional[str] = Field(None, description="Thumbnail image URL (strMealThumb)")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "MealSummary":
        """
        Build a MealSummary from a raw TheMealDB record.

        Raises:
            ValueError: If idMeal or strMeal is missing or blank
        """
        meal_id = _clean(raw.get("idMeal"))
        name = _clean(raw.get("strMeal"))
        if not meal_id or not name:
            raise ValueError(f"Meal record is missing idMeal or strMeal: {str(raw)[:100]}")
        return cls(id=meal_id, name=name, thumbnail_url=_clean(raw.get("strMealThumb")))


class IngredientLine(BaseModel):
    """One ingredient of a recipe with its optional measure."""
    name: str = Field(..., min_length=1)
    measure: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def label(self) -> str:
        """Display label, e.g. 'Chicken – 1 whole' or just 'Salt'."""
        if self.measure:
            return f"{self.name} – {self.measure}"
        return self.name


class MealDetail(MealSummary):
    """
    Full recipe record returned by lookup-by-id.

    The ingredient list is derived once from the numbered strIngredientN /
    strMeasureN slots, skipping blank names and keeping slot order.
    """
    category: Optional[str] = Field(None, description="Meal category (strCategory)")
    area: Optional[str] = Field(None, description="Cuisine / area (strArea)")
    instructions: Optional[str] = Field(None, description="Cooking instructions (strInstructions)")
    source_url: Optional[str] = Field(None, description="Original recipe URL (strSource)")
    video_url: Optional[str] = Field(None, description="YouTube video URL (strYoutube)")
    ingredients: Tuple[IngredientLine, ...] = Field(default_factory=tuple)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "MealDetail":
        summary = MealSummary.from_raw(raw)
        return cls(
            id=summary.id,
            name=summary.name,
            thumbnail_url=summary.thumbnail_url,
            category=_clean(raw.get("strCategory")),
            area=_clean(raw.get("strArea")),
            instructions=_clean(raw.get("strInstructions")),
            source_url=_clean(raw.get("strSource")),
            video_url=_clean(raw.get("strYoutube")),
            ingredients=extract_ingredients(raw),
        )


def extract_ingredients(raw: Dict[str, Any]) -> Tuple[IngredientLine, ...]:
    """
    Collect the ingredient lines of a raw recipe record.

    Args:
        raw: Raw TheMealDB record with strIngredient1..20 / strMeasure1..20 keys

    Returns:
        Tuple of IngredientLine in slot order, blank names skipped
    """
    lines: List[IngredientLine] = []
    for slot in range(1, INGREDIENT_SLOTS + 1):
        name = _clean(raw.get(f"strIngredient{slot}"))
        if not name:
            continue
        lines.append(IngredientLine(name=name, measure=_clean(raw.get(f"strMeasure{slot}"))))
    return tuple(lines)


class FilterSet(BaseModel):
    """
    The active query.

    An empty FilterSet (no ingredients, no category, no area) means "show the
    trending fallback", not "match everything".
    """
    ingredients: List[str] = Field(default_factory=list, description="Lower-cased, trimmed ingredient terms")
    category: Optional[str] = None
    area: Optional[str] = None
    raw_query: str = Field("", description="Unsplit ingredient input, used for did-you-mean corrections")

    @classmethod
    def from_inputs(
        cls,
        ingredient_text: Optional[str] = None,
        category: Optional[str] = None,
        area: Optional[str] = None,
    ) -> "FilterSet":
        """
        Build a FilterSet from raw UI inputs.

        The ingredient text is comma-split, each term trimmed and lower-cased,
        and empty terms dropped. Blank category/area become None.

        Examples:
            >>> FilterSet.from_inputs(" Chicken, ,garlic ").ingredients
            ['chicken', 'garlic']
        """
        text = ingredient_text or ""
        terms = [t.strip().lower() for t in text.split(",")]
        return cls(
            ingredients=[t for t in terms if t],
            category=_clean(category),
            area=_clean(area),
            raw_query=text.strip(),
        )

    def is_empty(self) -> bool:
        return not self.ingredients and not self.category and not self.area


class SearchState(str, Enum):
    """States of one search invocation."""
    IDLE = "idle"
    SEARCHING = "searching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EMPTY_WITH_SUGGESTION = "empty_with_suggestion"
    EMPTY_NO_SUGGESTION = "empty_no_suggestion"


class SearchOutcome(BaseModel):
    """
    Result of a search invocation as published to the view layer.

    results is the full deduplicated list; pagination and sorting are applied
    on top of it by mealfinder.comparison.
    """
    state: SearchState = SearchState.IDLE
    filters: FilterSet = Field(default_factory=FilterSet)
    results: List[MealSummary] = Field(default_factory=list)
    message: Optional[str] = None
    suggestion: Optional[str] = None
    page: int = Field(1, ge=1)
    invocation_id: int = Field(0, ge=0)
