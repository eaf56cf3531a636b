"""
Meal finder search core.

This package contains:
- models: MealSummary, MealDetail, FilterSet and search state schemas
- connectors: TheMealDB gateway
- utils.cache: Per-session result cache
- intersection: AND-combination and deduplication of result lists
- fuzzy: Levenshtein scoring, live suggestions and did-you-mean corrections
- search: Search orchestrator and session context
- comparison: Sorting and pagination of published results
- favorites: Favorites id set over an injected key-value store
"""
