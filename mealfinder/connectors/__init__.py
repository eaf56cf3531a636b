"""Remote meal data sources."""

from .base import BaseMealSource, GatewayError
from .mealdb_connector import MealDBConnector

__all__ = ["BaseMealSource", "GatewayError", "MealDBConnector"]
