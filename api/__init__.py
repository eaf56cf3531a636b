"""FastAPI application exposing the meal search core."""
