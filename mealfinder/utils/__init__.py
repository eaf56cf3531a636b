"""Shared helpers for the meal finder core."""
