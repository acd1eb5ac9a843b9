from . import (
    coffee_diary,
    diary_analytics,
    preference_learning,
    recommendation_cache,
    recommendation_engine,
    recommendation_telemetry,
    smart_diary,
    travel_mode,
)

__all__ = [
    "coffee_diary",
    "diary_analytics",
    "preference_learning",
    "recommendation_cache",
    "recommendation_engine",
    "recommendation_telemetry",
    "smart_diary",
    "travel_mode",
]
"""Personalization engines and diary services."""
