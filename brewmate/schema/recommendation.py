"""Recipe candidate, prediction and recommendation cache schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from brewmate.schema.base import BrewModel, utc_timestamp
from brewmate.schema.brew import Location, MoodCategory, TimeOfDay, WeatherContext
from brewmate.schema.taste_profile import TasteProfileVector


class RecipeProfile(BrewModel):
    """Read-only taste description of a candidate recipe."""
    recipe_id: str
    taste_vector: TasteProfileVector
    flavor_notes: dict[str, float] = Field(default_factory=dict)
    brew_method: str | None = None
    tags: list[str] = Field(default_factory=list)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


class CommunityFlavorStat(BrewModel):
    """Aggregate community opinion about one flavor note."""
    average: float
    variance: float = 0.0
    sample_size: int = Field(default=0, ge=0)


class PredictionContext(BrewModel):
    """Situational inputs for a prediction; enrichment fills the gaps."""
    time_of_day: TimeOfDay | None = None
    weekday: int | None = Field(default=None, ge=1, le=7)
    weather: WeatherContext | None = None
    anticipated_mood: MoodCategory | None = None
    location: Location | None = None

    def cache_fields(self) -> dict[str, Any]:
        """Fields that identify a context for recommendation caching."""
        return {
            "time_of_day": self.time_of_day.value if self.time_of_day else None,
            "temperature_c": self.weather.temperature_c if self.weather else None,
            "humidity": self.weather.humidity if self.weather else None,
            "anticipated_mood": self.anticipated_mood.value if self.anticipated_mood else None,
            "weekday": self.weekday,
        }


class PredictionResult(BrewModel):
    """Explainable rating prediction for one recipe."""
    recipe_id: str
    predicted_rating: float
    confidence: float
    contributing_recipes: list[str] = Field(default_factory=list)
    context_bonuses: list[str] = Field(default_factory=list)


class RecommendationExplanation(BrewModel):
    reason: str
    confidence: float
    evidence: list[str] = Field(default_factory=list)


class RecommendationResult(BrewModel):
    """Ranked predictions plus the enriched context that produced them."""
    predictions: list[PredictionResult] = Field(default_factory=list)
    context: PredictionContext
    explanation: RecommendationExplanation | None = None
    simplified: bool = False
    cached: bool = False


class CachedRecommendation(BrewModel):
    """Cache record keyed by the context hash and stamped for TTL checks."""
    context_hash: str
    predictions: list[PredictionResult]
    candidate_limit: int = 0
    explanation: RecommendationExplanation | None = None
    simplified: bool = False
    created_at: datetime = Field(default_factory=utc_timestamp)

    def covers(self, limit: int) -> bool:
        """True when the stored ranking can answer a request for ``limit`` results.

        A ranking shorter than its candidate limit means the catalog ran out,
        so any larger request would see the same recipes.
        """
        return len(self.predictions) >= limit or len(self.predictions) < self.candidate_limit
