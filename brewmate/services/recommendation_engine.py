"""Context-aware ranking of candidate recipes.

Implementation notes:
- Context enrichment fills time, weekday, weather and anticipated mood
  before the cache lookup so identical situations share a cache slot.
- The cache keeps the whole scored ranking; a request for more results
  than it holds is a miss unless the catalog was already exhausted.
- Telemetry calls are fire-and-forget; their failures are logged and their
  results ignored.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from brewmate.adapters.base import CandidateFetcher, WeatherProvider, WeatherUnavailableError
from brewmate.core.config import settings
from brewmate.schema.brew import Location, MoodCategory, TimeOfDay, WeatherContext
from brewmate.schema.recommendation import (
    PredictionContext,
    PredictionResult,
    RecipeProfile,
    RecommendationExplanation,
    RecommendationResult,
)
from brewmate.schema.taste_profile import TasteProfileVector
from brewmate.services.preference_learning import PreferenceLearningEngine
from brewmate.services.recommendation_cache import RecommendationCache
from brewmate.services.recommendation_telemetry import RecommendationTelemetry
from brewmate.services.travel_mode import TravelModeManager
from brewmate.utils.datetime import iso_weekday, local_now, resolve_time_of_day

logger = logging.getLogger("brewmate.services.recommendation_engine")

EVIDENCE_THRESHOLD = 0.2
TRAVEL_PENALTY = -0.15


@dataclass(slots=True)
class EnrichedContext:
    context: PredictionContext
    simplify: bool = False


@dataclass(slots=True)
class ScoreBreakdown:
    """Per-candidate contributions kept for the evidence trail."""
    base: float
    weather: float = 0.0
    time: float = 0.0
    mood: float = 0.0
    travel: float = 0.0

    @property
    def predicted_rating(self) -> float:
        return min(5.0, self.base * 5 + self.weather + self.time + self.mood + self.travel)

    @property
    def confidence(self) -> float:
        return self.base * 0.6 + self.weather * 0.1 + 0.3

    def evidence(self) -> list[str]:
        messages: list[str] = []
        if self.weather > EVIDENCE_THRESHOLD:
            messages.append(f"Fits the current weather (+{self.weather:.2f})")
        if self.time > EVIDENCE_THRESHOLD:
            messages.append(f"Suits this time of day (+{self.time:.2f})")
        if self.mood > EVIDENCE_THRESHOLD:
            messages.append(f"Matches your anticipated mood (+{self.mood:.2f})")
        if self.travel < 0:
            messages.append(f"Simplified for travel mode ({self.travel:.2f})")
        return messages


def weather_adjustment(recipe: RecipeProfile, weather: WeatherContext | None) -> float:
    if weather is None:
        return 0.0
    temperature = weather.temperature_c
    if temperature is not None and temperature > 24 and recipe.has_tag("iced"):
        return 0.35
    if temperature is not None and temperature < 5 and recipe.has_tag("rich"):
        return 0.25
    if weather.humidity is not None and weather.humidity > 80 and recipe.brew_method == "cold_brew":
        return 0.2
    return 0.0


def time_of_day_adjustment(recipe: RecipeProfile, time_of_day: TimeOfDay | None) -> float:
    if time_of_day == TimeOfDay.MORNING and recipe.has_tag("morning_boost"):
        return 0.3
    if time_of_day == TimeOfDay.EVENING and recipe.has_tag("low_caffeine"):
        return 0.35
    return 0.0


def mood_adjustment(recipe: RecipeProfile, mood: MoodCategory | None) -> float:
    if mood == MoodCategory.STRESSED and recipe.has_tag("comfort"):
        return 0.25
    if mood == MoodCategory.TIRED and recipe.has_tag("energy"):
        return 0.2
    return 0.0


class RecommendationEngine:
    """Turns a user and a situation into ranked, explainable predictions."""

    def __init__(
        self,
        learning_engine: PreferenceLearningEngine,
        candidate_fetcher: CandidateFetcher,
        *,
        telemetry: RecommendationTelemetry,
        travel_mode_manager: TravelModeManager,
        cache: RecommendationCache,
        weather_provider: WeatherProvider | None = None,
        default_location: Location | None = None,
        candidate_multiplier: int | None = None,
        now_provider: Callable[[], datetime] = local_now,
    ) -> None:
        self.learning_engine = learning_engine
        self.candidate_fetcher = candidate_fetcher
        self.telemetry = telemetry
        self.travel_mode_manager = travel_mode_manager
        self.cache = cache
        self.weather_provider = weather_provider
        self.default_location = default_location
        self.candidate_multiplier = candidate_multiplier or settings.candidate_multiplier
        self._now = now_provider
        self._pending: set[asyncio.Future] = set()

    async def get_top_predictions(
        self,
        user_id: str,
        context: PredictionContext | None = None,
        *,
        limit: int | None = None,
    ) -> RecommendationResult:
        """Return up to ``limit`` predictions sorted by predicted rating."""
        limit = limit or settings.recommendation_default_limit
        enriched = await self.enrich_context(context or PredictionContext())

        cached = await self.cache.get(user_id, enriched.context)
        if cached is not None and cached.covers(limit):
            self._notify(self.telemetry.record_cache_hit, user_id, enriched.context)
            return RecommendationResult(
                predictions=cached.predictions[:limit],
                context=enriched.context,
                explanation=cached.explanation,
                simplified=cached.simplified,
                cached=True,
            )

        profile = self.learning_engine.get_user_taste_profile(user_id)
        candidate_limit = limit * self.candidate_multiplier
        candidates = await self.candidate_fetcher(profile.preferences, candidate_limit)
        if not candidates:
            logger.info("No recipe candidates for %s", user_id)
            return RecommendationResult(context=enriched.context, simplified=enriched.simplify)

        scored = self.score_recipes(candidates, enriched.context, profile.preferences, enriched.simplify)
        ranking = sorted(scored, key=lambda prediction: prediction.predicted_rating, reverse=True)
        ranked = ranking[:limit]
        explanation = self._build_explanation(ranked[0], enriched.context)

        await self.cache.put(
            user_id,
            enriched.context,
            ranking,
            explanation=explanation,
            simplified=enriched.simplify,
            candidate_limit=candidate_limit,
        )
        self._notify(self.telemetry.record_generated, user_id, enriched.context, ranked[0])
        return RecommendationResult(
            predictions=ranked,
            context=enriched.context,
            explanation=explanation,
            simplified=enriched.simplify,
        )

    async def enrich_context(self, context: PredictionContext) -> EnrichedContext:
        """Fill missing context signals and resolve travel-mode simplification."""
        now = self._now()
        time_of_day = context.time_of_day or resolve_time_of_day(now)
        weekday = context.weekday or iso_weekday(now)
        location = context.location or self.default_location

        weather = context.weather
        if weather is None and self.weather_provider is not None:
            try:
                weather = await self.weather_provider.get_weather(location)
            except WeatherUnavailableError as exc:
                logger.warning("Continuing without weather: %s", exc)

        mood = context.anticipated_mood
        if mood is None:
            mood = await self.learning_engine.predict_mood(weekday=weekday, time_of_day=time_of_day)

        simplify = False
        if await self.travel_mode_manager.is_travel_mode_active():
            self._notify(self.telemetry.record_travel_mode)
            simplify = await self.travel_mode_manager.should_simplify()

        enriched = PredictionContext(
            time_of_day=time_of_day,
            weekday=weekday,
            weather=weather,
            anticipated_mood=mood,
            location=location,
        )
        return EnrichedContext(context=enriched, simplify=simplify)

    def score_recipes(
        self,
        recipes: list[RecipeProfile],
        context: PredictionContext,
        preferences: TasteProfileVector,
        simplify: bool,
    ) -> list[PredictionResult]:
        results: list[PredictionResult] = []
        for recipe in recipes:
            breakdown = ScoreBreakdown(
                base=self.learning_engine.calculate_taste_similarity(recipe.taste_vector, preferences),
                weather=weather_adjustment(recipe, context.weather),
                time=time_of_day_adjustment(recipe, context.time_of_day),
                mood=mood_adjustment(recipe, context.anticipated_mood),
                travel=TRAVEL_PENALTY if simplify and not recipe.has_tag("quick") else 0.0,
            )
            results.append(
                PredictionResult(
                    recipe_id=recipe.recipe_id,
                    predicted_rating=round(breakdown.predicted_rating, 3),
                    confidence=round(breakdown.confidence, 3),
                    contributing_recipes=list(recipe.tags),
                    context_bonuses=breakdown.evidence(),
                )
            )
        return results

    @staticmethod
    def _build_explanation(top: PredictionResult, context: PredictionContext) -> RecommendationExplanation:
        evidence: list[str] = []
        if context.weather is not None and context.weather.temperature_c is not None:
            evidence.append(f"Weather {context.weather.temperature_c:.1f}°C influenced the pick")
        if context.time_of_day is not None:
            evidence.append(f"Time of day ({context.time_of_day.value}) added weight")
        evidence.extend(top.context_bonuses)
        return RecommendationExplanation(
            reason="Context-aware recommendation from your taste profile",
            confidence=top.confidence,
            evidence=evidence,
        )

    def _notify(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            result = callback(*args)
        except Exception as exc:
            logger.warning("Telemetry call %s failed: %s", getattr(callback, "__name__", callback), exc)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._on_notification_done)

    def _on_notification_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Async telemetry call failed: %s", task.exception())
