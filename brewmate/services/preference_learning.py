"""Online taste-profile learning and rating prediction.

Invariants:
- Every preference dimension stays within [0, 10] after any update.
- ``ingest_brew`` mutates the in-memory profile before persisting it. A
  persistence failure propagates and the mutation is kept (at-least-once);
  replaying the same entry id only re-persists the profile.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from brewmate.adapters.base import LearningStorageAdapter
from brewmate.core.config import settings
from brewmate.schema.brew import (
    BrewHistoryEntry,
    LearningEvent,
    LearningEventType,
    MoodCategory,
    TimeOfDay,
    WeatherCondition,
)
from brewmate.schema.recommendation import PredictionContext, PredictionResult, RecipeProfile
from brewmate.schema.taste_profile import (
    NEUTRAL_PREFERENCE,
    SEASONAL_DELTA_BOUND,
    TASTE_DIMENSIONS,
    PreferredStrength,
    SeasonalAdjustment,
    TasteProfileVector,
    UserTasteProfile,
)
from brewmate.utils.datetime import calendar_days_between, minutes_between, month_key, utcnow
from brewmate.utils.numeric import clamp, clamp_preference, mean
from brewmate.utils.vectors import taste_cosine_similarity

logger = logging.getLogger("brewmate.services.preference_learning")

FALLBACK_RATING = 3.0
FALLBACK_CONFIDENCE = 0.2
NO_DATA_NOTE = "no data for this recipe"
MAX_SIMILAR_RECIPES = 3
MAX_CONFIDENCE = 0.95
MINUTES_PER_WEEK = 7 * 24 * 60
MOOD_LOOKBACK = 20

EVENT_WEIGHT_FACTORS = {
    LearningEventType.LIKED: 1.1,
    LearningEventType.FAVORITED: 1.2,
    LearningEventType.REPEATED: 0.9,
    LearningEventType.DISLIKED: 1.3,
}

WEEKDAY_BONUSES = {1: 0.2, 5: 0.1, 6: -0.1, 7: -0.1}


class EngineNotInitializedError(RuntimeError):
    """Raised when the engine is used before ``initialize()`` completed."""


class PreferenceLearningEngine:
    """Owns one user's taste profile and bounded brew history."""

    def __init__(
        self,
        user_id: str,
        storage: LearningStorageAdapter,
        *,
        learning_rate: float | None = None,
        decay_factor: float | None = None,
        history_limit: int | None = None,
        now_provider: Callable[[], datetime] = utcnow,
    ) -> None:
        self.user_id = user_id
        self.storage = storage
        self.learning_rate = learning_rate if learning_rate is not None else settings.learning_rate
        self.decay_factor = decay_factor if decay_factor is not None else settings.decay_factor
        self.history_limit = history_limit or settings.history_cache_limit
        self._now = now_provider
        self._profile: UserTasteProfile | None = None
        self._history: list[BrewHistoryEntry] = []
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def history(self) -> list[BrewHistoryEntry]:
        """Newest-first view of the cached history."""
        return list(self._history)

    async def initialize(self) -> None:
        """Load or create the profile and warm the history cache; idempotent."""
        if self._initialized:
            return
        profile = await self.storage.load_profile(self.user_id)
        if profile is None:
            profile = self._default_profile()
            await self.storage.persist_profile(profile)
            logger.info("Created default taste profile for %s", self.user_id)
        history = await self.storage.fetch_recent_history(self.user_id, self.history_limit)
        self._profile = profile
        self._history = list(history[: self.history_limit])
        self._initialized = True
        logger.info("Preference engine ready for %s (%d history entries)", self.user_id, len(self._history))

    def get_profile(self) -> UserTasteProfile | None:
        return self._profile

    def get_user_taste_profile(self, user_id: str) -> UserTasteProfile:
        """Profile for ``user_id``; the engine only ever serves one user."""
        profile = self._require_profile()
        if profile.user_id != user_id:
            raise ValueError(f"Engine serves {profile.user_id}, not {user_id}")
        return profile

    async def update_profile(self, profile: UserTasteProfile) -> None:
        """Replace the profile wholesale, e.g. after a restore, and persist it."""
        self._require_profile()
        if profile.user_id != self.user_id:
            raise ValueError(f"Profile belongs to {profile.user_id}, engine serves {self.user_id}")
        self._profile = profile
        await self.storage.persist_profile(profile)

    def calculate_taste_similarity(self, target: TasteProfileVector, baseline: TasteProfileVector) -> float:
        return taste_cosine_similarity(target, baseline)

    async def predict_rating(self, recipe_id: str, context: PredictionContext | None = None) -> PredictionResult:
        """Predict a 1-5 rating for a recipe with an explainable bonus trail."""
        profile = self._require_profile()
        context = context or PredictionContext()

        recipe = await self.storage.fetch_recipe_profile(recipe_id)
        if recipe is None:
            return PredictionResult(
                recipe_id=recipe_id,
                predicted_rating=FALLBACK_RATING,
                confidence=FALLBACK_CONFIDENCE,
                contributing_recipes=[],
                context_bonuses=[NO_DATA_NOTE],
            )

        base_similarity = taste_cosine_similarity(profile.preferences, recipe.taste_vector)
        rating = 3 + base_similarity * 1.5
        bonuses: list[str] = []

        if context.time_of_day == TimeOfDay.MORNING and profile.preferred_strength == PreferredStrength.STRONG:
            rating += 0.25
            bonuses.append("Morning boost for a strong brew: +0.25")

        if context.weather is not None:
            weather_bonus = self._weather_bonus(context.weather.condition, recipe)
            if weather_bonus:
                rating += weather_bonus
                bonuses.append(f"Weather ({context.weather.condition.value}) bonus: {weather_bonus:+.2f}")

        if context.weekday is not None:
            weekday_bonus = WEEKDAY_BONUSES.get(context.weekday, 0.0)
            if weekday_bonus:
                rating += weekday_bonus
                bonuses.append(f"Weekday {context.weekday} bonus: {weekday_bonus:+.2f}")

        if context.anticipated_mood == MoodCategory.TIRED:
            rating += 0.2
            bonuses.append("Anticipated tiredness bonus: +0.20")

        similar: list[RecipeProfile] = []
        if self.storage.supports_similar_recipes:
            similar = (await self.storage.fetch_similar_recipes(self.user_id, recipe_id, MAX_SIMILAR_RECIPES))[
                :MAX_SIMILAR_RECIPES
            ]
        if similar:
            similarity_boost = mean(
                [taste_cosine_similarity(item.taste_vector, recipe.taste_vector) for item in similar]
            ) * 0.1
            if similarity_boost:
                rating += similarity_boost
                bonuses.append(f"Similar recipes boost: {similarity_boost:+.2f}")

        rating = clamp(rating, 1.0, 5.0)
        confidence = min(
            MAX_CONFIDENCE,
            0.3
            + max(0.0, base_similarity) * 0.4
            + 0.05 * len(similar)
            + min(0.25, len(self._history) * 0.01),
        )
        return PredictionResult(
            recipe_id=recipe_id,
            predicted_rating=round(rating, 2),
            confidence=round(confidence, 3),
            contributing_recipes=[item.recipe_id for item in similar],
            context_bonuses=bonuses,
        )

    async def ingest_brew(self, entry: BrewHistoryEntry, event: LearningEvent | None = None) -> UserTasteProfile:
        """Fold one rated brew into the profile and persist it."""
        profile = self._require_profile()

        if any(cached.id == entry.id for cached in self._history):
            logger.info("Replaying brew %s; re-persisting profile without relearning", entry.id)
            await self.storage.persist_profile(profile)
            return profile

        self._history.insert(0, entry)
        del self._history[self.history_limit :]

        weight = self._event_weight(event)
        rating_signal = (entry.rating - 3) / 2

        self._apply_time_decay(profile)
        self._update_preferences(profile, entry, rating_signal, weight)
        await self._update_flavor_notes(profile, entry, rating_signal, weight)
        self._update_seasonal_adjustment(profile, entry, rating_signal, weight)
        self._detect_taste_shift(profile, entry, rating_signal)
        self._update_confidence(profile)

        now = self._now()
        profile.last_recalculated_at = now
        profile.updated_at = now

        await self.storage.persist_profile(profile)
        return profile

    async def predict_mood(self, *, weekday: int, time_of_day: TimeOfDay | None) -> MoodCategory | None:
        """Guess the user's upcoming mood from recent diary signals."""
        self._require_profile()
        recent = self._history[:MOOD_LOOKBACK]
        if not recent:
            return None
        moods = [MoodCategory.from_text(entry.context.mood_before) for entry in recent]
        if moods.count(MoodCategory.STRESSED) >= 3 and time_of_day == TimeOfDay.MORNING:
            return MoodCategory.STRESSED
        if weekday >= 5 and time_of_day == TimeOfDay.EVENING:
            return MoodCategory.CALM
        if moods.count(MoodCategory.TIRED) > 2:
            return MoodCategory.TIRED
        return MoodCategory.FOCUSED

    def _require_profile(self) -> UserTasteProfile:
        if not self._initialized or self._profile is None:
            raise EngineNotInitializedError("PreferenceLearningEngine.initialize() must be awaited first")
        return self._profile

    def _default_profile(self) -> UserTasteProfile:
        now = self._now()
        return UserTasteProfile(user_id=self.user_id, last_recalculated_at=now, updated_at=now)

    @staticmethod
    def _event_weight(event: LearningEvent | None) -> float:
        if event is None:
            return 1.0
        return EVENT_WEIGHT_FACTORS.get(event.event_type, 1.0) * event.event_weight

    @staticmethod
    def _weather_bonus(condition: WeatherCondition, recipe: RecipeProfile) -> float:
        if condition == WeatherCondition.RAIN:
            return 0.25 if recipe.taste_vector.body > 6 else 0.1
        if condition == WeatherCondition.CLEAR:
            return 0.2 if recipe.taste_vector.acidity > 6 else -0.05
        if condition == WeatherCondition.SNOW:
            return 0.3
        return 0.0

    def _apply_time_decay(self, profile: UserTasteProfile) -> None:
        days = max(0, calendar_days_between(self._now(), profile.last_recalculated_at))
        if days == 0:
            return
        decay = self.decay_factor ** (days / 7)
        for dimension in TASTE_DIMENSIONS:
            current = getattr(profile.preferences, dimension)
            setattr(profile.preferences, dimension, NEUTRAL_PREFERENCE + (current - NEUTRAL_PREFERENCE) * decay)
        profile.flavor_notes = {
            note: NEUTRAL_PREFERENCE + (value - NEUTRAL_PREFERENCE) * decay
            for note, value in profile.flavor_notes.items()
        }

    def _update_preferences(
        self, profile: UserTasteProfile, entry: BrewHistoryEntry, rating_signal: float, weight: float
    ) -> None:
        step = self.learning_rate * weight * max(0.5, abs(rating_signal))
        feedback = entry.taste_feedback
        for dimension in TASTE_DIMENSIONS:
            current = getattr(profile.preferences, dimension)
            explicit = getattr(feedback, dimension) if feedback else None
            target = explicit if explicit is not None else current + rating_signal * 2
            setattr(profile.preferences, dimension, clamp_preference(current + (target - current) * step))

    async def _update_flavor_notes(
        self, profile: UserTasteProfile, entry: BrewHistoryEntry, rating_signal: float, weight: float
    ) -> None:
        if not entry.flavor_notes:
            return
        community = {}
        if self.storage.supports_community_stats:
            community = await self.storage.fetch_community_flavor_stats()
        step = self.learning_rate * weight * (1 + abs(rating_signal))
        notes = dict(profile.flavor_notes)
        for note, value in entry.flavor_notes.items():
            current = notes.get(note, NEUTRAL_PREFERENCE)
            delta = (value - current) * step
            stat = community.get(note)
            if stat is not None and stat.sample_size > 0:
                delta += (stat.average - current) * min(1.0, stat.sample_size / 50) * 0.05
            notes[note] = clamp_preference(current + delta)
        profile.flavor_notes = notes

    def _update_seasonal_adjustment(
        self, profile: UserTasteProfile, entry: BrewHistoryEntry, rating_signal: float, weight: float
    ) -> None:
        key = month_key(entry.created_at)
        factor = self.learning_rate * weight * 0.5 * rating_signal
        adjustment = profile.seasonal_for(key)
        if adjustment is None:
            adjustment = SeasonalAdjustment(key=key)
            profile.seasonal_adjustments.append(adjustment)
        bound = SEASONAL_DELTA_BOUND
        adjustment.delta.sweetness = clamp_preference(adjustment.delta.sweetness + factor, -bound, bound)
        adjustment.delta.body = clamp_preference(adjustment.delta.body + factor / 2, -bound, bound)
        adjustment.last_applied = self._now()

    def _detect_taste_shift(self, profile: UserTasteProfile, entry: BrewHistoryEntry, rating_signal: float) -> None:
        prior = self._history[1:6]
        if len(prior) >= 5 and mean([item.rating for item in prior]) >= 4.5 and entry.rating <= 2:
            logger.info("Taste drift detected for %s after brew %s", self.user_id, entry.id)
            preferences = profile.preferences
            preferences.sweetness = clamp_preference(preferences.sweetness - 0.4)
            preferences.bitterness = clamp_preference(preferences.bitterness + 0.4)

        if not entry.recipe_id or rating_signal >= 0:
            return
        previous = next(
            (
                item
                for item in self._history[1:]
                if item.recipe_id == entry.recipe_id and item.id != entry.id
            ),
            None,
        )
        if previous is not None and previous.rating - entry.rating >= 2:
            profile.preferred_strength = profile.preferred_strength.weaker()

    def _update_confidence(self, profile: UserTasteProfile) -> None:
        latest = self._history[0] if self._history else None
        minutes_since = max(1, minutes_between(self._now(), latest.created_at)) if latest else 1440
        recency = max(0.2, 1 - minutes_since / MINUTES_PER_WEEK)
        base = 0.35 + min(50, len(self._history)) * 0.01
        profile.preference_confidence = round(min(MAX_CONFIDENCE, base * recency), 4)
