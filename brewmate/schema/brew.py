"""Diary entry, brew context and learning event schemas.

Free-text moods and weather conditions are mapped onto closed enumerations
here, once, where they enter the system.
"""

from __future__ import annotations

import enum
import re
import uuid
from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from brewmate.schema.base import BrewModel, FrozenModel, utc_timestamp
from brewmate.schema.taste_profile import TasteFeedback


class TimeOfDay(str, enum.Enum):
    """Coarse wall-clock bucket used for context bonuses and diary stats."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class WeatherCondition(str, enum.Enum):
    """Weather categories recognized by the scoring rules."""
    CLEAR = "clear"
    CLOUDY = "cloudy"
    RAIN = "rain"
    SNOW = "snow"
    STORM = "storm"
    FOG = "fog"
    UNKNOWN = "unknown"

    @classmethod
    def from_text(cls, text: str | None) -> "WeatherCondition":
        """Map a provider's free-text condition onto a category."""
        if not text:
            return cls.UNKNOWN
        normalized = text.strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            pass
        for condition, keywords in _WEATHER_KEYWORDS:
            if any(keyword in normalized for keyword in keywords):
                return condition
        return cls.UNKNOWN


_WEATHER_KEYWORDS: tuple[tuple[WeatherCondition, tuple[str, ...]], ...] = (
    (WeatherCondition.STORM, ("storm", "thunder", "búrk")),
    (WeatherCondition.SNOW, ("snow", "sleet", "sneh", "snež")),
    (WeatherCondition.RAIN, ("rain", "drizzle", "shower", "dážď", "daž")),
    (WeatherCondition.FOG, ("fog", "mist", "haze", "hmla")),
    (WeatherCondition.CLEAR, ("clear", "sun", "jasno", "slneč")),
    (WeatherCondition.CLOUDY, ("cloud", "overcast", "oblač", "zamrač")),
)


class MoodCategory(str, enum.Enum):
    """Mood buckets derived from diary text and mood inference."""
    HAPPY = "happy"
    CALM = "calm"
    FOCUSED = "focused"
    NEUTRAL = "neutral"
    STRESSED = "stressed"
    TIRED = "tired"

    @classmethod
    def from_text(cls, text: str | None) -> "MoodCategory":
        """Map a free-text mood onto a category.

        A word matches when it starts with one of the category stems, so
        "unhappy" is not read as happy. A stem preceded by a negation word
        ("not stressed") does not count.
        """
        if not text:
            return cls.NEUTRAL
        normalized = text.strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            pass
        words = _WORD_PATTERN.findall(normalized)
        for mood, keywords in _MOOD_KEYWORDS:
            for index, word in enumerate(words):
                if not word.startswith(keywords):
                    continue
                if index and words[index - 1] in _NEGATIONS:
                    continue
                return mood
        return cls.NEUTRAL

    @property
    def score(self) -> int:
        """Valence used by mood impact analysis."""
        return _MOOD_SCORES.get(self, 0)


_MOOD_KEYWORDS: tuple[tuple[MoodCategory, tuple[str, ...]], ...] = (
    (MoodCategory.HAPPY, ("happy", "joy", "glad", "cheer", "šťast", "radost")),
    (MoodCategory.CALM, ("calm", "relax", "peace", "pokoj")),
    (MoodCategory.STRESSED, ("stress", "anxious", "anxiety", "stres", "úzk")),
    (MoodCategory.TIRED, ("tired", "sleepy", "exhaust", "unav")),
    (MoodCategory.FOCUSED, ("focus", "sústred")),
)

_WORD_PATTERN = re.compile(r"\w+")
_NEGATIONS = frozenset({"not", "never", "no", "nie"})

_MOOD_SCORES = {
    MoodCategory.HAPPY: 2,
    MoodCategory.CALM: 1,
    MoodCategory.STRESSED: -1,
    MoodCategory.TIRED: -1,
}


class LearningEventType(str, enum.Enum):
    """Explicit user reactions that bias how much an entry is trusted."""
    LIKED = "liked"
    DISLIKED = "disliked"
    FAVORITED = "favorited"
    REPEATED = "repeated"
    SHARED = "shared"


class Location(BrewModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class WeatherContext(BrewModel):
    """Weather snapshot attached to a brew or a prediction request."""
    condition: WeatherCondition = WeatherCondition.UNKNOWN
    temperature_c: float | None = None
    humidity: float | None = None
    wind_speed: float | None = None

    @field_validator("condition", mode="before")
    @classmethod
    def _map_condition(cls, value: Any) -> WeatherCondition:
        if isinstance(value, WeatherCondition):
            return value
        return WeatherCondition.from_text(str(value) if value is not None else None)


class BrewContext(BrewModel):
    """Situational signals captured alongside a brew."""
    time_of_day: TimeOfDay | None = None
    weekday: int | None = Field(default=None, ge=1, le=7)
    weather: WeatherContext | None = None
    location: Location | None = None
    mood_before: str | None = None
    mood_after: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class BrewHistoryEntry(FrozenModel):
    """Immutable diary event; never mutated once created."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    recipe_id: str | None = None
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    taste_feedback: TasteFeedback | None = None
    flavor_notes: dict[str, float] = Field(default_factory=dict)
    context: BrewContext = Field(default_factory=BrewContext)
    modifications: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_timestamp)
    updated_at: datetime = Field(default_factory=utc_timestamp)

    @property
    def is_rated(self) -> bool:
        return self.rating > 0


class LearningEvent(BrewModel):
    """Reaction attached to a diary entry."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str | None = None
    brew_history_id: str | None = None
    event_type: LearningEventType
    event_weight: float = Field(default=1.0, ge=0.0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_timestamp)
