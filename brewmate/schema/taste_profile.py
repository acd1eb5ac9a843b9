"""Taste profile schemas for the per-user preference model.

Invariants:
- Every taste dimension stays within [0, 10], including on attribute assignment.
- Seasonal deltas stay within [-3, 3].
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import ConfigDict, Field, field_validator

from brewmate.schema.base import BrewModel, utc_timestamp
from brewmate.utils.numeric import clamp

TASTE_DIMENSIONS: tuple[str, ...] = ("sweetness", "acidity", "bitterness", "body")
NEUTRAL_PREFERENCE = 5.0
SEASONAL_DELTA_BOUND = 3.0


class CaffeineSensitivity(str, enum.Enum):
    """How strongly a user reacts to caffeine."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PreferredStrength(str, enum.Enum):
    """Brew strength the user gravitates toward."""
    LIGHT = "light"
    BALANCED = "balanced"
    STRONG = "strong"

    def weaker(self) -> "PreferredStrength":
        """Step down one notch; light stays light."""
        if self is PreferredStrength.STRONG:
            return PreferredStrength.BALANCED
        return PreferredStrength.LIGHT


class TasteProfileVector(BrewModel):
    """Four-dimensional taste representation of a person or recipe."""

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    sweetness: float = NEUTRAL_PREFERENCE
    acidity: float = NEUTRAL_PREFERENCE
    bitterness: float = NEUTRAL_PREFERENCE
    body: float = NEUTRAL_PREFERENCE

    @field_validator(*TASTE_DIMENSIONS)
    @classmethod
    def _clamp_dimension(cls, value: float) -> float:
        return clamp(float(value))

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.sweetness, self.acidity, self.bitterness, self.body)


class TasteFeedback(BrewModel):
    """Partial taste vector reported for a single brew."""

    sweetness: float | None = None
    acidity: float | None = None
    bitterness: float | None = None
    body: float | None = None

    @field_validator(*TASTE_DIMENSIONS)
    @classmethod
    def _clamp_dimension(cls, value: float | None) -> float | None:
        return None if value is None else clamp(float(value))


class SeasonalDelta(BrewModel):
    """Bounded month-specific drift applied on top of base preferences."""

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    sweetness: float = 0.0
    acidity: float = 0.0
    bitterness: float = 0.0
    body: float = 0.0

    @field_validator(*TASTE_DIMENSIONS)
    @classmethod
    def _bound_delta(cls, value: float) -> float:
        return clamp(float(value), -SEASONAL_DELTA_BOUND, SEASONAL_DELTA_BOUND)


class SeasonalAdjustment(BrewModel):
    """One record per calendar month keyed as YYYY-MM."""
    key: str
    delta: SeasonalDelta = Field(default_factory=SeasonalDelta)
    last_applied: datetime = Field(default_factory=utc_timestamp)


class MilkPreferences(BrewModel):
    """Preferred milk types and texture."""
    types: list[str] = Field(default_factory=lambda: ["whole", "oat"])
    texture: str = "creamy"


def default_flavor_notes() -> dict[str, float]:
    return {"chocolate": 6.0, "fruity": 5.0, "nutty": 6.0}


class UserTasteProfile(BrewModel):
    """Learned taste profile owned by the preference learning engine."""
    user_id: str
    preferences: TasteProfileVector = Field(default_factory=TasteProfileVector)
    flavor_notes: dict[str, float] = Field(default_factory=default_flavor_notes)
    milk_preferences: MilkPreferences = Field(default_factory=MilkPreferences)
    caffeine_sensitivity: CaffeineSensitivity = CaffeineSensitivity.MEDIUM
    preferred_strength: PreferredStrength = PreferredStrength.BALANCED
    seasonal_adjustments: list[SeasonalAdjustment] = Field(default_factory=list)
    preference_confidence: float = Field(default=0.35, ge=0.0, le=1.0)
    last_recalculated_at: datetime = Field(default_factory=utc_timestamp)
    updated_at: datetime = Field(default_factory=utc_timestamp)

    @field_validator("flavor_notes")
    @classmethod
    def _clamp_flavor_notes(cls, value: dict[str, float]) -> dict[str, float]:
        return {note: clamp(float(score)) for note, score in value.items()}

    def seasonal_for(self, key: str) -> SeasonalAdjustment | None:
        """Return the seasonal record for a YYYY-MM key, if any."""
        for adjustment in self.seasonal_adjustments:
            if adjustment.key == key:
                return adjustment
        return None
