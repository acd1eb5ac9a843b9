"""Diary insight schemas produced by the analytics functions."""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import Field

from brewmate.schema.base import BrewModel, utc_timestamp

UNKNOWN_MOMENT = "unknown"


class SkillTrend(str, enum.Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class InsightSummary(BrewModel):
    average_rating: float = 0.0
    brews_count: int = 0
    top_flavor_notes: list[str] = Field(default_factory=list)


class MoodImpactInsight(BrewModel):
    positive_moods: list[str] = Field(default_factory=list)
    negative_moods: list[str] = Field(default_factory=list)
    mood_shift_score: float = 0.0


class SkillProgression(BrewModel):
    trend: SkillTrend = SkillTrend.STABLE
    slope: float = 0.0


class TasteTrend(BrewModel):
    """Direction recent taste feedback is drifting toward."""
    period_days: int
    direction: str


class BeanDepletion(BrewModel):
    days_left: int


class DiaryInsights(BrewModel):
    """Weekly and monthly diary summary plus behavioral signals."""
    weekly_summary: InsightSummary = Field(default_factory=InsightSummary)
    monthly_summary: InsightSummary = Field(default_factory=InsightSummary)
    brews_count: int = 0
    average_rating: float = 0.0
    best_moment_of_day: str = UNKNOWN_MOMENT
    dominant_method: str | None = None
    mood_impact: MoodImpactInsight = Field(default_factory=MoodImpactInsight)
    skill_progression: SkillProgression = Field(default_factory=SkillProgression)


class InsightType(str, enum.Enum):
    PATTERN = "pattern"
    PREDICTION = "prediction"
    REMINDER = "reminder"


class InsightCard(BrewModel):
    """User-facing insight emitted by the smart diary."""
    id: str
    title: str
    body: str
    type: InsightType
    created_at: datetime = Field(default_factory=utc_timestamp)
