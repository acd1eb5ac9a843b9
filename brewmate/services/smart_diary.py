"""Insight cards surfaced on top of the brew diary."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Sequence

from brewmate.schema.brew import BrewHistoryEntry
from brewmate.schema.insights import InsightCard, InsightType
from brewmate.services.diary_analytics import calculate_taste_trend, predict_bean_depletion
from brewmate.utils.datetime import local_now

COLD_BREW_TAG = "cold_brew"


class SmartDiaryService:
    """Builds pattern, reminder and prediction cards from diary entries."""

    def __init__(self, *, now_provider: Callable[[], datetime] = local_now) -> None:
        self._now = now_provider

    def generate_insights(self, entries: Sequence[BrewHistoryEntry]) -> list[InsightCard]:
        if not entries:
            return []
        now = self._now()
        cards: list[InsightCard] = []

        trend = calculate_taste_trend(entries)
        if trend:
            cards.append(
                InsightCard(
                    id="trend",
                    title="Your taste is shifting",
                    body=f"Over the last {trend.period_days} days your preferences moved toward a {trend.direction}.",
                    type=InsightType.PATTERN,
                    created_at=now,
                )
            )

        depletion = predict_bean_depletion(entries)
        if depletion:
            cards.append(
                InsightCard(
                    id="beans",
                    title="Running low on beans",
                    body=f"Order new beans soon; your stock lasts about {depletion.days_left} more days.",
                    type=InsightType.REMINDER,
                    created_at=now,
                )
            )

        reminder = self._cold_brew_reminder(entries, now)
        if reminder:
            cards.append(reminder)
        return cards

    @staticmethod
    def _cold_brew_reminder(entries: Sequence[BrewHistoryEntry], now: datetime) -> InsightCard | None:
        if (now + timedelta(days=1)).isoweekday() != 1:
            return None
        if any(COLD_BREW_TAG in entry.tags for entry in entries):
            return None
        return InsightCard(
            id="cold-brew-reminder",
            title="Tomorrow is Monday",
            body="Start a cold brew tonight so a refreshing cup is ready in the morning.",
            type=InsightType.PREDICTION,
            created_at=now,
        )
