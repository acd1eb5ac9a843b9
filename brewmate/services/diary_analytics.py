"""Pure analytics over brew diary entries.

Every function is deterministic for a given entry list; windowed summaries
take an explicit reference ``now``. Degenerate inputs produce neutral values
rather than errors.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Iterable, Sequence

from brewmate.schema.brew import BrewHistoryEntry, MoodCategory
from brewmate.schema.insights import (
    UNKNOWN_MOMENT,
    BeanDepletion,
    DiaryInsights,
    InsightSummary,
    MoodImpactInsight,
    SkillProgression,
    SkillTrend,
    TasteTrend,
)
from brewmate.utils.datetime import (
    calendar_days_between,
    ensure_aware,
    minutes_between,
    start_of_iso_week,
    start_of_month,
)
from brewmate.utils.numeric import mean, to_number

TOP_FLAVOR_NOTES = 3
MIN_TREND_ENTRIES = 3
TREND_SLOPE_THRESHOLD = 0.01
MOOD_SHIFT_THRESHOLD = 0.1
TASTE_TREND_WINDOW = 10
METHOD_PREFIX = "method:"
INVENTORY_UPDATE_TAG = "inventory-update"
DEFAULT_MOOD = "neutral"


def _newest_first(entries: Iterable[BrewHistoryEntry]) -> list[BrewHistoryEntry]:
    return sorted(entries, key=lambda entry: ensure_aware(entry.created_at), reverse=True)


def build_summary(entries: Sequence[BrewHistoryEntry]) -> InsightSummary:
    """Average rating, count and the most frequent flavor notes."""
    if not entries:
        return InsightSummary()
    frequency: Counter[str] = Counter()
    for entry in entries:
        frequency.update(entry.flavor_notes.keys())
    # Counter preserves first-seen order, and sorted() is stable on ties.
    top_notes = [note for note, _ in sorted(frequency.items(), key=lambda item: item[1], reverse=True)]
    return InsightSummary(
        average_rating=round(mean([entry.rating for entry in entries]), 2),
        brews_count=len(entries),
        top_flavor_notes=top_notes[:TOP_FLAVOR_NOTES],
    )


def identify_best_moment(entries: Sequence[BrewHistoryEntry]) -> str:
    """Time-of-day bucket with the highest mean rating."""
    buckets: dict[str, list[float]] = {}
    for entry in entries:
        moment = entry.context.time_of_day.value if entry.context.time_of_day else UNKNOWN_MOMENT
        buckets.setdefault(moment, []).append(entry.rating)
    best_moment = UNKNOWN_MOMENT
    best_average: float | None = None
    for moment, ratings in buckets.items():
        average = mean(ratings)
        if best_average is None or average > best_average:
            best_moment, best_average = moment, average
    return best_moment


def identify_dominant_method(entries: Sequence[BrewHistoryEntry]) -> str | None:
    """Most frequent ``method:<name>`` modification tag, if any."""
    methods: Counter[str] = Counter()
    for entry in entries:
        tag = next((item for item in entry.modifications if item.startswith(METHOD_PREFIX)), None)
        if tag:
            methods[tag[len(METHOD_PREFIX) :]] += 1
    if not methods:
        return None
    return max(methods.items(), key=lambda item: item[1])[0]


def calculate_mood_impact(entries: Sequence[BrewHistoryEntry]) -> MoodImpactInsight:
    """How moods before a brew tend to shift afterwards."""
    shifts: dict[str, list[int]] = {}
    for entry in entries:
        before = entry.context.mood_before or DEFAULT_MOOD
        after = entry.context.mood_after or before
        delta = MoodCategory.from_text(after).score - MoodCategory.from_text(before).score
        shifts.setdefault(before, []).append(delta)

    insight = MoodImpactInsight()
    total = 0.0
    for mood, deltas in shifts.items():
        average = mean(deltas)
        total += average
        if average > MOOD_SHIFT_THRESHOLD:
            insight.positive_moods.append(mood)
        elif average < -MOOD_SHIFT_THRESHOLD:
            insight.negative_moods.append(mood)
    insight.mood_shift_score = round(total, 2)
    return insight


def linear_regression_slope(points: Sequence[tuple[float, float]]) -> float:
    """Closed-form least squares slope; 0 when the denominator vanishes."""
    n = len(points)
    if n == 0:
        return 0.0
    sum_x = sum(x for x, _ in points)
    sum_y = sum(y for _, y in points)
    sum_xy = sum(x * y for x, y in points)
    sum_xx = sum(x * x for x, _ in points)
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return (n * sum_xy - sum_x * sum_y) / denominator


def calculate_skill_trend(entries: Sequence[BrewHistoryEntry]) -> SkillProgression:
    """Rating trend over time from an ordinary least squares fit."""
    if len(entries) < MIN_TREND_ENTRIES:
        return SkillProgression()
    ordered = list(reversed(_newest_first(entries)))
    first = ordered[0].created_at
    points = [(float(minutes_between(entry.created_at, first)), entry.rating) for entry in ordered]
    slope = linear_regression_slope(points)
    trend = SkillTrend.STABLE
    if slope > TREND_SLOPE_THRESHOLD:
        trend = SkillTrend.IMPROVING
    elif slope < -TREND_SLOPE_THRESHOLD:
        trend = SkillTrend.DECLINING
    return SkillProgression(trend=trend, slope=round(slope, 4))


def calculate_taste_trend(entries: Sequence[BrewHistoryEntry]) -> TasteTrend | None:
    """Whether recent feedback leans toward body or sweetness."""
    recent = _newest_first(entries)[:TASTE_TREND_WINDOW]
    if not recent:
        return None
    body = mean([(entry.taste_feedback.body or 0.0) if entry.taste_feedback else 0.0 for entry in recent])
    sweetness = mean(
        [(entry.taste_feedback.sweetness or 0.0) if entry.taste_feedback else 0.0 for entry in recent]
    )
    if not body and not sweetness:
        return None
    direction = "richer body" if body > sweetness else "sweeter tone"
    period = max(1, calendar_days_between(recent[0].created_at, recent[-1].created_at))
    return TasteTrend(period_days=period, direction=direction)


def predict_bean_depletion(entries: Sequence[BrewHistoryEntry]) -> BeanDepletion | None:
    """Days of beans left from the latest inventory update and dose history."""
    ordered = _newest_first(entries)
    if len(ordered) < MIN_TREND_ENTRIES:
        return None
    days = max(1, (ensure_aware(ordered[0].created_at) - ensure_aware(ordered[-1].created_at)).days)
    grams_used = sum(to_number(entry.metadata.get("dose_grams")) for entry in ordered)
    if grams_used <= 0:
        return None
    stock_entry = next((entry for entry in ordered if INVENTORY_UPDATE_TAG in entry.modifications), None)
    if stock_entry is None:
        return None
    stock_grams = to_number(stock_entry.metadata.get("remaining_beans_grams"))
    if stock_grams <= 0:
        return None
    return BeanDepletion(days_left=max(1, round(stock_grams / (grams_used / days))))


def generate_insights(entries: Sequence[BrewHistoryEntry], now: datetime) -> DiaryInsights:
    """Weekly and monthly summaries plus behavioral signals."""
    reference = ensure_aware(now)
    week_start = start_of_iso_week(reference)
    month_start = start_of_month(reference)
    weekly = [entry for entry in entries if ensure_aware(entry.created_at) > week_start]
    monthly = [entry for entry in entries if ensure_aware(entry.created_at) > month_start]
    overall = build_summary(entries)
    return DiaryInsights(
        weekly_summary=build_summary(weekly),
        monthly_summary=build_summary(monthly),
        brews_count=overall.brews_count,
        average_rating=overall.average_rating,
        best_moment_of_day=identify_best_moment(entries),
        dominant_method=identify_dominant_method(entries),
        mood_impact=calculate_mood_impact(entries),
        skill_progression=calculate_skill_trend(entries),
    )
