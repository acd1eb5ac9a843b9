"""Datetime helpers for diary windows and context resolution."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from brewmate.schema.brew import TimeOfDay


def utcnow() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def calendar_days_between(later: datetime, earlier: datetime) -> int:
    """Count calendar-date boundaries crossed between two timestamps."""
    return (ensure_aware(later).date() - ensure_aware(earlier).date()).days


def minutes_between(later: datetime, earlier: datetime) -> int:
    """Whole minutes elapsed, truncated toward zero."""
    seconds = (ensure_aware(later) - ensure_aware(earlier)).total_seconds()
    return int(seconds / 60)


def iso_weekday(value: datetime | date) -> int:
    """Monday is 1, Sunday is 7."""
    return value.isoweekday()


def month_key(value: datetime) -> str:
    """Return the YYYY-MM key used for seasonal adjustments."""
    return f"{value.year:04d}-{value.month:02d}"


def resolve_time_of_day(value: datetime) -> TimeOfDay:
    """Map a wall-clock hour to a time-of-day bucket."""
    hour = value.hour
    if hour < 6:
        return TimeOfDay.NIGHT
    if hour < 11:
        return TimeOfDay.MORNING
    if hour < 17:
        return TimeOfDay.AFTERNOON
    if hour < 21:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def start_of_iso_week(value: datetime) -> datetime:
    """Midnight of the Monday that opens the week containing ``value``."""
    midnight = value.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=value.isoweekday() - 1)


def start_of_month(value: datetime) -> datetime:
    """Midnight of the first day of the calendar month containing ``value``."""
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def local_now() -> datetime:
    """Aware timestamp in the device's local timezone."""
    return datetime.now().astimezone()
