from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from brewmate.schema.brew import BrewContext, BrewHistoryEntry, TimeOfDay
from brewmate.schema.recommendation import RecipeProfile
from brewmate.schema.taste_profile import TasteFeedback, TasteProfileVector

USER_ID = "user-1"
# Monday morning.
NOW = datetime(2024, 3, 4, 8, 30, tzinfo=timezone.utc)


class MutableClock:
    """Callable clock that tests can move forward."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


def make_entry(
    *,
    rating: float = 4.0,
    minutes_ago: float = 0,
    user_id: str = USER_ID,
    recipe_id: str | None = None,
    feedback: dict[str, float] | None = None,
    flavor_notes: dict[str, float] | None = None,
    time_of_day: TimeOfDay | None = None,
    mood_before: str | None = None,
    mood_after: str | None = None,
    modifications: list[str] | None = None,
    tags: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
    created_at: datetime | None = None,
) -> BrewHistoryEntry:
    created = created_at or NOW - timedelta(minutes=minutes_ago)
    return BrewHistoryEntry(
        user_id=user_id,
        recipe_id=recipe_id,
        rating=rating,
        taste_feedback=TasteFeedback(**feedback) if feedback else None,
        flavor_notes=flavor_notes or {},
        context=BrewContext(time_of_day=time_of_day, mood_before=mood_before, mood_after=mood_after),
        modifications=modifications or [],
        tags=tags or [],
        metadata=metadata or {},
        created_at=created,
        updated_at=created,
    )


def make_recipe(
    recipe_id: str,
    *,
    sweetness: float = 5.0,
    acidity: float = 5.0,
    bitterness: float = 5.0,
    body: float = 5.0,
    brew_method: str | None = None,
    tags: list[str] | None = None,
) -> RecipeProfile:
    return RecipeProfile(
        recipe_id=recipe_id,
        taste_vector=TasteProfileVector(sweetness=sweetness, acidity=acidity, bitterness=bitterness, body=body),
        brew_method=brew_method,
        tags=tags or [],
    )
