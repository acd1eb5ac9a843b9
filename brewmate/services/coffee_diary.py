"""Brew diary: entry capture, persistence with learning, and insights."""

from __future__ import annotations

import enum
import json
import logging
from datetime import datetime
from typing import Any, Callable

from brewmate.adapters.base import DiaryStorageAdapter
from brewmate.schema.brew import BrewContext, BrewHistoryEntry, LearningEvent, Location
from brewmate.schema.insights import DiaryInsights
from brewmate.schema.taste_profile import TasteFeedback
from brewmate.services import diary_analytics
from brewmate.services.preference_learning import PreferenceLearningEngine
from brewmate.utils.datetime import ensure_aware, iso_weekday, local_now, resolve_time_of_day

logger = logging.getLogger("brewmate.services.coffee_diary")

MAX_MODIFICATION_LENGTH = 160


class QuickEntryTrigger(str, enum.Enum):
    MANUAL = "manual"
    GRINDER = "grinder"
    BREW = "brew"


QUICK_ENTRY_BREW_SECONDS = {QuickEntryTrigger.GRINDER: 30, QuickEntryTrigger.BREW: 180}


class CoffeeDiary:
    """Stores diary entries and feeds rated ones to the learning engine."""

    def __init__(
        self,
        storage: DiaryStorageAdapter,
        learning_engine: PreferenceLearningEngine,
        *,
        now_provider: Callable[[], datetime] = local_now,
    ) -> None:
        self.storage = storage
        self.learning_engine = learning_engine
        self._now = now_provider

    @property
    def user_id(self) -> str:
        profile = self.learning_engine.get_profile()
        return profile.user_id if profile else self.learning_engine.user_id

    def create_quick_entry(
        self,
        trigger: QuickEntryTrigger = QuickEntryTrigger.MANUAL,
        *,
        location: Location | None = None,
        mood_before: str | None = None,
    ) -> BrewHistoryEntry:
        """Pre-filled, unrated entry for one-tap logging."""
        now = self._now()
        metadata: dict[str, Any] = {"trigger": trigger.value}
        if trigger in QUICK_ENTRY_BREW_SECONDS:
            metadata["brew_time_seconds"] = QUICK_ENTRY_BREW_SECONDS[trigger]
        return BrewHistoryEntry(
            user_id=self.user_id,
            context=BrewContext(
                time_of_day=resolve_time_of_day(now),
                weekday=iso_weekday(now),
                location=location,
                mood_before=mood_before,
            ),
            metadata=metadata,
            created_at=now,
            updated_at=now,
        )

    async def add_manual_entry(
        self,
        recipe: str,
        *,
        notes: str | None = None,
        brewed_at: datetime | None = None,
        rating: float = 0.0,
        recipe_id: str | None = None,
        flavor_notes: dict[str, float] | None = None,
        taste_feedback: TasteFeedback | None = None,
        metadata: dict[str, Any] | None = None,
        context: BrewContext | None = None,
        event: LearningEvent | None = None,
    ) -> BrewHistoryEntry:
        """Record a hand-written entry and learn from it when rated."""
        brewed = ensure_aware(brewed_at) if brewed_at else self._now()
        base_context = context or BrewContext(time_of_day=resolve_time_of_day(brewed), weekday=iso_weekday(brewed))
        merged_context = base_context.model_copy(update={"metadata": {**base_context.metadata, **(metadata or {})}})

        modifications: list[str] = []
        if recipe:
            modifications.append(f"recipe:{recipe}")
        if notes:
            modifications.append(f"note:{notes}")
        for key, value in (metadata or {}).items():
            if value is None:
                continue
            rendered = value if isinstance(value, str) else json.dumps(value, default=str)
            modifications.append(f"meta:{key}={rendered}"[:MAX_MODIFICATION_LENGTH])

        entry = BrewHistoryEntry(
            user_id=self.user_id,
            recipe_id=recipe_id,
            rating=rating,
            flavor_notes=flavor_notes or {},
            taste_feedback=taste_feedback,
            context=merged_context,
            modifications=modifications,
            metadata=metadata or {},
            created_at=brewed,
            updated_at=brewed,
        )
        await self.persist_entry(entry, event)
        return entry

    async def persist_entry(self, entry: BrewHistoryEntry, event: LearningEvent | None = None) -> None:
        """Save the entry; rated entries also update the taste profile."""
        await self.storage.save_entry(entry)
        if entry.is_rated:
            await self.learning_engine.ingest_brew(entry, event)
        else:
            logger.debug("Stored unrated entry %s without learning", entry.id)

    async def generate_insights(self, user_id: str | None = None) -> DiaryInsights:
        entries = await self.storage.get_entries(user_id or self.user_id)
        return diary_analytics.generate_insights(entries, self._now())
