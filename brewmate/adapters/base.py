"""Collaborator contracts consumed by the personalization engines.

Optional storage capabilities are declared with ``supports_*`` flags and
fall back to empty results, so engines never check for missing methods.
"""

from __future__ import annotations

from datetime import datetime
from typing import Awaitable, Callable

from brewmate.schema.brew import BrewHistoryEntry, Location, WeatherContext
from brewmate.schema.recommendation import CommunityFlavorStat, RecipeProfile
from brewmate.schema.taste_profile import TasteProfileVector, UserTasteProfile

CandidateFetcher = Callable[[TasteProfileVector, int], Awaitable[list[RecipeProfile]]]


class WeatherUnavailableError(Exception):
    """Raised by weather providers when no reading can be produced."""


class LearningStorageAdapter:
    """Persistence contract for profiles, history and recipe metadata."""

    supports_similar_recipes: bool = False
    supports_community_stats: bool = False

    async def load_profile(self, user_id: str) -> UserTasteProfile | None:
        """Return the stored profile or None when the user has none yet."""
        raise NotImplementedError

    async def persist_profile(self, profile: UserTasteProfile) -> None:
        """Write the full profile; errors must propagate."""
        raise NotImplementedError

    async def fetch_recent_history(self, user_id: str, limit: int) -> list[BrewHistoryEntry]:
        """Return up to ``limit`` entries, newest first."""
        raise NotImplementedError

    async def fetch_recipe_profile(self, recipe_id: str) -> RecipeProfile | None:
        """Return the taste description of a recipe, if known."""
        raise NotImplementedError

    async def fetch_similar_recipes(self, user_id: str, recipe_id: str, limit: int) -> list[RecipeProfile]:
        """Recipes resembling ``recipe_id``; empty unless supported."""
        return []

    async def fetch_community_flavor_stats(self) -> dict[str, CommunityFlavorStat]:
        """Community averages per flavor note; empty unless supported."""
        return {}

    async def delete_user_data(self, user_id: str) -> None:
        """Privacy delete of the user's profile and history."""
        raise NotImplementedError


class DiaryStorageAdapter:
    """Persistence contract for diary entries."""

    async def save_entry(self, entry: BrewHistoryEntry) -> None:
        raise NotImplementedError

    async def get_entries(self, user_id: str, *, since: datetime | None = None) -> list[BrewHistoryEntry]:
        """Return entries newest first, optionally only those after ``since``."""
        raise NotImplementedError

    async def delete_entries(self, user_id: str) -> None:
        raise NotImplementedError


class WeatherProvider:
    """Location-keyed source of weather snapshots."""

    async def get_weather(self, location: Location | None = None) -> WeatherContext | None:
        raise NotImplementedError


class KeyValueStore:
    """String key-value persistence used by caches and small state records."""

    async def get(self, key: str) -> str | None:
        raise NotImplementedError

    async def set(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError
