"""In-memory adapters for offline runs and tests."""

from __future__ import annotations

import time
from collections import defaultdict
from datetime import datetime

from brewmate.adapters.base import (
    DiaryStorageAdapter,
    KeyValueStore,
    LearningStorageAdapter,
    WeatherProvider,
)
from brewmate.adapters.common import aggregate_flavor_stats, rank_similar_recipes
from brewmate.schema.brew import BrewHistoryEntry, Location, WeatherContext
from brewmate.schema.recommendation import CommunityFlavorStat, RecipeProfile
from brewmate.schema.taste_profile import UserTasteProfile
from brewmate.utils.datetime import ensure_aware


class InMemoryStorage(LearningStorageAdapter, DiaryStorageAdapter):
    """Dictionary-backed storage for profiles, diary entries and recipes.

    Profiles are stored as JSON-mode dumps so callers never share mutable
    state with the store.
    """

    supports_similar_recipes = True

    def __init__(
        self,
        recipes: list[RecipeProfile] | None = None,
        *,
        community_stats: bool = False,
    ) -> None:
        self._profiles: dict[str, dict] = {}
        self._entries: defaultdict[str, list[BrewHistoryEntry]] = defaultdict(list)
        self._recipes: dict[str, RecipeProfile] = {recipe.recipe_id: recipe for recipe in recipes or []}
        self.supports_community_stats = community_stats
        self.persist_calls = 0

    def add_recipe(self, recipe: RecipeProfile) -> None:
        self._recipes[recipe.recipe_id] = recipe

    async def load_profile(self, user_id: str) -> UserTasteProfile | None:
        payload = self._profiles.get(user_id)
        return UserTasteProfile.model_validate(payload) if payload else None

    async def persist_profile(self, profile: UserTasteProfile) -> None:
        self.persist_calls += 1
        self._profiles[profile.user_id] = profile.model_dump(mode="json")

    async def fetch_recent_history(self, user_id: str, limit: int) -> list[BrewHistoryEntry]:
        return self._sorted_entries(user_id)[:limit]

    async def fetch_recipe_profile(self, recipe_id: str) -> RecipeProfile | None:
        return self._recipes.get(recipe_id)

    async def fetch_similar_recipes(self, user_id: str, recipe_id: str, limit: int) -> list[RecipeProfile]:
        target = self._recipes.get(recipe_id)
        if not target:
            return []
        return rank_similar_recipes(target, self._recipes.values(), limit)

    async def fetch_community_flavor_stats(self) -> dict[str, CommunityFlavorStat]:
        if not self.supports_community_stats:
            return {}
        return aggregate_flavor_stats(entry for entries in self._entries.values() for entry in entries)

    async def delete_user_data(self, user_id: str) -> None:
        self._profiles.pop(user_id, None)
        self._entries.pop(user_id, None)

    async def save_entry(self, entry: BrewHistoryEntry) -> None:
        entries = [existing for existing in self._entries[entry.user_id] if existing.id != entry.id]
        entries.append(entry)
        self._entries[entry.user_id] = entries

    async def get_entries(self, user_id: str, *, since: datetime | None = None) -> list[BrewHistoryEntry]:
        entries = self._sorted_entries(user_id)
        if since is None:
            return entries
        cutoff = ensure_aware(since)
        return [entry for entry in entries if ensure_aware(entry.created_at) > cutoff]

    async def delete_entries(self, user_id: str) -> None:
        self._entries.pop(user_id, None)

    def _sorted_entries(self, user_id: str) -> list[BrewHistoryEntry]:
        return sorted(self._entries.get(user_id, []), key=lambda entry: ensure_aware(entry.created_at), reverse=True)


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local key-value store with optional per-key expiry."""

    def __init__(self) -> None:
        self._values: dict[str, tuple[str, float | None]] = {}

    async def get(self, key: str) -> str | None:
        item = self._values.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and time.monotonic() >= expires_at:
            self._values.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        expires_at = time.monotonic() + ttl_seconds if ttl_seconds else None
        self._values[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)


class StaticWeatherProvider(WeatherProvider):
    """Returns a fixed reading; useful offline and in tests."""

    def __init__(self, weather: WeatherContext | None = None) -> None:
        self.weather = weather
        self.requested_locations: list[Location | None] = []

    async def get_weather(self, location: Location | None = None) -> WeatherContext | None:
        self.requested_locations.append(location)
        return self.weather
