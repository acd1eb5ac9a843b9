"""SQLAlchemy storage adapter for profiles, diary entries and recipes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from brewmate.adapters.base import DiaryStorageAdapter, LearningStorageAdapter
from brewmate.adapters.common import aggregate_flavor_stats, rank_similar_recipes
from brewmate.models.personalization import BrewHistoryRecord, RecipeProfileRecord, TasteProfileRecord
from brewmate.schema.brew import BrewHistoryEntry
from brewmate.schema.recommendation import CommunityFlavorStat, RecipeProfile
from brewmate.schema.taste_profile import UserTasteProfile
from brewmate.utils.datetime import ensure_aware

logger = logging.getLogger("brewmate.adapters.sql")


def _to_utc(value: datetime) -> datetime:
    return ensure_aware(value).astimezone(timezone.utc)


class SqlStorage(LearningStorageAdapter, DiaryStorageAdapter):
    """Storage adapter over an async session factory.

    Every call runs in its own short-lived session so the engines never hold
    a transaction open across awaits.
    """

    supports_similar_recipes = True

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], *, community_stats: bool = True) -> None:
        self._session_factory = session_factory
        self.supports_community_stats = community_stats

    async def load_profile(self, user_id: str) -> UserTasteProfile | None:
        async with self._session_factory() as session:
            record = await session.get(TasteProfileRecord, user_id)
            if not record:
                return None
            return UserTasteProfile.model_validate(record.payload)

    async def persist_profile(self, profile: UserTasteProfile) -> None:
        payload = profile.model_dump(mode="json")
        async with self._session_factory() as session:
            record = await session.get(TasteProfileRecord, profile.user_id)
            if record:
                record.payload = payload
                record.updated_at = _to_utc(profile.updated_at)
            else:
                session.add(
                    TasteProfileRecord(
                        user_id=profile.user_id, payload=payload, updated_at=_to_utc(profile.updated_at)
                    )
                )
            await session.commit()

    async def fetch_recent_history(self, user_id: str, limit: int) -> list[BrewHistoryEntry]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(BrewHistoryRecord)
                .where(BrewHistoryRecord.user_id == user_id)
                .order_by(BrewHistoryRecord.created_at.desc())
                .limit(limit)
            )
            return [BrewHistoryEntry.model_validate(record.payload) for record in result.scalars().all()]

    async def fetch_recipe_profile(self, recipe_id: str) -> RecipeProfile | None:
        async with self._session_factory() as session:
            record = await session.get(RecipeProfileRecord, recipe_id)
            return RecipeProfile.model_validate(record.payload) if record else None

    async def fetch_similar_recipes(self, user_id: str, recipe_id: str, limit: int) -> list[RecipeProfile]:
        async with self._session_factory() as session:
            result = await session.execute(select(RecipeProfileRecord))
            recipes = [RecipeProfile.model_validate(record.payload) for record in result.scalars().all()]
        target = next((recipe for recipe in recipes if recipe.recipe_id == recipe_id), None)
        if not target:
            return []
        return rank_similar_recipes(target, recipes, limit)

    async def fetch_community_flavor_stats(self) -> dict[str, CommunityFlavorStat]:
        if not self.supports_community_stats:
            return {}
        async with self._session_factory() as session:
            result = await session.execute(select(BrewHistoryRecord.payload))
            entries = [BrewHistoryEntry.model_validate(payload) for payload in result.scalars().all()]
        return aggregate_flavor_stats(entries)

    async def delete_user_data(self, user_id: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(BrewHistoryRecord).where(BrewHistoryRecord.user_id == user_id))
            await session.execute(delete(TasteProfileRecord).where(TasteProfileRecord.user_id == user_id))
            await session.commit()
        logger.info("Deleted personalization data for user %s", user_id)

    async def upsert_recipe(self, recipe: RecipeProfile) -> None:
        payload = recipe.model_dump(mode="json")
        async with self._session_factory() as session:
            record = await session.get(RecipeProfileRecord, recipe.recipe_id)
            if record:
                record.payload = payload
                record.brew_method = recipe.brew_method
            else:
                session.add(
                    RecipeProfileRecord(recipe_id=recipe.recipe_id, brew_method=recipe.brew_method, payload=payload)
                )
            await session.commit()

    async def save_entry(self, entry: BrewHistoryEntry) -> None:
        payload = entry.model_dump(mode="json")
        async with self._session_factory() as session:
            record = await session.get(BrewHistoryRecord, entry.id)
            if record:
                record.payload = payload
                record.rating = entry.rating
                record.recipe_id = entry.recipe_id
            else:
                session.add(
                    BrewHistoryRecord(
                        id=entry.id,
                        user_id=entry.user_id,
                        recipe_id=entry.recipe_id,
                        rating=entry.rating,
                        payload=payload,
                        created_at=_to_utc(entry.created_at),
                    )
                )
            await session.commit()

    async def get_entries(self, user_id: str, *, since: datetime | None = None) -> list[BrewHistoryEntry]:
        query = select(BrewHistoryRecord).where(BrewHistoryRecord.user_id == user_id)
        if since is not None:
            query = query.where(BrewHistoryRecord.created_at > _to_utc(since))
        async with self._session_factory() as session:
            result = await session.execute(query.order_by(BrewHistoryRecord.created_at.desc()))
            return [BrewHistoryEntry.model_validate(record.payload) for record in result.scalars().all()]

    async def delete_entries(self, user_id: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(BrewHistoryRecord).where(BrewHistoryRecord.user_id == user_id))
            await session.commit()
