"""Content-addressed TTL cache for recommendation results.

A stored record is served only when its context hash matches exactly and
it is younger than the TTL; anything else is a miss.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timedelta
from typing import Callable

from pydantic import ValidationError

from brewmate.adapters.base import KeyValueStore
from brewmate.core.config import settings
from brewmate.schema.recommendation import (
    CachedRecommendation,
    PredictionContext,
    PredictionResult,
    RecommendationExplanation,
)
from brewmate.utils.datetime import ensure_aware, utcnow

logger = logging.getLogger("brewmate.services.recommendation_cache")

CACHE_KEY_PREFIX = "recommendations:v2"


def hash_context(context: PredictionContext) -> str:
    """Deterministic digest of the context fields that drive scoring."""
    canonical = json.dumps(context.cache_fields(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class RecommendationCache:
    """Per-user cache slot holding the latest recommendation payload."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl_minutes: int | None = None,
        now_provider: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.ttl = timedelta(minutes=ttl_minutes if ttl_minutes is not None else settings.recommendation_cache_ttl_minutes)
        self._now = now_provider

    @staticmethod
    def key_for(user_id: str) -> str:
        return f"{CACHE_KEY_PREFIX}:{user_id}"

    async def get(self, user_id: str, context: PredictionContext) -> CachedRecommendation | None:
        key = self.key_for(user_id)
        try:
            raw = await self.store.get(key)
        except Exception as exc:  # store errors count as misses
            logger.warning("Recommendation cache read failed for %s: %s", user_id, exc)
            return None
        if not raw:
            return None
        try:
            cached = CachedRecommendation.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt recommendation cache for %s: %s", user_id, exc.error_count())
            return None
        if self._now() - ensure_aware(cached.created_at) > self.ttl:
            await self._evict(key)
            return None
        if cached.context_hash != hash_context(context):
            return None
        return cached

    async def put(
        self,
        user_id: str,
        context: PredictionContext,
        predictions: list[PredictionResult],
        *,
        explanation: RecommendationExplanation | None = None,
        simplified: bool = False,
        candidate_limit: int = 0,
    ) -> CachedRecommendation:
        record = CachedRecommendation(
            context_hash=hash_context(context),
            predictions=predictions,
            candidate_limit=candidate_limit,
            explanation=explanation,
            simplified=simplified,
            created_at=self._now(),
        )
        try:
            await self.store.set(
                self.key_for(user_id),
                record.model_dump_json(),
                ttl_seconds=int(self.ttl.total_seconds()) or None,
            )
        except Exception as exc:  # write failures are logged only
            logger.warning("Recommendation cache write failed for %s: %s", user_id, exc)
        return record

    async def invalidate(self, user_id: str) -> None:
        await self._evict(self.key_for(user_id))

    async def _evict(self, key: str) -> None:
        try:
            await self.store.delete(key)
        except Exception as exc:
            logger.warning("Recommendation cache eviction failed for %s: %s", key, exc)
