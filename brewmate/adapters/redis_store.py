"""Redis-backed key-value store for recommendation cache and travel mode state."""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from brewmate.adapters.base import KeyValueStore
from brewmate.core.config import settings

logger = logging.getLogger("brewmate.adapters.redis_store")


class RedisKeyValueStore(KeyValueStore):
    """Thin async wrapper that namespaces keys and applies TTLs with SETEX."""

    def __init__(self, client: Redis, *, namespace: str = "brewmate") -> None:
        self._client = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str | None = None, *, namespace: str = "brewmate") -> "RedisKeyValueStore":
        redis_url = url or settings.redis_url
        if not redis_url:
            raise ValueError("BREWMATE_REDIS_URL must be set to use the Redis store")
        client = Redis.from_url(redis_url, decode_responses=True)
        logger.info("Redis key-value store ready (namespace: %s)", namespace)
        return cls(client, namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> str | None:
        value = await self._client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        if ttl_seconds:
            await self._client.setex(self._key(key), ttl_seconds, value)
        else:
            await self._client.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def close(self) -> None:
        await self._client.aclose()
