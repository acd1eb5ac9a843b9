"""Composition root wiring engines to their collaborators.

Applications build one ``PersonalizationServices`` bundle per local user,
await ``start()`` once, and ``close()`` it on shutdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from brewmate.adapters.base import (
    CandidateFetcher,
    DiaryStorageAdapter,
    KeyValueStore,
    LearningStorageAdapter,
    WeatherProvider,
)
from brewmate.adapters.memory import InMemoryKeyValueStore
from brewmate.adapters.redis_store import RedisKeyValueStore
from brewmate.adapters.sql import SqlStorage
from brewmate.adapters.weather import OpenMeteoWeatherProvider
from brewmate.core.config import Settings, settings as default_settings
from brewmate.db.session import build_engine, build_session_factory, create_schema
from brewmate.schema.brew import Location
from brewmate.services.coffee_diary import CoffeeDiary
from brewmate.services.preference_learning import PreferenceLearningEngine
from brewmate.services.recommendation_cache import RecommendationCache
from brewmate.services.recommendation_engine import RecommendationEngine
from brewmate.services.recommendation_telemetry import (
    DefaultRecommendationTelemetry,
    RecommendationTelemetry,
)
from brewmate.services.smart_diary import SmartDiaryService
from brewmate.services.travel_mode import TravelModeManager

logger = logging.getLogger("brewmate.bootstrap")


@dataclass(slots=True)
class PersonalizationServices:
    learning_engine: PreferenceLearningEngine
    recommendation_engine: RecommendationEngine
    diary: CoffeeDiary
    smart_diary: SmartDiaryService
    travel_mode: TravelModeManager
    telemetry: RecommendationTelemetry
    key_value_store: KeyValueStore
    database_engine: AsyncEngine | None = None

    async def start(self) -> None:
        """Load the profile and history; must complete before other calls."""
        await self.learning_engine.initialize()

    async def close(self) -> None:
        if isinstance(self.key_value_store, RedisKeyValueStore):
            await self.key_value_store.close()
        if self.database_engine is not None:
            await self.database_engine.dispose()


def default_location(config: Settings) -> Location | None:
    if config.default_latitude is None or config.default_longitude is None:
        return None
    return Location(latitude=config.default_latitude, longitude=config.default_longitude)


def build_personalization(
    storage: LearningStorageAdapter,
    candidate_fetcher: CandidateFetcher,
    *,
    diary_storage: DiaryStorageAdapter | None = None,
    user_id: str | None = None,
    key_value_store: KeyValueStore | None = None,
    weather_provider: WeatherProvider | None = None,
    telemetry: RecommendationTelemetry | None = None,
    config: Settings | None = None,
) -> PersonalizationServices:
    """Wire engines around already-constructed adapters.

    ``storage`` doubles as the diary store unless ``diary_storage`` is given.
    """
    config = config or default_settings
    if diary_storage is None:
        if not isinstance(storage, DiaryStorageAdapter):
            raise TypeError("storage does not implement DiaryStorageAdapter; pass diary_storage")
        diary_storage = storage
    store = key_value_store or InMemoryKeyValueStore()
    sink = telemetry or DefaultRecommendationTelemetry()
    learning_engine = PreferenceLearningEngine(
        user_id or config.local_user_id,
        storage,
        learning_rate=config.learning_rate,
        decay_factor=config.decay_factor,
        history_limit=config.history_cache_limit,
    )
    travel_mode = TravelModeManager(store)
    recommendation_engine = RecommendationEngine(
        learning_engine,
        candidate_fetcher,
        telemetry=sink,
        travel_mode_manager=travel_mode,
        cache=RecommendationCache(store, ttl_minutes=config.recommendation_cache_ttl_minutes),
        weather_provider=weather_provider,
        default_location=default_location(config),
        candidate_multiplier=config.candidate_multiplier,
    )
    return PersonalizationServices(
        learning_engine=learning_engine,
        recommendation_engine=recommendation_engine,
        diary=CoffeeDiary(diary_storage, learning_engine),
        smart_diary=SmartDiaryService(),
        travel_mode=travel_mode,
        telemetry=sink,
        key_value_store=store,
    )


async def build_default_personalization(
    candidate_fetcher: CandidateFetcher,
    *,
    user_id: str | None = None,
    config: Settings | None = None,
) -> PersonalizationServices:
    """Build SQL storage, Redis (when configured) and the HTTP weather provider."""
    config = config or default_settings
    engine = build_engine(config.database_url)
    await create_schema(engine)
    storage = SqlStorage(build_session_factory(engine))
    store: KeyValueStore
    if config.redis_url:
        store = RedisKeyValueStore.from_url(config.redis_url)
    else:
        logger.info("No Redis URL configured; using in-process cache")
        store = InMemoryKeyValueStore()
    services = build_personalization(
        storage,
        candidate_fetcher,
        user_id=user_id,
        key_value_store=store,
        weather_provider=OpenMeteoWeatherProvider(
            config.weather_api_url, timeout=config.weather_timeout_seconds
        ),
        config=config,
    )
    services.database_engine = engine
    return services
