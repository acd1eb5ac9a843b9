from __future__ import annotations

import asyncio

import pytest

from brewmate.adapters.base import KeyValueStore, WeatherProvider, WeatherUnavailableError
from brewmate.adapters.memory import InMemoryKeyValueStore, StaticWeatherProvider
from brewmate.schema.brew import Location, MoodCategory, TimeOfDay, WeatherContext
from brewmate.schema.recommendation import PredictionContext, RecipeProfile
from brewmate.services.preference_learning import EngineNotInitializedError
from brewmate.services.recommendation_cache import RecommendationCache
from brewmate.services.recommendation_engine import RecommendationEngine
from brewmate.services.recommendation_telemetry import (
    DefaultRecommendationTelemetry,
    RecommendationTelemetry,
    TelemetryEventType,
)
from brewmate.services.travel_mode import TravelModeManager
from brewmate.tests.utils import NOW, USER_ID, MutableClock, make_entry, make_recipe

CANDIDATES = [
    make_recipe("iced-latte", sweetness=7, acidity=4, bitterness=3, body=5, tags=["iced", "quick"]),
    make_recipe("morning-v60", tags=["morning_boost"]),
    make_recipe("rich-mocha", sweetness=8, acidity=2, bitterness=4, body=9, tags=["rich", "comfort"]),
]
MILD_WEATHER = WeatherContext(condition="cloudy", temperature_c=18.0, humidity=55.0)
HOME = Location(latitude=48.15, longitude=17.11)


class RecordingFetcher:
    def __init__(self, recipes: list[RecipeProfile]) -> None:
        self.recipes = recipes
        self.calls: list[int] = []

    async def __call__(self, preferences, count: int) -> list[RecipeProfile]:
        self.calls.append(count)
        return list(self.recipes[:count])


class BrokenStore(KeyValueStore):
    async def get(self, key: str) -> str | None:
        raise ConnectionError("store offline")

    async def set(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        raise ConnectionError("store offline")

    async def delete(self, key: str) -> None:
        raise ConnectionError("store offline")


class FailingWeather(WeatherProvider):
    async def get_weather(self, location=None) -> WeatherContext | None:
        raise WeatherUnavailableError("no signal")


class ExplodingTelemetry(RecommendationTelemetry):
    def record_generated(self, user_id, context, prediction):
        raise RuntimeError("sink down")


class AsyncTelemetry(RecommendationTelemetry):
    def __init__(self) -> None:
        self.generated: list[str] = []

    async def record_generated(self, user_id, context, prediction):
        self.generated.append(prediction.recipe_id)


def build_engine(
    learning_engine,
    *,
    fetcher: RecordingFetcher | None = None,
    telemetry: RecommendationTelemetry | None = None,
    store: KeyValueStore | None = None,
    cache_clock: MutableClock | None = None,
    weather_provider: WeatherProvider | None = None,
) -> RecommendationEngine:
    store = store or InMemoryKeyValueStore()
    return RecommendationEngine(
        learning_engine,
        fetcher or RecordingFetcher(CANDIDATES),
        telemetry=telemetry or DefaultRecommendationTelemetry(),
        travel_mode_manager=TravelModeManager(store, now_provider=lambda: NOW),
        cache=RecommendationCache(store, ttl_minutes=15, now_provider=cache_clock or MutableClock(NOW)),
        weather_provider=weather_provider or StaticWeatherProvider(MILD_WEATHER),
        default_location=HOME,
        candidate_multiplier=4,
        now_provider=lambda: NOW,
    )


def capture_events(telemetry: DefaultRecommendationTelemetry) -> list[TelemetryEventType]:
    events: list[TelemetryEventType] = []
    telemetry.add_listener(lambda event: events.append(event.type))
    return events


@pytest.mark.asyncio
async def test_second_identical_request_is_served_from_cache(learning_engine) -> None:
    await learning_engine.initialize()
    telemetry = DefaultRecommendationTelemetry()
    events = capture_events(telemetry)
    fetcher = RecordingFetcher(CANDIDATES)
    engine = build_engine(learning_engine, fetcher=fetcher, telemetry=telemetry)

    first = await engine.get_top_predictions(USER_ID)
    second = await engine.get_top_predictions(USER_ID)

    assert events == [TelemetryEventType.GENERATED, TelemetryEventType.CACHE_HIT]
    assert fetcher.calls == [12]
    assert first.cached is False
    assert second.cached is True
    assert second.predictions == first.predictions
    assert second.explanation == first.explanation


@pytest.mark.asyncio
async def test_predictions_are_ranked_and_explained(learning_engine) -> None:
    await learning_engine.initialize()
    weather = StaticWeatherProvider(MILD_WEATHER)
    engine = build_engine(learning_engine, weather_provider=weather)

    result = await engine.get_top_predictions(USER_ID, limit=2)

    assert [prediction.recipe_id for prediction in result.predictions] == ["morning-v60", "iced-latte"]
    top = result.predictions[0]
    assert top.predicted_rating == 5.0
    assert top.confidence == pytest.approx(0.9)
    assert top.context_bonuses == ["Suits this time of day (+0.30)"]
    assert result.context.time_of_day == TimeOfDay.MORNING
    assert result.context.weekday == 1
    assert result.context.location == HOME
    assert weather.requested_locations == [HOME]
    assert result.explanation.confidence == top.confidence
    assert "Weather 18.0°C influenced the pick" in result.explanation.evidence
    assert "Time of day (morning) added weight" in result.explanation.evidence


@pytest.mark.asyncio
async def test_hot_weather_and_mood_boosts(learning_engine) -> None:
    await learning_engine.initialize()
    engine = build_engine(learning_engine)
    context = PredictionContext(
        time_of_day=TimeOfDay.AFTERNOON,
        weather=WeatherContext(condition="clear", temperature_c=29.0, humidity=30.0),
        anticipated_mood=MoodCategory.STRESSED,
    )

    result = await engine.get_top_predictions(USER_ID, context)

    by_id = {prediction.recipe_id: prediction for prediction in result.predictions}
    assert "Fits the current weather (+0.35)" in by_id["iced-latte"].context_bonuses
    assert "Matches your anticipated mood (+0.25)" in by_id["rich-mocha"].context_bonuses
    assert result.context.anticipated_mood == MoodCategory.STRESSED


@pytest.mark.asyncio
async def test_travel_mode_penalizes_slow_recipes(learning_engine, kv_store) -> None:
    await learning_engine.initialize()
    telemetry = DefaultRecommendationTelemetry()
    events = capture_events(telemetry)
    engine = build_engine(learning_engine, telemetry=telemetry, store=kv_store)
    await engine.travel_mode_manager.activate(hours=2)

    result = await engine.get_top_predictions(USER_ID)

    assert result.simplified is True
    by_id = {prediction.recipe_id: prediction for prediction in result.predictions}
    assert by_id["morning-v60"].predicted_rating == 5.0
    assert "Simplified for travel mode (-0.15)" in by_id["morning-v60"].context_bonuses
    assert by_id["rich-mocha"].predicted_rating == pytest.approx(4.326, abs=2e-3)
    assert not any("travel" in bonus for bonus in by_id["iced-latte"].context_bonuses)
    assert events == [TelemetryEventType.TRAVEL_MODE, TelemetryEventType.GENERATED]


@pytest.mark.asyncio
async def test_stale_cache_entry_is_regenerated(learning_engine) -> None:
    await learning_engine.initialize()
    clock = MutableClock(NOW)
    fetcher = RecordingFetcher(CANDIDATES)
    engine = build_engine(learning_engine, fetcher=fetcher, cache_clock=clock)

    await engine.get_top_predictions(USER_ID)
    clock.advance(minutes=16)
    result = await engine.get_top_predictions(USER_ID)

    assert result.cached is False
    assert len(fetcher.calls) == 2


@pytest.mark.asyncio
async def test_different_context_misses_cache(learning_engine) -> None:
    await learning_engine.initialize()
    fetcher = RecordingFetcher(CANDIDATES)
    engine = build_engine(learning_engine, fetcher=fetcher)

    await engine.get_top_predictions(USER_ID)
    result = await engine.get_top_predictions(USER_ID, PredictionContext(weekday=3))

    assert result.cached is False
    assert result.context.weekday == 3
    assert len(fetcher.calls) == 2


@pytest.mark.asyncio
async def test_corrupt_cache_payload_is_a_miss(learning_engine, kv_store) -> None:
    await learning_engine.initialize()
    engine = build_engine(learning_engine, store=kv_store)
    await kv_store.set(engine.cache.key_for(USER_ID), "{not json")

    result = await engine.get_top_predictions(USER_ID)

    assert result.cached is False
    assert len(result.predictions) == 3


@pytest.mark.asyncio
async def test_cache_store_failures_do_not_break_recommendations(learning_engine) -> None:
    await learning_engine.initialize()
    engine = build_engine(learning_engine, store=BrokenStore())

    result = await engine.get_top_predictions(USER_ID)

    assert result.cached is False
    assert result.simplified is False
    assert [prediction.recipe_id for prediction in result.predictions] == [
        "morning-v60",
        "iced-latte",
        "rich-mocha",
    ]


@pytest.mark.asyncio
async def test_unavailable_weather_is_skipped(learning_engine) -> None:
    await learning_engine.initialize()
    engine = build_engine(learning_engine, weather_provider=FailingWeather())

    result = await engine.get_top_predictions(USER_ID)

    assert result.context.weather is None
    assert result.predictions


@pytest.mark.asyncio
async def test_no_candidates_yields_empty_result(learning_engine) -> None:
    await learning_engine.initialize()
    telemetry = DefaultRecommendationTelemetry()
    events = capture_events(telemetry)
    engine = build_engine(learning_engine, fetcher=RecordingFetcher([]), telemetry=telemetry)

    result = await engine.get_top_predictions(USER_ID)

    assert result.predictions == []
    assert result.explanation is None
    assert events == []


@pytest.mark.asyncio
async def test_requires_initialized_learning_engine(learning_engine) -> None:
    engine = build_engine(learning_engine)

    with pytest.raises(EngineNotInitializedError):
        await engine.get_top_predictions(USER_ID)


@pytest.mark.asyncio
async def test_rejects_other_users(learning_engine) -> None:
    await learning_engine.initialize()
    engine = build_engine(learning_engine)

    with pytest.raises(ValueError):
        await engine.get_top_predictions("someone-else")


@pytest.mark.asyncio
async def test_telemetry_failures_are_ignored(learning_engine) -> None:
    await learning_engine.initialize()
    engine = build_engine(learning_engine, telemetry=ExplodingTelemetry())

    result = await engine.get_top_predictions(USER_ID)

    assert result.predictions


@pytest.mark.asyncio
async def test_async_telemetry_is_scheduled(learning_engine) -> None:
    await learning_engine.initialize()
    telemetry = AsyncTelemetry()
    engine = build_engine(learning_engine, telemetry=telemetry)

    result = await engine.get_top_predictions(USER_ID)
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert telemetry.generated == [result.predictions[0].recipe_id]


@pytest.mark.asyncio
async def test_mood_is_inferred_when_missing(learning_engine) -> None:
    await learning_engine.initialize()
    for index in range(3):
        await learning_engine.ingest_brew(make_entry(minutes_ago=index, mood_before="stressed"))
    engine = build_engine(learning_engine)

    result = await engine.get_top_predictions(USER_ID)

    assert result.context.anticipated_mood == MoodCategory.STRESSED


@pytest.mark.asyncio
async def test_larger_limit_is_served_from_the_cached_ranking(learning_engine) -> None:
    await learning_engine.initialize()
    fetcher = RecordingFetcher(CANDIDATES)
    engine = build_engine(learning_engine, fetcher=fetcher)

    first = await engine.get_top_predictions(USER_ID, limit=1)
    second = await engine.get_top_predictions(USER_ID, limit=3)

    assert [prediction.recipe_id for prediction in first.predictions] == ["morning-v60"]
    assert second.cached is True
    assert [prediction.recipe_id for prediction in second.predictions] == [
        "morning-v60",
        "iced-latte",
        "rich-mocha",
    ]
    assert fetcher.calls == [4]


@pytest.mark.asyncio
async def test_limit_beyond_cached_candidates_refetches(learning_engine) -> None:
    await learning_engine.initialize()
    catalog = CANDIDATES + [make_recipe(f"house-{index}", sweetness=4 + index) for index in range(3)]
    fetcher = RecordingFetcher(catalog)
    engine = build_engine(learning_engine, fetcher=fetcher)

    await engine.get_top_predictions(USER_ID, limit=1)
    smaller = await engine.get_top_predictions(USER_ID, limit=2)
    larger = await engine.get_top_predictions(USER_ID, limit=5)

    assert smaller.cached is True
    assert len(smaller.predictions) == 2
    assert larger.cached is False
    assert len(larger.predictions) == 5
    assert fetcher.calls == [4, 20]
