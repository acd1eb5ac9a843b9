"""Shared pytest fixtures: fixed clocks, in-memory adapters and a SQLite database."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from brewmate.adapters.memory import InMemoryKeyValueStore, InMemoryStorage
from brewmate.db.base import Base
from brewmate.services.preference_learning import PreferenceLearningEngine
from brewmate.tests.utils import NOW, USER_ID, MutableClock


@pytest.fixture()
def clock() -> MutableClock:
    return MutableClock(NOW)


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def learning_engine(storage: InMemoryStorage, clock: MutableClock) -> PreferenceLearningEngine:
    return PreferenceLearningEngine(
        USER_ID,
        storage,
        learning_rate=0.1,
        decay_factor=0.95,
        history_limit=200,
        now_provider=clock,
    )


@pytest_asyncio.fixture()
async def session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'brewmate-test.db'}", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()
