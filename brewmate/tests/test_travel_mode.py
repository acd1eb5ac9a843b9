from __future__ import annotations

import logging

import pytest

from brewmate.adapters.memory import InMemoryKeyValueStore
from brewmate.services.travel_mode import STATE_KEY, TravelModeManager


@pytest.mark.asyncio
async def test_travel_mode_inactive_by_default(kv_store, clock) -> None:
    manager = TravelModeManager(kv_store, now_provider=clock)
    assert await manager.is_travel_mode_active() is False
    assert await manager.should_simplify() is False


@pytest.mark.asyncio
async def test_activation_expires(kv_store, clock) -> None:
    manager = TravelModeManager(kv_store, now_provider=clock)

    state = await manager.activate(hours=3)
    assert state.enabled is True
    assert await manager.is_travel_mode_active() is True

    clock.advance(hours=4)
    assert await manager.is_travel_mode_active() is False
    assert await kv_store.get(STATE_KEY) is None


@pytest.mark.asyncio
async def test_deactivate(kv_store, clock) -> None:
    manager = TravelModeManager(kv_store, now_provider=clock)
    await manager.activate()

    await manager.deactivate()

    assert await manager.should_simplify() is False


@pytest.mark.asyncio
async def test_unreadable_state_counts_as_inactive(kv_store, clock) -> None:
    await kv_store.set(STATE_KEY, "garbage")
    manager = TravelModeManager(kv_store, now_provider=clock)

    assert await manager.is_travel_mode_active() is False


class OfflineStore(InMemoryKeyValueStore):
    def __init__(self, *, fail_reads: bool = True) -> None:
        super().__init__()
        self.fail_reads = fail_reads

    async def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise ConnectionError("store offline")
        return await super().get(key)

    async def delete(self, key: str) -> None:
        raise ConnectionError("store offline")


@pytest.mark.asyncio
async def test_unreachable_store_counts_as_inactive(clock, caplog) -> None:
    manager = TravelModeManager(OfflineStore(), now_provider=clock)

    with caplog.at_level(logging.WARNING, logger="brewmate.services.travel_mode"):
        assert await manager.is_travel_mode_active() is False
        assert await manager.should_simplify() is False

    assert "store offline" in caplog.text


@pytest.mark.asyncio
async def test_expired_state_stays_inactive_when_delete_fails(clock) -> None:
    store = OfflineStore(fail_reads=False)
    manager = TravelModeManager(store, now_provider=clock)
    await manager.activate(hours=1)

    clock.advance(hours=2)

    assert await manager.is_travel_mode_active() is False
