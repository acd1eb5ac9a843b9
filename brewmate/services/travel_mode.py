"""Travel mode state: a temporary switch that favors quick recipes."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

from pydantic import ValidationError

from brewmate.adapters.base import KeyValueStore
from brewmate.core.config import settings
from brewmate.schema.base import BrewModel
from brewmate.utils.datetime import ensure_aware, utcnow

logger = logging.getLogger("brewmate.services.travel_mode")

STATE_KEY = "travel_mode"


class TravelModeState(BrewModel):
    enabled: bool = False
    expires_at: datetime | None = None


class TravelModeManager:
    """Reads and writes travel mode state through a key-value store."""

    def __init__(self, store: KeyValueStore, *, now_provider: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self._now = now_provider

    async def is_travel_mode_active(self) -> bool:
        """Return True while an unexpired activation is stored."""
        state = await self._get_state()
        if state is None:
            return False
        if state.expires_at and ensure_aware(state.expires_at) < self._now():
            await self._clear_expired()
            return False
        return state.enabled

    async def should_simplify(self) -> bool:
        return await self.is_travel_mode_active()

    async def activate(self, hours: int | None = None) -> TravelModeState:
        duration = hours or settings.travel_mode_default_hours
        state = TravelModeState(enabled=True, expires_at=self._now() + timedelta(hours=duration))
        await self.store.set(STATE_KEY, state.model_dump_json())
        logger.info("Travel mode active until %s", state.expires_at.isoformat())
        return state

    async def deactivate(self) -> None:
        await self.store.set(STATE_KEY, TravelModeState(enabled=False).model_dump_json())
        logger.info("Travel mode deactivated")

    async def _get_state(self) -> TravelModeState | None:
        try:
            raw = await self.store.get(STATE_KEY)
        except Exception as exc:  # an unreachable store reads as inactive
            logger.warning("Travel mode state unavailable: %s", exc)
            return None
        if not raw:
            return None
        try:
            return TravelModeState.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Unreadable travel mode state ignored: %s", exc)
            return None

    async def _clear_expired(self) -> None:
        try:
            await self.store.delete(STATE_KEY)
        except Exception as exc:
            logger.warning("Expired travel mode state not cleared: %s", exc)
