"""Telemetry sink for recommendation lifecycle events."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from brewmate.schema.recommendation import PredictionContext, PredictionResult
from brewmate.utils.datetime import utcnow

logger = logging.getLogger("brewmate.services.recommendation_telemetry")


class TelemetryEventType(str, enum.Enum):
    GENERATED = "generated"
    CACHE_HIT = "cache-hit"
    TRAVEL_MODE = "travel-mode"


@dataclass(slots=True)
class TelemetryEvent:
    """One recommendation lifecycle notification."""
    type: TelemetryEventType
    user_id: str | None = None
    context: PredictionContext | None = None
    prediction: PredictionResult | None = None
    recorded_at: datetime = field(default_factory=utcnow)

    def as_log_payload(self) -> dict[str, Any]:
        return {
            "event": f"recommendation_{self.type.value}",
            "user_id": self.user_id,
            "context": self.context.model_dump(mode="json", exclude_none=True) if self.context else None,
            "recipe_id": self.prediction.recipe_id if self.prediction else None,
            "recorded_at": self.recorded_at.isoformat(),
        }


class RecommendationTelemetry:
    """Contract for telemetry sinks; return values are ignored by callers."""

    def record_generated(self, user_id: str, context: PredictionContext, prediction: PredictionResult | None) -> Any:
        return None

    def record_cache_hit(self, user_id: str, context: PredictionContext) -> Any:
        return None

    def record_travel_mode(self) -> Any:
        return None


TelemetryListener = Callable[[TelemetryEvent], None]


class DefaultRecommendationTelemetry(RecommendationTelemetry):
    """Logs each event as JSON and fans it out to registered listeners."""

    def __init__(self) -> None:
        self._listeners: list[TelemetryListener] = []

    def add_listener(self, listener: TelemetryListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TelemetryListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def record_generated(self, user_id: str, context: PredictionContext, prediction: PredictionResult | None) -> None:
        self._emit(TelemetryEvent(TelemetryEventType.GENERATED, user_id=user_id, context=context, prediction=prediction))

    def record_cache_hit(self, user_id: str, context: PredictionContext) -> None:
        self._emit(TelemetryEvent(TelemetryEventType.CACHE_HIT, user_id=user_id, context=context))

    def record_travel_mode(self) -> None:
        self._emit(TelemetryEvent(TelemetryEventType.TRAVEL_MODE))

    def _emit(self, event: TelemetryEvent) -> None:
        logger.info(json.dumps(event.as_log_payload()))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:  # listeners must never break recommendations
                logger.warning("Telemetry listener failed for %s: %s", event.type.value, exc)
