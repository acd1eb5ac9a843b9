"""Shared schema base classes for profile, diary and prediction records."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def utc_timestamp() -> datetime:
    """Default factory for aware creation timestamps."""
    return datetime.now(timezone.utc)


class BrewModel(BaseModel):
    """Base model that supports attribute loading and round-trip dumps."""

    model_config = ConfigDict(from_attributes=True)


class FrozenModel(BrewModel):
    """Immutable record such as a diary entry."""

    model_config = ConfigDict(from_attributes=True, frozen=True)
