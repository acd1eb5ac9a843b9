from __future__ import annotations

import pytest
from pydantic import ValidationError

from brewmate.core.config import Settings


def test_defaults() -> None:
    config = Settings(_env_file=None)
    assert config.learning_rate == 0.1
    assert config.decay_factor == 0.95
    assert config.recommendation_cache_ttl_minutes == 15


def test_log_level_is_normalized() -> None:
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"
    assert Settings(_env_file=None, log_level="chatty").log_level == "INFO"


@pytest.mark.parametrize("field", ["learning_rate", "decay_factor"])
@pytest.mark.parametrize("value", [0, -0.1, 1.5])
def test_rates_must_be_in_unit_interval(field: str, value: float) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_default_coordinates_come_in_pairs() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, default_latitude=48.1)
    config = Settings(_env_file=None, default_latitude=48.1, default_longitude=17.1)
    assert config.default_longitude == 17.1


def test_environment_prefix(monkeypatch) -> None:
    monkeypatch.setenv("BREWMATE_HISTORY_CACHE_LIMIT", "5")
    monkeypatch.setenv("BREWMATE_REDIS_URL", "redis://cache:6379/1")

    config = Settings(_env_file=None)

    assert config.history_cache_limit == 5
    assert config.redis_url == "redis://cache:6379/1"
