"""Open-Meteo backed weather provider."""

from __future__ import annotations

import logging

import httpx

from brewmate.adapters.base import WeatherProvider, WeatherUnavailableError
from brewmate.adapters.http import ExternalAPIError, fetch_json
from brewmate.core.config import settings
from brewmate.schema.brew import Location, WeatherCondition, WeatherContext

logger = logging.getLogger("brewmate.adapters.weather")

CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,weather_code,wind_speed_10m"


def condition_from_wmo_code(code: int | None) -> WeatherCondition:
    """Translate a WMO weather interpretation code into a category."""
    if code is None:
        return WeatherCondition.UNKNOWN
    if code == 0 or code == 1:
        return WeatherCondition.CLEAR
    if code in (2, 3):
        return WeatherCondition.CLOUDY
    if code in (45, 48):
        return WeatherCondition.FOG
    if 51 <= code <= 67 or 80 <= code <= 82:
        return WeatherCondition.RAIN
    if 71 <= code <= 77 or code in (85, 86):
        return WeatherCondition.SNOW
    if 95 <= code <= 99:
        return WeatherCondition.STORM
    return WeatherCondition.UNKNOWN


class OpenMeteoWeatherProvider(WeatherProvider):
    """Fetch current conditions for a coordinate pair."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        attempts: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.weather_api_url
        self.timeout = timeout or settings.weather_timeout_seconds
        self.attempts = attempts
        self.transport = transport

    async def get_weather(self, location: Location | None = None) -> WeatherContext | None:
        if location is None:
            return None
        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current": CURRENT_FIELDS,
        }
        try:
            payload = await fetch_json(
                self.base_url,
                params=params,
                timeout=self.timeout,
                attempts=self.attempts,
                transport=self.transport,
            )
        except (httpx.HTTPError, ExternalAPIError) as exc:
            raise WeatherUnavailableError(f"Weather lookup failed: {exc}") from exc

        current = payload.get("current")
        if not isinstance(current, dict):
            raise WeatherUnavailableError("Weather payload missing current conditions")
        code = current.get("weather_code")
        weather = WeatherContext(
            condition=condition_from_wmo_code(int(code) if code is not None else None),
            temperature_c=current.get("temperature_2m"),
            humidity=current.get("relative_humidity_2m"),
            wind_speed=current.get("wind_speed_10m"),
        )
        logger.debug("Weather for %.2f,%.2f: %s", location.latitude, location.longitude, weather.condition.value)
        return weather
