"""Retrying JSON GET helper shared by outbound HTTP adapters."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = logging.getLogger("brewmate.adapters.http")

RETRYABLE_ERRORS = (httpx.TransportError, httpx.HTTPStatusError)


class ExternalAPIError(Exception):
    """Upstream answered with a server error or an unusable body."""


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning("Retrying upstream request (attempt %d): %s", state.attempt_number, error)


async def fetch_json(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    timeout: float = 15,
    attempts: int = 3,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """GET ``url`` and decode a JSON object, retrying 5xx and transport errors."""
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential_jitter(initial=1, max=8),
        retry=retry_if_exception_type((*RETRYABLE_ERRORS, ExternalAPIError)),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                response = await client.get(url, headers=headers, params=params)
                if response.status_code >= 500:
                    raise ExternalAPIError(f"{url} answered {response.status_code}")
                response.raise_for_status()
                try:
                    body = response.json()
                except ValueError as exc:
                    raise ExternalAPIError(f"{url} returned invalid JSON") from exc
                if not isinstance(body, dict):
                    raise ExternalAPIError(f"{url} returned {type(body).__name__}, expected an object")
                return body
    raise ExternalAPIError(f"{url} could not be fetched")
