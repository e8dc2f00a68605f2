"""HTTP helpers with linear retry/backoff for console reads."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2


def is_retryable_status(status_code: int) -> bool:
    return status_code >= 500


def backoff_delay(retry_number: int, base_delay: float) -> float:
    """Linear backoff: base, 2 * base, 3 * base, ..."""
    return base_delay * retry_number


async def request_with_retries(
    request_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = 0.5,
) -> httpx.Response:
    """Execute an HTTP request, retrying 5xx responses and transport errors.

    Only use this for idempotent reads. ``max_retries`` counts retries, so the
    request runs at most ``max_retries + 1`` times. The last 5xx response is
    returned as-is for the caller to turn into an error.
    """
    attempts = max_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            response = await request_fn()
        except httpx.RequestError as exc:
            if attempt >= attempts:
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning("HTTP request failed, retrying", exc_info=exc)
            if delay:
                await asyncio.sleep(delay)
            continue

        if is_retryable_status(response.status_code) and attempt < attempts:
            delay = backoff_delay(attempt, base_delay)
            logger.warning("HTTP request returned %s, retrying", response.status_code)
            if delay:
                await asyncio.sleep(delay)
            continue

        return response

    return response
