"""HTTP utilities providing bounded retry/backoff semantics."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import httpx

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class RetryConfig:
    def __init__(
        self,
        *,
        attempts: int = 3,
        backoff_seconds: float = 1.0,
        retry_statuses: frozenset[int] = RETRYABLE_STATUSES,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds
        self.retry_statuses = retry_statuses


def _retry_delay(response: httpx.Response | None, config: RetryConfig, attempt: int) -> float:
    if response is not None and response.status_code == 429:
        retry_after = response.headers.get("Retry-After", "")
        if retry_after.isdigit():
            return float(retry_after)
    return config.backoff_seconds * attempt


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    **kwargs,
) -> httpx.Response:
    """Call ``func`` until it yields a non-retryable response or attempts run out.

    The last response is returned even if its status is retryable; transport
    errors are re-raised once every attempt has failed.
    """
    config = retry_config or RetryConfig()
    last_exception: Exception | None = None
    response: httpx.Response | None = None

    for attempt in range(1, config.attempts + 1):
        try:
            response = await func(*args, **kwargs)
        except httpx.TransportError as exc:
            last_exception = exc
            response = None
        else:
            last_exception = None
            if response.status_code not in config.retry_statuses:
                return response
        if attempt < config.attempts:
            await asyncio.sleep(_retry_delay(response, config, attempt))

    if response is not None:
        return response
    if last_exception is not None:
        raise last_exception
    raise RuntimeError("Request failed without raising an exception")


__all__ = ["RETRYABLE_STATUSES", "RetryConfig", "request_with_retry"]
