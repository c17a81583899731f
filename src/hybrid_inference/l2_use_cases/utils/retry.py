"""Caller-side retry for provider calls. Providers and engines never retry internally."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, Field

from hybrid_inference.l1_entities.errors import ProviderNetworkError, ProviderServerError, RateLimitedError

log = logging.getLogger('hinf.retry')

T = TypeVar('T')


class RetryPolicy(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0.0)
    max_delay: float = Field(default=30.0, ge=0.0)

    def backoff(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt."""
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, (RateLimitedError, ProviderNetworkError)):
        return True
    return isinstance(exc, ProviderServerError) and exc.status_code >= 500


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation()``, retrying rate limits, network errors and 5xx responses.

    Rate limits wait the provider's ``retry_after`` (capped at ``max_delay``);
    the others back off exponentially. Anything else is raised at once, and the
    last error is raised when attempts run out.
    """
    policy = policy or RetryPolicy()
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if not _is_retryable(exc) or attempt >= policy.max_attempts:
                raise
            if isinstance(exc, RateLimitedError):
                delay = min(exc.retry_after, policy.max_delay)
            else:
                delay = policy.backoff(attempt)
            log.warning('Attempt %d/%d failed (%s); retrying in %.1fs', attempt, policy.max_attempts, exc, delay)
            await sleep(delay)
            attempt += 1
