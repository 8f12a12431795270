"""Retry policy for indexer calls: exponential backoff with jitter."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from pagosettle.errors import UpstreamThrottled, UpstreamTimeout

log = logging.getLogger(__name__)

T = TypeVar("T")

# Errors worth retrying at the transport layer. Everything else propagates.
RETRYABLE = (UpstreamThrottled, UpstreamTimeout)


@dataclass
class RetryPolicy:
    """Bounded retries for throttled or timed-out indexer requests.

    Attempt ``n`` (0-based) waits ``min(base_delay * 2**n, max_delay)`` plus
    up to ``jitter`` random seconds. A ``Retry-After`` hint from the upstream
    raises the wait to at least that value.
    """

    max_retries: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: float = 0.25

    def delay_for(self, attempt: int, retry_after: float | None = None) -> float:
        delay = min(self.base_delay * (2**attempt), self.max_delay)
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        if retry_after is not None:
            delay = max(delay, retry_after)
        return delay

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "request") -> T:
        """Await ``operation()``, retrying retryable failures.

        After ``max_retries`` retries the last error is raised to the caller.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except RETRYABLE as exc:
                if attempt >= self.max_retries:
                    log.warning(
                        "Indexer %s failed after %d attempts: %s",
                        description, attempt + 1, exc,
                    )
                    raise
                retry_after = getattr(exc, "retry_after", None)
                delay = self.delay_for(attempt, retry_after)
                attempt += 1
                log.warning(
                    "Indexer %s %s (attempt %d/%d), retrying in %.2fs",
                    description,
                    "throttled" if isinstance(exc, UpstreamThrottled) else "timed out",
                    attempt, self.max_retries + 1, delay,
                )
                await asyncio.sleep(delay)
