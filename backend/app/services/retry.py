from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger("app.services.retry")

T = TypeVar("T")


def _always_retry(exc: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with linear backoff: ``base_delay_sec * attempt`` between attempts."""

    max_attempts: int = 1
    base_delay_sec: float = 0.5
    retryable: Callable[[BaseException], bool] = _always_retry
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def delay_for(self, attempt: int) -> float:
        return max(0.0, float(self.base_delay_sec)) * max(1, int(attempt))

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "operation") -> T:
        attempts = max(1, int(self.max_attempts))
        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except Exception as exc:
                if attempt >= attempts or not self.retryable(exc):
                    logger.warning("%s gave up | attempt=%s/%s err=%s", label, attempt, attempts, exc)
                    raise
                delay = self.delay_for(attempt)
                logger.warning("%s failed, retrying | attempt=%s/%s delay=%.2fs err=%s", label, attempt, attempts, delay, exc)
                await self.sleep(delay)
        raise RuntimeError("unreachable")


NO_RETRY = RetryPolicy(max_attempts=1, base_delay_sec=0.0)
