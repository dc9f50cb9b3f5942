"""RetryExecutor — exponential backoff with jitter around fallible async calls."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
BASE_DELAY = 0.2  # seconds, doubled per attempt
MAX_JITTER = 0.5  # seconds


class RetryExecutor:
    """Call an async operation, retrying failures with backoff.

    Delay before retry `k` (1-based) is `BASE_DELAY * 2**(k-1) + jitter`,
    jitter uniform in `[0, MAX_JITTER]`. The last error is re-raised once
    attempts are exhausted. Whether an operation is safe to repeat is the
    caller's call: side-effecting calls should use a smaller budget.
    """

    def __init__(
        self,
        base_delay: float = BASE_DELAY,
        max_jitter: float = MAX_JITTER,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self._base_delay = base_delay
        self._max_jitter = max_jitter
        self._sleep = sleep
        self._jitter = jitter

    def delay_for(self, attempt: int) -> float:
        """Backoff before retrying after failed attempt number `attempt`."""
        return self._base_delay * 2 ** (attempt - 1) + self._jitter(0.0, self._max_jitter)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        label: str = "operation",
    ) -> T:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= max_attempts:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s failed (attempt %d/%d): %s, retrying in %.2fs",
                    label,
                    attempt,
                    max_attempts,
                    e,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1
