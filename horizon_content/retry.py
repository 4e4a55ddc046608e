"""
Bounded retry with exponential backoff.

One policy object covers every upstream call that may need another try:
HTTP 202 "still computing" answers, empty aggregation results, network
errors, 5xx responses and rate limits that carry a reset time.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TypeVar

from horizon_content.exceptions import (
    ConfigurationError,
    EmptyResultError,
    HorizonError,
    NotReadyError,
    RateLimitedError,
    RetryExhaustedError,
    TransientUpstreamError,
)
from horizon_content.logging import get_logger, log_retry_attempt

T = TypeVar("T")

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]
RetryListener = Callable[[int, int], None]

logger = get_logger("retry")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior. Durations are in seconds."""

    max_attempts: int = 5
    initial_delay: float = 45.0
    growth_factor: float = 2.0
    max_delay: float = 300.0
    max_empty_attempts: int = 3
    max_rate_limit_wait: float = 300.0
    jitter: float = 0.0  # Jitter factor (0.1 = ±10%)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.max_empty_attempts < 1:
            raise ConfigurationError("max_empty_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ConfigurationError("retry delays must not be negative")
        if self.growth_factor < 1:
            raise ConfigurationError("growth_factor must be >= 1")
        if not 0 <= self.jitter < 1:
            raise ConfigurationError("jitter must be in [0, 1)")


class RetryController:
    """
    Run a single async operation with bounded retries.

    ``max_attempts`` is the total number of invocations. Between attempts the
    controller waits ``initial_delay * growth_factor ** n`` seconds, capped at
    ``max_delay``. A rate limit with a known reset time replaces that delay
    with the time left until the reset.

    Attempts are counted per ``run`` call. An optional listener is told
    ``(next_attempt, max_attempts)`` before each wait, so a view can show
    "attempt N of M" even while several runs share one controller.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Clock = utcnow,
    ) -> None:
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._clock = clock

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str = "operation",
        on_retry: RetryListener | None = None,
    ) -> T:
        """
        Execute ``operation`` until it succeeds or the attempt budget is spent.

        Args:
            operation: Zero-argument coroutine factory
            name: Label used in log messages
            on_retry: Called with (next_attempt, max_attempts) before each wait

        Returns:
            The operation's result. After ``max_empty_attempts`` empty answers
            the empty result itself is returned.

        Raises:
            RetryExhaustedError: When every attempt failed with a retryable error
            RateLimitedError: When the reset time is further away than
                ``max_rate_limit_wait``
            HorizonError: Any non-retryable error, immediately
        """
        config = self.config
        empty_answers = 0
        attempt = 0
        error: HorizonError

        while True:
            attempt += 1
            override: float | None = None
            try:
                return await operation()
            except EmptyResultError as e:
                empty_answers += 1
                if empty_answers >= config.max_empty_attempts or attempt >= config.max_attempts:
                    logger.info("%s: accepting empty result after %d attempt(s)", name, attempt)
                    return e.result
                error = e
            except RateLimitedError as e:
                override = self._rate_limit_wait(e)
                if override is not None and override > config.max_rate_limit_wait:
                    logger.warning(
                        "%s: rate limit resets in %.0fs, not waiting", name, override
                    )
                    raise
                error = e
            except (NotReadyError, TransientUpstreamError) as e:
                error = e

            if attempt >= config.max_attempts:
                raise RetryExhaustedError(error, attempt) from error

            delay = override if override is not None else self.get_backoff_time(attempt - 1)
            log_retry_attempt(name, attempt, config.max_attempts, delay, str(error))
            if on_retry is not None:
                on_retry(attempt + 1, config.max_attempts)
            await self._sleep(delay)

    def get_backoff_time(self, retry_index: int) -> float:
        """
        Delay before retry number ``retry_index`` (0-indexed).

        Args:
            retry_index: How many retries have already been waited for

        Returns:
            Time to wait in seconds
        """
        config = self.config
        base_wait = config.initial_delay * config.growth_factor ** retry_index

        if config.jitter:
            jitter_range = base_wait * config.jitter
            base_wait += random.uniform(-jitter_range, jitter_range)

        return min(base_wait, config.max_delay)

    def _rate_limit_wait(self, error: RateLimitedError) -> float | None:
        if error.reset_at is not None:
            return max(0.0, (error.reset_at - self._clock()).total_seconds())
        if error.retry_after is not None:
            return max(0.0, float(error.retry_after))
        return None
