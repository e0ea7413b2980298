"""Retry policy for outbound provider calls.

Wraps tenacity so callers describe *what* is retryable (a predicate over the
raised exception) and *how often* (attempt bound and base delay), and get the
same exponential backoff everywhere:

    policy = RetryPolicy(max_retries=5, base_delay=0.75, is_retryable=is_transient)
    result = await policy.run(lambda: client.call(...))

The delay before retry ``n`` is ``base_delay * 2 ** (n - 1)``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from docsearch.constants.embedding import EMBED_BASE_DELAY_SECONDS, EMBED_MAX_RETRIES

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _never(_: BaseException) -> bool:
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff driven by an exception predicate.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1).
        base_delay: Delay in seconds before the first retry.
        is_retryable: Returns True if the exception is transient.
        sleep: Coroutine used to wait between attempts (replaceable in tests).
    """

    max_retries: int = EMBED_MAX_RETRIES
    base_delay: float = EMBED_BASE_DELAY_SECONDS
    is_retryable: Callable[[BaseException], bool] = _never
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def controller(self) -> AsyncRetrying:
        """Build a fresh tenacity controller for one logical call."""
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.base_delay, exp_base=2, min=0),
            retry=retry_if_exception(self.is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self.sleep,
            reraise=True,
        )

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Await ``operation()`` until it succeeds or a non-retryable error occurs.

        Raises:
            The last exception raised by ``operation`` once retries are exhausted,
            or the first non-retryable one.
        """
        async for attempt in self.controller():
            with attempt:
                result = await operation()
        return result
