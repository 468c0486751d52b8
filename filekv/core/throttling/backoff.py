import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from filekv.core.errors import StorageIOError

T = TypeVar("T")


@dataclass
class ExponentialBackoff:
    """
    A simple exponential backoff mechanism with optional jitter.

    Used to space out retries of record file operations that failed for
    a transient reason, typically descriptor exhaustion under heavy
    concurrent load. The delay grows exponentially according to:

        next_delay = min(current * factor, maximum) + jitter

    The jitter component keeps tasks that failed together from retrying
    in lockstep and exhausting descriptors again.
    """

    initial: float = 0.005
    """Initial delay (in seconds) before the first retry."""

    maximum: float = 1.0
    """Maximum allowed delay (in seconds)."""

    factor: float = 2.0
    """Multiplicative factor applied to the delay after each retry."""

    jitter: float = 0.005
    """Maximum random jitter added to each delay."""

    _current: float = None
    """Internal state tracking the current delay."""

    def __post_init__(self):
        self._current = self.initial

    def next_delay(self) -> float:
        """
        Compute and return the next backoff delay.

        The delay is computed as:
            delay = current_delay + random_jitter
            current_delay = min(current_delay * factor, maximum)
        """
        delay = self._current

        self._current = min(self._current * self.factor, self.maximum)

        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)

        return delay


@dataclass
class RetryPolicy:
    """
    Retries an operation while it fails with a retryable StorageIOError.

    Permanent failures propagate on the first occurrence. Transient ones
    are retried until `max_attempts` calls have been made, after which
    the last error propagates to the caller.
    """

    initial: float = 0.005
    maximum: float = 1.0
    factor: float = 2.0
    jitter: float = 0.005
    max_attempts: int = 5

    def backoff(self) -> ExponentialBackoff:
        return ExponentialBackoff(
            initial=self.initial,
            maximum=self.maximum,
            factor=self.factor,
            jitter=self.jitter,
        )

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        logger = logging.getLogger("core.throttling.retry")
        backoff = self.backoff()
        attempt = 1

        while True:
            try:
                return await operation()
            except StorageIOError as ex:
                if not ex.retryable or attempt >= self.max_attempts:
                    raise

                delay = backoff.next_delay()
                logger.warning(
                    f"Transient storage failure (attempt {attempt}/"
                    f"{self.max_attempts}), retrying in {delay:.3f}s: {ex}"
                )
                attempt += 1
                await asyncio.sleep(delay)
