"""Retry strategies for node execution.

Used by the node execution adapter when a workflow runs with
``error_handling=retry``. Timeouts are never retried.

Example:
    >>> strategy = ExponentialBackoff(max_retries=3, base_delay=0.5, max_delay=4.0, jitter=False)
    >>> [strategy.next_delay(a) for a in range(3)]
    [0.5, 1.0, 2.0]
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

from conductor.core.errors import ErrorCategory, categorize_error
from conductor.core.settings import ConductorSettings, get_settings


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before next retry attempt.

        Args:
            attempt: Zero-based retry number (0 = first retry)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        """Determine if another retry should be attempted.

        Args:
            attempt: Retries already made
            error: The exception that caused the failure
        """
        ...


@dataclass
class ExponentialBackoff(RetryStrategy):
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) + jitter
    """

    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 10.0
    multiplier: float = 2.0
    jitter: bool = False
    jitter_range: float = 0.25

    def next_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.multiplier**attempt), self.max_delay)
        if self.jitter:
            jitter_amount = delay * self.jitter_range
            delay = max(0.0, delay + random.uniform(-jitter_amount, jitter_amount))
        return delay

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        if attempt >= self.max_retries:
            return False
        return error is None or categorize_error(error) != ErrorCategory.TIMEOUT

    @classmethod
    def from_settings(
        cls,
        settings: ConductorSettings | None = None,
        *,
        max_retries: int | None = None,
    ) -> ExponentialBackoff:
        """Build a strategy from ``CONDUCTOR_RETRY_*`` settings."""
        settings = settings or get_settings()
        return cls(
            max_retries=settings.default_max_retries if max_retries is None else max_retries,
            base_delay=settings.retry_base_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
            jitter=settings.retry_jitter,
        )


@dataclass
class ConstantBackoff(RetryStrategy):
    """Constant delay between retries."""

    max_retries: int = 2
    delay: float = 0.0

    def next_delay(self, attempt: int) -> float:
        return self.delay

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        if attempt >= self.max_retries:
            return False
        return error is None or categorize_error(error) != ErrorCategory.TIMEOUT


@dataclass
class NoRetry(RetryStrategy):
    """No retry - fail immediately."""

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        return False
