"""Retry policy: which failures are worth another attempt, and how long to wait."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable

from client.errors import ApiError, ErrorKind

RETRYABLE_KINDS = frozenset({
    ErrorKind.TIMEOUT,
    ErrorKind.NETWORK,
    ErrorKind.SERVER_ERROR,
    ErrorKind.RATE_LIMITED,
})


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with bounded random jitter.

    ``max_attempts`` counts the first try.  The wait before attempt ``n``
    (n >= 2) is ``base_delay * 2**(n-2)`` plus up to ``max_jitter``
    seconds of jitter, so with the jitter capped at ``base_delay`` the
    waits never shrink from one attempt to the next.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_jitter: float = 0.25

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_jitter < 0:
            raise ValueError("delays must not be negative")
        if self.max_jitter > self.base_delay:
            raise ValueError("max_jitter must not exceed base_delay")

    def is_retryable(self, error: ApiError) -> bool:
        return error.kind in RETRYABLE_KINDS

    def delay(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Seconds to wait before *attempt* (2 for the first retry)."""
        if attempt < 2:
            return 0.0
        return self.base_delay * 2 ** (attempt - 2) + rand() * self.max_jitter
