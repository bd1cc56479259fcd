"""Unit tests for client.retry — retry classification and backoff delays."""

from __future__ import annotations

import pytest

from client.errors import ApiError, ErrorKind
from client.retry import RetryPolicy


class TestIsRetryable:
    @pytest.mark.parametrize(
        "kind",
        [ErrorKind.TIMEOUT, ErrorKind.NETWORK, ErrorKind.SERVER_ERROR, ErrorKind.RATE_LIMITED],
    )
    def test_transient(self, kind):
        assert RetryPolicy().is_retryable(ApiError(kind)) is True

    @pytest.mark.parametrize(
        "kind",
        [
            ErrorKind.CLIENT_ERROR,
            ErrorKind.NOT_FOUND,
            ErrorKind.AUTH_REQUIRED,
            ErrorKind.INVALID_RESPONSE,
            ErrorKind.OFFLINE,
            ErrorKind.CANCELLED,
        ],
    )
    def test_permanent(self, kind):
        assert RetryPolicy().is_retryable(ApiError(kind)) is False


class TestDelay:
    def test_exponential_without_jitter(self):
        policy = RetryPolicy(max_attempts=5, base_delay=0.5, max_jitter=0.25)
        delays = [policy.delay(n, rand=lambda: 0.0) for n in range(2, 6)]
        assert delays == [0.5, 1.0, 2.0, 4.0]

    def test_jitter_is_bounded(self):
        policy = RetryPolicy(base_delay=0.5, max_jitter=0.25)
        assert policy.delay(2, rand=lambda: 0.0) == 0.5
        assert policy.delay(2, rand=lambda: 0.999) < 0.75

    def test_non_decreasing_with_worst_case_jitter(self):
        """Max jitter on one attempt never outweighs the next doubling."""
        policy = RetryPolicy(max_attempts=6, base_delay=0.5, max_jitter=0.5)
        for n in range(2, 6):
            assert policy.delay(n, rand=lambda: 0.999) <= policy.delay(n + 1, rand=lambda: 0.0)

    def test_first_attempt_has_no_delay(self):
        assert RetryPolicy().delay(1) == 0.0

    def test_jitter_cannot_exceed_base(self):
        with pytest.raises(ValueError):
            RetryPolicy(base_delay=0.1, max_jitter=0.2)

    def test_at_least_one_attempt(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)
