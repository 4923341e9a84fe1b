"""Unit tests for RateLimiter."""

from __future__ import annotations

from rate_limiter import ANALYSIS_MIN_INTERVAL, DEFAULT_MIN_INTERVAL, RateLimiter


def test_defaults() -> None:
    assert DEFAULT_MIN_INTERVAL == 5.0
    assert ANALYSIS_MIN_INTERVAL == 10.0
    assert RateLimiter().min_interval == DEFAULT_MIN_INTERVAL


def test_can_proceed_initially(clock) -> None:
    limiter = RateLimiter(10, clock=clock)
    assert limiter.can_proceed()
    assert limiter.time_until_next_allowed() == 0


def test_blocked_immediately_after_invocation(clock) -> None:
    limiter = RateLimiter(10, clock=clock)
    limiter.record_invocation()
    assert not limiter.can_proceed()
    assert limiter.time_until_next_allowed() == 10


def test_allows_again_only_after_full_interval(clock) -> None:
    limiter = RateLimiter(10, clock=clock)
    limiter.record_invocation()

    clock.advance(9.999)
    assert not limiter.can_proceed()

    clock.advance(0.001)
    assert limiter.can_proceed()


def test_wait_is_non_increasing_and_never_negative(clock) -> None:
    limiter = RateLimiter(10, clock=clock)
    limiter.record_invocation()

    previous = limiter.time_until_next_allowed()
    for _ in range(15):
        clock.advance(1)
        current = limiter.time_until_next_allowed()
        assert 0 <= current <= previous
        previous = current
    assert previous == 0


def test_new_invocation_restarts_window(clock) -> None:
    limiter = RateLimiter(10, clock=clock)
    limiter.record_invocation()
    clock.advance(12)
    assert limiter.can_proceed()

    limiter.record_invocation()
    assert not limiter.can_proceed()
    assert limiter.time_until_next_allowed() == 10
