#!/usr/bin/env python3
"""
test retry, backoff and request scheduling.

run with: pytest test_resilience.py -v
"""

import threading

import pytest

from citenet.core.config import RetryConfig, CitenetConfig
from citenet.core.errors import (
    CitenetError, ProviderError, RateLimitError, ServerError, NetworkError
)
from citenet.core.resilience import RequestScheduler, execute_with_retry, backoff_delay


# =============================================================================
# Test Fixtures
# =============================================================================

class FakeClock:
    """manual clock; sleeping advances time."""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def flaky(failures, error=None, result="ok"):
    """operation failing `failures` times before succeeding."""
    calls = {"count": 0}

    def operation():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise error or RateLimitError("rate limited", status_code=429)
        return result

    operation.calls = calls
    return operation


# =============================================================================
# Backoff and Retry
# =============================================================================

class TestBackoff:
    def test_doubles(self):
        config = RetryConfig()
        assert [backoff_delay(config, i) for i in range(3)] == [2.0, 4.0, 8.0]

    def test_capped(self):
        assert backoff_delay(RetryConfig(max_delay=30.0), 10) == 30.0

    def test_jitter_bounds(self):
        config = RetryConfig(jitter=True)
        for _ in range(20):
            assert 1.0 <= backoff_delay(config, 0) <= 3.0


class TestExecuteWithRetry:
    """test retry loop."""

    def test_success_first_try(self, clock):
        assert execute_with_retry(lambda: 42, sleep=clock.sleep) == 42
        assert clock.sleeps == []

    def test_retries_then_succeeds(self, clock):
        op = flaky(2)
        assert execute_with_retry(op, sleep=clock.sleep) == "ok"
        assert clock.sleeps == [2.0, 4.0]
        assert op.calls["count"] == 3

    def test_gives_up_with_typed_error(self, clock):
        op = flaky(10, ServerError("server error 503", status_code=503))
        with pytest.raises(ServerError) as excinfo:
            execute_with_retry(op, sleep=clock.sleep)
        assert excinfo.value.status_code == 503
        # initial attempt plus three retries
        assert op.calls["count"] == 4
        assert clock.sleeps == [2.0, 4.0, 8.0]

    def test_network_errors_retried(self, clock):
        op = flaky(1, NetworkError("connection refused"))
        assert execute_with_retry(op, sleep=clock.sleep) == "ok"

    def test_non_retryable_raised_immediately(self, clock):
        op = flaky(1, ProviderError("bad request", status_code=400))
        with pytest.raises(ProviderError):
            execute_with_retry(op, sleep=clock.sleep)
        assert op.calls["count"] == 1
        assert clock.sleeps == []

    def test_zero_retries(self, clock):
        op = flaky(1)
        with pytest.raises(RateLimitError):
            execute_with_retry(op, RetryConfig(max_retries=0), sleep=clock.sleep)
        assert op.calls["count"] == 1


# =============================================================================
# Scheduler
# =============================================================================

class TestRequestScheduler:
    """test fifo scheduling with a minimum interval."""

    def test_first_request_not_delayed(self, clock):
        scheduler = RequestScheduler(clock=clock, sleep=clock.sleep)
        assert scheduler.submit(lambda: "first") == "first"
        assert clock.sleeps == []

    def test_back_to_back_requests_spaced(self, clock):
        scheduler = RequestScheduler(min_interval=1.1, clock=clock, sleep=clock.sleep)
        dispatched = []
        for _ in range(3):
            scheduler.submit(lambda: dispatched.append(clock.now))
        assert dispatched[1] - dispatched[0] == pytest.approx(1.1)
        assert dispatched[2] - dispatched[1] == pytest.approx(1.1)

    def test_no_wait_after_idle(self, clock):
        scheduler = RequestScheduler(min_interval=1.1, clock=clock, sleep=clock.sleep)
        scheduler.submit(lambda: None)
        clock.now += 5
        scheduler.submit(lambda: None)
        assert clock.sleeps == []

    def test_partial_wait(self, clock):
        scheduler = RequestScheduler(min_interval=1.1, clock=clock, sleep=clock.sleep)
        scheduler.submit(lambda: None)
        clock.now += 0.6
        scheduler.submit(lambda: None)
        assert clock.sleeps == [pytest.approx(0.5)]

    def test_arguments_passed(self, clock):
        scheduler = RequestScheduler(clock=clock, sleep=clock.sleep)
        assert scheduler.submit(lambda a, b=0: a + b, 2, b=3) == 5

    def test_error_propagates_and_queue_continues(self, clock):
        scheduler = RequestScheduler(clock=clock, sleep=clock.sleep)

        def boom():
            raise ServerError("server error 500", status_code=500)

        with pytest.raises(ServerError):
            scheduler.submit(boom)
        assert scheduler.submit(lambda: "after") == "after"
        assert scheduler.pending == 0

    def test_one_request_at_a_time(self):
        scheduler = RequestScheduler(min_interval=0.0)
        lock = threading.Lock()
        state = {"running": 0, "max_running": 0, "done": 0}

        def request():
            with lock:
                state["running"] += 1
                state["max_running"] = max(state["max_running"], state["running"])
            with lock:
                state["running"] -= 1
                state["done"] += 1

        threads = [threading.Thread(target=scheduler.submit, args=(request,)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert state["done"] == 8
        assert state["max_running"] == 1

    def test_closed_rejects(self, clock):
        with RequestScheduler(clock=clock, sleep=clock.sleep) as scheduler:
            scheduler.submit(lambda: None)
        assert scheduler.closed
        with pytest.raises(CitenetError):
            scheduler.submit(lambda: None)

    def test_stats_and_reset(self, clock):
        scheduler = RequestScheduler(min_interval=1.0, clock=clock, sleep=clock.sleep, name="s2")
        scheduler.submit(lambda: None)
        scheduler.submit(lambda: None)

        stats = scheduler.stats()
        assert stats["name"] == "s2"
        assert stats["dispatched"] == 2
        assert stats["total_wait"] == pytest.approx(1.0)

        scheduler.reset()
        assert scheduler.stats()["dispatched"] == 0
        scheduler.submit(lambda: None)
        assert clock.sleeps == [1.0]

    def test_independent_instances(self, clock):
        a = RequestScheduler(clock=clock, sleep=clock.sleep)
        b = RequestScheduler(clock=clock, sleep=clock.sleep)
        a.submit(lambda: None)
        b.submit(lambda: None)
        assert clock.sleeps == []


# =============================================================================
# Configuration
# =============================================================================

class TestConfig:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SEMANTIC_SCHOLAR_API_KEY", "secret")
        monkeypatch.setenv("CITENET_RATE_LIMIT_INTERVAL", "0.25")
        config = CitenetConfig.from_env()
        assert config.provider.api_key == "secret"
        assert config.provider.rate_limit_interval == 0.25

    def test_from_env_bad_interval(self, monkeypatch):
        monkeypatch.delenv("SEMANTIC_SCHOLAR_API_KEY", raising=False)
        monkeypatch.setenv("CITENET_RATE_LIMIT_INTERVAL", "soon")
        config = CitenetConfig.from_env()
        assert config.provider.rate_limit_interval == 1.1
        assert config.provider.api_key is None

    def test_minimal(self):
        config = CitenetConfig.minimal()
        assert config.builder.max_nodes == 30
        assert config.force.iterations == 50
        # presets do not leak into defaults
        assert CitenetConfig.default().builder.max_nodes == 100
