"""Tests for FixedWindowRateLimiter: window boundaries, overflow, isolation, atomicity."""

import threading

import pytest

from authmon.config import ServiceConfig
from authmon.runtime.ratelimit import FixedWindowRateLimiter


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestWindow:
    def test_sixth_request_rejected(self, clock):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=5, clock=clock)
        results = [rl.hit("1.2.3.4")[0] for _ in range(6)]
        assert results == [True] * 5 + [False]

    def test_request_after_window_succeeds(self, clock):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=5, clock=clock)
        for _ in range(6):
            rl.hit("1.2.3.4")
        clock.advance(60)
        assert rl.hit("1.2.3.4") == (True, 0)
        assert rl.remaining("1.2.3.4") == 4

    def test_still_blocked_just_before_expiry(self, clock):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=1, clock=clock)
        rl.hit("k")
        clock.advance(59.9)
        allowed, retry_after = rl.hit("k")
        assert allowed is False
        assert retry_after == 1

    def test_retry_after_counts_down(self, clock):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=1, clock=clock)
        rl.hit("k")
        clock.advance(20)
        assert rl.hit("k") == (False, 40)

    def test_rejected_hits_still_count(self, clock):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=2, clock=clock)
        for _ in range(5):
            rl.hit("k")
        assert rl.remaining("k") == 0
        assert rl.stats()["blocked"] == 3


class TestKeys:
    def test_keys_are_independent(self, clock):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=1, clock=clock)
        assert rl.hit("a")[0]
        assert rl.hit("b")[0]
        assert not rl.hit("a")[0]

    def test_reset_single_key(self, clock):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=1, clock=clock)
        rl.hit("a")
        rl.hit("b")
        rl.reset("a")
        assert rl.hit("a")[0]
        assert not rl.hit("b")[0]

    def test_sweep_evicts_expired_windows(self, clock):
        rl = FixedWindowRateLimiter(window_ms=1_000, max_requests=10, sweep_every=3, clock=clock)
        rl.hit("a")
        rl.hit("b")
        clock.advance(2)
        rl.hit("c")  # third hit triggers the sweep
        assert len(rl) == 1


class TestConfiguration:
    def test_disabled_never_blocks(self, clock):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=1, enabled=False, clock=clock)
        assert all(rl.hit("k")[0] for _ in range(10))
        assert len(rl) == 0

    def test_from_config(self):
        rl = FixedWindowRateLimiter.from_config(ServiceConfig(rate_limit_window_ms=5_000, rate_limit_max=3))
        assert rl.window_ms == 5_000
        assert rl.max_requests == 3

    @pytest.mark.parametrize("kwargs", [{"window_ms": 0}, {"max_requests": 0}])
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(**kwargs)


class TestConcurrency:
    def test_concurrent_hits_never_exceed_max(self):
        rl = FixedWindowRateLimiter(window_ms=60_000, max_requests=10)
        results = []
        lock = threading.Lock()
        barrier = threading.Barrier(50)

        def worker():
            barrier.wait()
            allowed, _ = rl.hit("shared")
            with lock:
                results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 10
        assert results.count(False) == 40
