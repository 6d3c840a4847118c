"""Test the admin fixed-window rate limiter."""

import threading

from rate_limit import FixedWindowRateLimiter


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestFixedWindowRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=3, clock=FakeClock())
        assert [limiter.hit("1.2.3.4") for _ in range(4)] == [True, True, True, False]

    def test_clients_are_independent(self):
        limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=1, clock=FakeClock())
        assert limiter.hit("a")
        assert not limiter.hit("a")
        assert limiter.hit("b")

    def test_window_resets(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=1, clock=clock)
        assert limiter.hit("a")
        assert not limiter.hit("a")
        clock.now += 61
        assert limiter.hit("a")

    def test_expired_windows_are_evicted(self):
        clock = FakeClock()
        limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=5, clock=clock)
        for i in range(50):
            limiter.hit(f"10.0.0.{i}")
        assert len(limiter) == 50

        clock.now += 61
        limiter.hit("10.0.1.1")

        assert len(limiter) == 1

    def test_table_is_bounded(self):
        limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=5, max_clients=10, clock=FakeClock())
        for i in range(100):
            limiter.hit(f"client-{i}")
        assert len(limiter) == 10

    def test_concurrent_hits_are_counted_once_each(self):
        limiter = FixedWindowRateLimiter(window_seconds=60, max_requests=100, clock=FakeClock())
        results = []
        lock = threading.Lock()

        def worker():
            for _ in range(50):
                allowed = limiter.hit("shared")
                with lock:
                    results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 100
        assert results.count(False) == 100
