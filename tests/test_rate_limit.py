from flight_finder.config import configure
from flight_finder.rate_limit import RateLimiter, get_rate_limiter, reset_rate_limiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limits_per_client_within_window():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=60, enabled=True, clock=clock)
    assert limiter.is_allowed("a")
    assert limiter.is_allowed("a")
    assert not limiter.is_allowed("a")
    assert limiter.is_allowed("b")
    assert limiter.remaining("a") == 0
    assert limiter.remaining("b") == 1


def test_check_reports_remaining_and_retry_after():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=60, enabled=True, clock=clock)
    assert limiter.check("a") == (True, 1, 0.0)
    assert limiter.check("a") == (True, 0, 0.0)
    clock.now += 15
    decision = limiter.check("a")
    assert not decision.allowed
    assert decision.retry_after == 45


def test_window_slides():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=1, window_seconds=60, enabled=True, clock=clock)
    assert limiter.is_allowed("a")
    clock.now += 30
    assert limiter.wait_time("a") == 30
    clock.now += 30
    assert limiter.wait_time("a") == 0
    assert limiter.is_allowed("a")


def test_disabled_limiter_allows_everything():
    limiter = RateLimiter(max_requests=1, window_seconds=60, enabled=False)
    assert all(limiter.is_allowed("a") for _ in range(5))
    assert limiter.remaining("a") == 1
    assert limiter.wait_time("a") == 0


def test_reset_clears_history():
    limiter = RateLimiter(max_requests=1, window_seconds=60, enabled=True)
    limiter.is_allowed("a")
    limiter.reset()
    assert limiter.is_allowed("a")


def test_global_limiter_follows_config():
    configure(rate_limit_requests=5)
    reset_rate_limiter()
    assert get_rate_limiter().max_requests == 5
    assert get_rate_limiter() is get_rate_limiter()
