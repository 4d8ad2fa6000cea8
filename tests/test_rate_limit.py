import pytest

from common.security import FixedWindowRateLimiter, build_rate_limiters
from main import app


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_limit_then_blocks():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(3, 60, clock=clock)
    results = [limiter.hit("ip") for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].retry_after == 60


def test_window_resets():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(1, 60, clock=clock)
    assert limiter.hit("ip").allowed
    clock.now += 59
    blocked = limiter.hit("ip")
    assert not blocked.allowed
    assert blocked.retry_after == 1
    clock.now += 1
    assert limiter.hit("ip").allowed


def test_keys_are_independent():
    limiter = FixedWindowRateLimiter(1, 60, clock=FakeClock())
    assert limiter.hit("a").allowed
    assert limiter.hit("b").allowed
    assert not limiter.hit("a").allowed


def test_reset_clears_counters():
    limiter = FixedWindowRateLimiter(1, 60, clock=FakeClock())
    limiter.hit("a")
    limiter.reset()
    assert limiter.hit("a").allowed


def test_build_rate_limiters():
    assert build_rate_limiters(enabled=False) == {}
    limiters = build_rate_limiters(enabled=True)
    assert set(limiters) == {"auth", "api", "upload"}
    assert limiters["auth"].max_requests == 5
    assert limiters["auth"].window_seconds == 300


@pytest.fixture
def limited_auth():
    previous = app.state.rate_limiters
    app.state.rate_limiters = {"auth": FixedWindowRateLimiter(2, 300)}
    yield
    app.state.rate_limiters = previous


def test_login_rate_limited(client, limited_auth):
    body = {"username": "nobody", "password": "wrongpass"}
    headers = {"X-Forwarded-For": "203.0.113.9"}
    first = client.post("/api/auth/login", json=body, headers=headers)
    second = client.post("/api/auth/login", json=body, headers=headers)
    third = client.post("/api/auth/login", json=body, headers=headers)

    assert first.status_code == 401
    assert second.status_code == 401
    assert third.status_code == 429
    assert third.json()["error"] == "RATE_LIMIT_EXCEEDED"
    assert int(third.headers["Retry-After"]) > 0
    assert third.headers["X-RateLimit-Remaining"] == "0"

    # another client address has its own window
    other = client.post("/api/auth/login", json=body, headers={"X-Forwarded-For": "198.51.100.1"})
    assert other.status_code == 401
