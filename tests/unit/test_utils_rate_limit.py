import time

import fakeredis
import pytest
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from backend.utils.errors import RateLimited
from backend.utils.rate_limit import (
    InMemoryAttemptStore,
    LoginAttemptLimiter,
    RedisAttemptStore,
    build_login_limiter,
    optional_rate_limit,
)


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _make_app(times=2, seconds=60):
    app = FastAPI()

    @app.get("/limitedA", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def limited_a():
        return {"ok": True}

    @app.get("/limitedB", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def limited_b():
        return {"ok": True}

    return app


def test_memory_limiter_locks_after_max_attempts():
    clock = _Clock()
    limiter = LoginAttemptLimiter(InMemoryAttemptStore(clock), max_attempts=3, lockout_seconds=900)

    for _ in range(3):
        limiter.check("1.2.3.4")
        limiter.record_failure("1.2.3.4")

    with pytest.raises(RateLimited) as exc:
        limiter.check("1.2.3.4")
    assert exc.value.status_code == 429
    assert exc.value.message == "Too many failed attempts. Try again in 15 minutes."
    # une autre IP n'est pas concernée
    limiter.check("5.6.7.8")


def test_memory_limiter_reports_remaining_minutes_and_expires():
    clock = _Clock()
    limiter = LoginAttemptLimiter(InMemoryAttemptStore(clock), max_attempts=2, lockout_seconds=900)
    limiter.record_failure("ip")
    limiter.record_failure("ip")

    clock.now += 800
    with pytest.raises(RateLimited) as exc:
        limiter.check("ip")
    assert "2 minutes" in exc.value.message

    clock.now += 101
    limiter.check("ip")


def test_reset_clears_failures():
    limiter = LoginAttemptLimiter(InMemoryAttemptStore(_Clock()), max_attempts=1, lockout_seconds=60)
    limiter.record_failure("ip")
    limiter.reset("ip")
    limiter.check("ip")


def test_evict_expired_purges_stale_keys():
    clock = _Clock()
    store = InMemoryAttemptStore(clock)
    store.incr("old", ttl=10)
    clock.now += 5
    store.incr("fresh", ttl=10)
    clock.now += 6

    assert store.evict_expired() == 1
    assert len(store) == 1
    assert store.get("fresh")[0] == 1


def test_redis_store_shares_counters_between_limiters():
    client = fakeredis.FakeRedis(decode_responses=True)
    first = LoginAttemptLimiter(RedisAttemptStore(client), max_attempts=2, lockout_seconds=900)
    second = LoginAttemptLimiter(RedisAttemptStore(client), max_attempts=2, lockout_seconds=900)

    first.record_failure("ip")
    second.record_failure("ip")

    with pytest.raises(RateLimited):
        first.check("ip")
    assert 0 < client.ttl("login-fail:ip") <= 900

    second.reset("ip")
    first.check("ip")


def test_build_login_limiter_defaults_to_memory():
    limiter = build_login_limiter("memory", 5, 900)
    assert isinstance(limiter.store, InMemoryAttemptStore)
    assert (limiter.max_attempts, limiter.lockout_seconds) == (5, 900)


def test_rate_limit_fallback_is_per_path(monkeypatch):
    client = TestClient(_make_app(times=2, seconds=60))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.get("/limitedA").status_code == 200
    assert client.get("/limitedA").status_code == 200
    assert client.get("/limitedA").status_code == 429
    assert client.get("/limitedB").status_code == 200


def test_rate_limit_fallback_window_expires(monkeypatch):
    client = TestClient(_make_app(times=1, seconds=1))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.get("/limitedA").status_code == 200
    assert client.get("/limitedA").status_code == 429
    time.sleep(1.1)
    assert client.get("/limitedA").status_code == 200


def test_rate_limit_disabled_flag_bypasses_limit(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    app = _make_app(times=1, seconds=60)
    app.state.rate_limit_enabled = False
    client = TestClient(app)

    for _ in range(3):
        assert client.get("/limitedA").status_code == 200
