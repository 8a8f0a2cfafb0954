from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from portfolio.errors import RateLimitExceeded
from portfolio.ratelimit import RATE_LIMITS, FixedWindowLimiter, RateLimitPolicy, get_client_ip

from .helpers import admin_headers


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _request(headers: dict[str, str], host: str = "10.0.0.1") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(name.lower().encode(), value.encode()) for name, value in headers.items()],
        "client": (host, 1234),
    }
    return Request(scope)


def test_bucket_policies() -> None:
    assert RATE_LIMITS["api"].requests == 100
    assert RATE_LIMITS["api"].window == timedelta(minutes=15)
    assert RATE_LIMITS["upload"].requests == 500
    assert RATE_LIMITS["upload"].window == timedelta(hours=1)
    assert RATE_LIMITS["auth"].requests == 5
    assert RATE_LIMITS["auth"].window == timedelta(minutes=15)


def test_limiter_blocks_after_quota_and_resets_with_window() -> None:
    clock = FakeClock()
    limiter = FixedWindowLimiter(
        "test", RateLimitPolicy(requests=2, window=timedelta(seconds=60), message="slow down"), clock=clock
    )

    limiter.hit("a")
    limiter.hit("a")
    clock.now += 20
    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.hit("a")
    assert excinfo.value.message == "slow down"
    assert excinfo.value.retry_after == 40

    limiter.hit("b")

    clock.now += 40
    limiter.hit("a")


def test_limiter_reset_forgets_clients() -> None:
    limiter = FixedWindowLimiter("test", RateLimitPolicy(1, timedelta(minutes=1), "no"), clock=FakeClock())
    limiter.hit("a")
    limiter.reset()
    limiter.hit("a")


def test_forwarded_headers_ignored_without_trust_proxy() -> None:
    request = _request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2"})
    assert get_client_ip(request) == "10.0.0.1"


def test_forwarded_headers_honoured_with_trust_proxy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRUST_PROXY", "true")
    assert get_client_ip(_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2"})) == "203.0.113.9"
    assert get_client_ip(_request({"X-Real-IP": "198.51.100.4"})) == "198.51.100.4"
    assert get_client_ip(_request({})) == "10.0.0.1"


def test_auth_bucket_limits_pin_verification(client: TestClient) -> None:
    for _ in range(5):
        assert client.get("/api/admin/verify", headers=admin_headers("0000")).status_code == 401

    response = client.get("/api/admin/verify", headers=admin_headers())

    assert response.status_code == 429
    assert response.text == "Too many authentication attempts, please try again later."
    assert response.headers["content-type"].startswith("text/plain")
    assert int(response.headers["Retry-After"]) > 0


def test_buckets_are_independent(client: TestClient) -> None:
    for _ in range(6):
        client.get("/api/admin/verify", headers=admin_headers())

    assert client.get("/api/projects").status_code == 200


def test_api_bucket_limits_reads(client: TestClient) -> None:
    for _ in range(100):
        assert client.get("/api/projects").status_code == 200

    response = client.get("/api/projects")
    assert response.status_code == 429
    assert response.text == "Too many requests from this IP, please try again later."


def test_health_is_not_rate_limited(client: TestClient) -> None:
    for _ in range(110):
        assert client.get("/api/health").status_code == 200


def test_limiter_evicts_expired_clients() -> None:
    clock = FakeClock()
    limiter = FixedWindowLimiter("test", RateLimitPolicy(5, timedelta(seconds=60), "no"), clock=clock)
    for address in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        limiter.hit(address)
    assert limiter.tracked_clients == 3

    clock.now += 30
    limiter.hit("10.0.0.4")
    assert limiter.tracked_clients == 4

    clock.now += 45
    limiter.hit("10.0.0.5")
    assert limiter.tracked_clients == 2
