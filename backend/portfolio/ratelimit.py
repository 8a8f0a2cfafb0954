"""Per-client fixed-window rate limiting.

Three independent buckets protect the API: general reads/writes, uploads and
authentication-sensitive actions. State is kept in-process; a restart resets
all windows.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Awaitable, Callable

from fastapi import Request

from .config import trust_proxy
from .errors import RateLimitExceeded


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    Rate limit policy configuration.

    Attributes:
        requests: Maximum number of requests allowed per window
        window: Length of the window
        message: Text returned to clients that exceed the limit
    """

    requests: int
    window: timedelta
    message: str

    def __str__(self) -> str:
        return f"{self.requests} requests per {self.window.total_seconds():.0f}s"


RATE_LIMITS = {
    "api": RateLimitPolicy(
        requests=100,
        window=timedelta(minutes=15),
        message="Too many requests from this IP, please try again later.",
    ),
    # Generous so bulk uploads of a whole folder fit in one window.
    "upload": RateLimitPolicy(
        requests=500,
        window=timedelta(hours=1),
        message="Too many upload requests, please try again later.",
    ),
    "auth": RateLimitPolicy(
        requests=5,
        window=timedelta(minutes=15),
        message="Too many authentication attempts, please try again later.",
    ),
}


def get_client_ip(request: Request) -> str:
    """
    Get the client address used as the rate-limit key.

    ``X-Forwarded-For`` and ``X-Real-IP`` are only honoured when
    ``TRUST_PROXY=true``; otherwise clients could spoof them to dodge limits.
    """

    if trust_proxy():
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    if request.client is None:
        return "unknown"
    return request.client.host


class FixedWindowLimiter:
    """Counts hits per key inside fixed windows of ``policy.window``."""

    def __init__(
        self,
        name: str,
        policy: RateLimitPolicy,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.policy = policy
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_prune = clock()

    def hit(self, key: str) -> None:
        """Record one request for ``key``; raise once the window is exhausted."""

        now = self._clock()
        window_seconds = self.policy.window.total_seconds()
        with self._lock:
            if now - self._last_prune >= window_seconds:
                self._prune(now, window_seconds)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)

        if count > self.policy.requests:
            retry_after = max(1, int(started + window_seconds - now))
            logger.warning("Rate limit %s exceeded for %s (%s)", self.name, key, self.policy)
            raise RateLimitExceeded(self.policy.message, retry_after=retry_after)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._windows)

    def _prune(self, now: float, window_seconds: float) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= window_seconds]
        for key in expired:
            del self._windows[key]
        self._last_prune = now


def build_limiters(clock: Callable[[], float] = time.monotonic) -> dict[str, FixedWindowLimiter]:
    return {name: FixedWindowLimiter(name, policy, clock=clock) for name, policy in RATE_LIMITS.items()}


def rate_limit(bucket: str) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency that charges the request to ``bucket``."""

    async def dependency(request: Request) -> None:
        limiter: FixedWindowLimiter = request.app.state.limiters[bucket]
        limiter.hit(get_client_ip(request))

    dependency.__name__ = f"rate_limit_{bucket}"
    return dependency
