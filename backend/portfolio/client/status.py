"""Transient status banners shown by the admin console."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable


HISTORY_SIZE = 50


class Level(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    PROGRESS = "progress"


@dataclass(frozen=True)
class Banner:
    message: str
    level: Level
    expires_at: float | None


class StatusBoard:
    """Holds the single current banner; it disappears once its TTL passes."""

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._banner: Banner | None = None
        self.history: deque[Banner] = deque(maxlen=HISTORY_SIZE)

    def post(self, message: str, level: Level = Level.INFO, *, ttl: float | None = 3.0) -> Banner:
        """Replace the current banner. ``ttl=None`` keeps it until the next post."""

        expires_at = None if ttl is None else self._clock() + ttl
        banner = Banner(message=message, level=level, expires_at=expires_at)
        self._banner = banner
        self.history.append(banner)
        return banner

    def clear(self) -> None:
        self._banner = None

    @property
    def current(self) -> Banner | None:
        banner = self._banner
        if banner is not None and banner.expires_at is not None and self._clock() >= banner.expires_at:
            self._banner = None
            return None
        return banner
