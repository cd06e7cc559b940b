"""Fixed-window request limiter keyed by client address.

Each key owns a window of `window_ms`; the first `max_requests` hits inside
it are accepted and every later hit (including the one that overflows) is
rejected until the window expires.  In-memory and per-process.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from authmon.config import ServiceConfig


@dataclass
class RateLimitWindow:
    count: int
    started_at: float  # seconds, from the limiter's clock


class FixedWindowRateLimiter:
    __slots__ = ("window_ms", "max_requests", "enabled", "sweep_every", "_clock", "_windows", "_lock", "_hits", "_blocked")

    def __init__(
        self,
        window_ms: int = 15 * 60 * 1000,
        max_requests: int = 100,
        enabled: bool = True,
        sweep_every: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.enabled = enabled
        self.sweep_every = sweep_every
        self._clock = clock
        self._windows: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._blocked = 0

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "FixedWindowRateLimiter":
        return cls(
            window_ms=config.rate_limit_window_ms,
            max_requests=config.rate_limit_max,
            enabled=config.rate_limit_enabled,
        )

    @property
    def window_seconds(self) -> float:
        return self.window_ms / 1000.0

    def hit(self, key: str) -> Tuple[bool, int]:
        """Count one request for *key*.

        Returns (allowed, retry_after_seconds).  retry_after is 0 when allowed.
        """
        if not self.enabled:
            return True, 0

        now = self._clock()
        with self._lock:
            self._hits += 1
            if self.sweep_every and self._hits % self.sweep_every == 0:
                self._sweep(now)

            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                window = RateLimitWindow(count=0, started_at=now)
                self._windows[key] = window

            window.count += 1
            if window.count > self.max_requests:
                self._blocked += 1
                remaining = window.started_at + self.window_seconds - now
                return False, max(1, math.ceil(remaining))
        return True, 0

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                return self.max_requests
            return max(0, self.max_requests - window.count)

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def stats(self) -> dict:
        with self._lock:
            return {
                "enabled": self.enabled,
                "window_ms": self.window_ms,
                "max_requests": self.max_requests,
                "tracked_keys": len(self._windows),
                "blocked": self._blocked,
            }

    def _sweep(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now - w.started_at >= self.window_seconds]
        for k in expired:
            del self._windows[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
