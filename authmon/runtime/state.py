from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

from authmon.detection.classify import LastSeenTracker
from authmon.runtime.ratelimit import FixedWindowRateLimiter


@dataclass
class ProcessState:
    started_at: float = field(default_factory=time.monotonic)
    last_seen: LastSeenTracker = field(default_factory=LastSeenTracker)
    # Built from config on first request.
    limiter: Optional[FixedWindowRateLimiter] = None

    def uptime(self) -> float:
        return time.monotonic() - self.started_at


STATE = ProcessState()
