from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict


@dataclass
class RateLimitResult:
    allowed: bool
    retry_after: float


class RateLimiter:
    def __init__(
        self,
        max_calls: int,
        period_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_calls = max_calls
        self.period_seconds = period_seconds
        self._clock = clock
        self._calls: Dict[str, Deque[float]] = {}

    def allow(self, key: str) -> RateLimitResult:
        now = self._clock()
        window = self._calls.get(key, deque())
        while window and now - window[0] > self.period_seconds:
            window.popleft()
        self._prune(now)
        if len(window) >= self.max_calls:
            retry_after = self.period_seconds - (now - window[0])
            return RateLimitResult(False, max(retry_after, 0))
        window.append(now)
        self._calls[key] = window
        return RateLimitResult(True, 0)

    def _prune(self, now: float) -> None:
        # Drop clients whose whole window has expired.
        for key in [key for key, window in self._calls.items() if now - window[-1] > self.period_seconds]:
            del self._calls[key]
