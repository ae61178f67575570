"""
API Key Rate Limiting

Sliding-window limit per API key, applied after API key authentication.
"""

import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict

DEFAULT_MAX_REQUESTS = 200
DEFAULT_WINDOW_SECONDS = 15 * 60


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: int

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }


class ApiKeyRateLimiter:
    """
    In-memory sliding window limiter keyed by API key id.

    Limits are per key, not per IP, so one key cannot monopolise the
    service by spreading requests across addresses. State is local to the
    process. Keys with no hits inside the window are swept once per window.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)

    def check(self, key: str) -> RateLimitDecision:
        """Record a hit for key unless it is over the limit"""
        now = self._clock()
        window_start = now - self.window_seconds

        if now - self._last_sweep >= self.window_seconds:
            self._sweep(window_start)
            self._last_sweep = now

        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_at=math.ceil(hits[0] + self.window_seconds),
            )

        hits.append(now)
        return RateLimitDecision(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - len(hits),
            reset_at=math.ceil(hits[0] + self.window_seconds),
        )

    def reset(self, key: str) -> None:
        self._hits.pop(key, None)

    def _sweep(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
