"""Sliding-window rate limiter for AI analysis requests."""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from typing import Callable

from tempo.core.errors import RateLimitError

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key.

    Timestamps older than the window are discarded on every check, so the
    window slides continuously rather than resetting on fixed boundaries.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}

    def _prune(self, key: str, now: float) -> deque[float]:
        hits = self._hits.setdefault(key, deque())
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        return hits

    def check(self, key: str) -> None:
        """Record a request for ``key`` or raise RateLimitError."""
        now = self._clock()
        hits = self._prune(key, now)
        if len(hits) >= self.max_requests:
            retry_after = max(1, math.ceil(hits[0] + self.window_seconds - now))
            logger.warning("Rate limit hit for %s; retry after %ds", key, retry_after)
            raise RateLimitError(
                f"Too many analysis requests. Try again in {retry_after} seconds.",
                retry_after=retry_after,
            )
        hits.append(now)

    def remaining(self, key: str) -> int:
        """Requests still allowed for ``key`` in the current window."""
        return max(0, self.max_requests - len(self._prune(key, self._clock())))

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._hits.clear()
        else:
            self._hits.pop(key, None)
