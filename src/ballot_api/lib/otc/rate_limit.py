"""Process-local sliding-window rate limiter.

Keeps a deque of hit times per key. State is not shared across processes or
replicas; it bounds bursts within one process. Keys whose window has emptied
are dropped.
"""

import time
from collections import deque
from collections.abc import Callable


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` hits per key within ``window_seconds``."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            msg = "max_requests must be positive"
            raise ValueError(msg)
        if window_seconds <= 0:
            msg = "window_seconds must be positive"
            raise ValueError(msg)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        return len(self._hits)

    def _prune(self, key: str, now: float) -> deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        window_start = now - self.window_seconds
        while hits and hits[0] <= window_start:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def hit(self, key: str) -> bool:
        """Record a request for ``key`` if the limit allows it.

        Args:
            key: Rate limit bucket (phone number, voter id, client IP).

        Returns:
            True if the request is allowed (and recorded), False if limited.
        """
        now = self._clock()
        hits = self._prune(key, now)
        if len(hits) >= self.max_requests:
            return False
        hits.append(now)
        self._hits[key] = hits
        return True

    def is_limited(self, key: str) -> bool:
        """Whether the next hit for ``key`` would be refused, without recording one."""
        return len(self._prune(key, self._clock())) >= self.max_requests

    def retry_after(self, key: str) -> float:
        """Seconds until ``key`` regains capacity (0 when not limited)."""
        now = self._clock()
        hits = self._prune(key, now)
        if len(hits) < self.max_requests:
            return 0.0
        return max(0.0, hits[0] + self.window_seconds - now)

    def reset(self, key: str | None = None) -> None:
        """Forget hits for one key, or for all keys."""
        if key is None:
            self._hits.clear()
        else:
            self._hits.pop(key, None)
