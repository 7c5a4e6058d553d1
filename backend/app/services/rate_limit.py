from __future__ import annotations

from collections import defaultdict, deque
from threading import Lock
import time
from typing import Deque

from fastapi import HTTPException, Request, status


class SlidingWindowRateLimiter:
    """Counts hits per key inside a trailing time window.

    One instance lives on ``app.state.rate_limiter`` for the lifetime of the
    application; nothing here is module-global.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._buckets: dict[str, Deque[float]] = defaultdict(deque)
        self._lock = Lock()
        self._clock = clock

    def hit(self, key: str, *, limit: int, window_seconds: int) -> int | None:
        """Record a hit; return ``None`` if allowed, else seconds until retry."""
        now = self._clock()
        cutoff = now - window_seconds
        with self._lock:
            bucket = self._buckets[key]
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) >= limit:
                return max(1, int(bucket[0] + window_seconds - now))
            bucket.append(now)
        return None

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(
    request: Request,
    *,
    scope: str,
    limit: int,
    window_seconds: int,
    identity: str | None = None,
) -> None:
    limiter: SlidingWindowRateLimiter = request.app.state.rate_limiter
    key = "|".join((scope, client_address(request), (identity or "").strip().lower()))
    retry_after = limiter.hit(key, limit=limit, window_seconds=window_seconds)
    if retry_after is None:
        return
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many requests for {scope}. Try again in {retry_after} second(s).",
        headers={"Retry-After": str(retry_after)},
    )
