"""Per-client request budgets for the public storefront routers."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import NamedTuple

from fastapi import Request, Response

from storefront.core.config import settings
from storefront.core.exceptions import RateLimitExceeded


@dataclass(frozen=True)
class RateLimitScope:
    name: str
    limit_setting: str
    # Methods that spend the budget; None means every request does.
    counted_methods: frozenset[str] | None = None

    def counts(self, method: str) -> bool:
        return self.counted_methods is None or method.upper() in self.counted_methods

    @property
    def limit(self) -> int:
        return int(getattr(settings, self.limit_setting))


# Browsing Q&A threads is free; asking, editing and answering spend the Q&A budget.
SCOPES: dict[str, RateLimitScope] = {
    "default": RateLimitScope("default", "RATE_LIMIT_MAX_REQUESTS"),
    "auth": RateLimitScope("auth", "RATE_LIMIT_AUTH_MAX_REQUESTS"),
    "qna": RateLimitScope("qna", "RATE_LIMIT_QNA_MAX_REQUESTS", frozenset({"POST", "PUT", "DELETE"})),
}


class RateLimitDecision(NamedTuple):
    allowed: bool
    remaining: int
    retry_after: int


class SlidingWindowLimiter:
    """Timestamps of recent hits per key, trimmed to the window on every hit."""

    def __init__(self, *, clock=time.monotonic) -> None:
        self._hits: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._clock = clock

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitDecision:
        if limit <= 0:
            return RateLimitDecision(True, limit, 0)
        now = self._clock()
        cutoff = now - window_seconds
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= limit:
                return RateLimitDecision(False, 0, max(int(hits[0] + window_seconds - now), 1))
            hits.append(now)
            return RateLimitDecision(True, limit - len(hits), 0)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


limiter = SlidingWindowLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


def rate_limit(scope: str = "default"):
    policy = SCOPES[scope]

    def _dependency(request: Request, response: Response) -> None:
        if not settings.RATE_LIMIT_ENABLED or not policy.counts(request.method):
            return
        limit = policy.limit
        window = settings.RATE_LIMIT_WINDOW_SECONDS
        decision = limiter.hit(f"{policy.name}:{client_ip(request)}", limit=limit, window_seconds=window)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(decision.remaining, 0))
        if not decision.allowed:
            raise RateLimitExceeded(retry_after=decision.retry_after, limit=limit, window_seconds=window)

    return _dependency
