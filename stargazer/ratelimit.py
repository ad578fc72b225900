"""Fixed-window request counters keyed by endpoint and client."""

from dataclasses import dataclass
import math
import threading
import time
from typing import Callable, Mapping


@dataclass
class RateLimitState:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int


@dataclass(frozen=True)
class RateLimit:
    limit: int
    window_s: float


RATE_LIMITS = {
    # read endpoints that call external APIs
    "external_api": RateLimit(limit=60, window_s=60.0),
    # outbound calls to one provider
    "provider": RateLimit(limit=30, window_s=60.0),
}


class RateLimiter:
    def __init__(self, cleanup_interval_s: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.cleanup_interval_s = cleanup_interval_s
        self._clock = clock
        self._buckets: dict[str, RateLimitState] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def _cleanup(self, now: float) -> None:
        if now - self._last_cleanup < self.cleanup_interval_s:
            return
        self._last_cleanup = now
        for key in [k for k, state in self._buckets.items() if now >= state.reset_at]:
            del self._buckets[key]

    def check(self, key: str, limit: int, window_s: float) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            self._cleanup(now)
            state = self._buckets.get(key)
            if state is None or now >= state.reset_at:
                state = RateLimitState(count=0, reset_at=now + window_s)
                self._buckets[key] = state
            state.count += 1
            retry_after = max(1, math.ceil(state.reset_at - now))
            if state.count > limit:
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_at=state.reset_at,
                    retry_after_seconds=retry_after,
                )
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit - state.count,
                reset_at=state.reset_at,
                retry_after_seconds=retry_after,
            )

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


def _header(headers: Mapping[str, str], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Client identity for rate limiting.

    ``x-real-ip`` is set by the platform proxy and wins. Otherwise the
    right-most ``x-forwarded-for`` entry is used; entries to its left are
    supplied by the client and can be forged.
    """
    real_ip = _header(headers, "x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    forwarded = _header(headers, "x-forwarded-for")
    if forwarded:
        ips = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
        if ips:
            return ips[-1]
    return "unknown"


def rate_limit_key(endpoint: str, headers: Mapping[str, str]) -> str:
    return f"{endpoint}:{get_client_ip(headers)}"
