"""
rate_limiter.py — Fixed-window request counter per client identity
===================================================================
Every inbound request is counted against the caller's identity (derived
from proxy origin headers). Each identity gets WINDOW_MS of budget for
LIMIT requests; the 61st request inside a window is refused until the
window rolls over.

The store is a plain dict owned by one FixedWindowRateLimiter instance,
built once per app and handed to the gate middleware. Nothing is
persisted; a restart forgets every window.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Mapping, Optional

logger = logging.getLogger("edulink.gate.rate_limiter")

WINDOW_MS = 60_000
LIMIT = 60
PRUNE_THRESHOLD = 10_000

UNKNOWN_IDENTITY = "unknown"
_ORIGIN_HEADERS = ("x-forwarded-for", "x-real-ip")


def _now_ms() -> int:
    return int(time.time() * 1000)


def client_identity(headers: Mapping[str, str]) -> str:
    """
    Return the caller's identity for rate limiting.

    Checks X-Forwarded-For then X-Real-IP; the first header whose first
    comma-separated token is non-empty wins. Falls back to "unknown",
    which means every header-less caller shares one bucket.
    """
    for name in _ORIGIN_HEADERS:
        value = headers.get(name)
        if not value:
            continue
        token = value.split(",")[0].strip()
        if token:
            return token
    return UNKNOWN_IDENTITY


@dataclass
class RateEntry:
    count: int
    reset_at: int  # epoch ms


@dataclass(frozen=True)
class RateDecision:
    """Outcome of counting one request."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after: Optional[int] = None  # seconds, only set when refused

    def headers(self) -> Dict[str, str]:
        out = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if self.retry_after is not None:
            out["Retry-After"] = str(self.retry_after)
        return out


class FixedWindowRateLimiter:
    """In-process fixed-window counter keyed by client identity."""

    def __init__(
        self,
        limit: int = LIMIT,
        window_ms: int = WINDOW_MS,
        prune_threshold: int = PRUNE_THRESHOLD,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.limit = limit
        self.window_ms = window_ms
        self.prune_threshold = prune_threshold
        self._clock = clock
        self._entries: Dict[str, RateEntry] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, identity: str) -> Optional[RateEntry]:
        return self._entries.get(identity)

    def hit(self, identity: str, now: Optional[int] = None) -> RateDecision:
        """Count one request from ``identity`` and decide whether to admit it."""
        if now is None:
            now = self._clock()

        with self._lock:
            if len(self._entries) > self.prune_threshold:
                self._prune_locked(now)

            entry = self._entries.get(identity)
            if entry is None or entry.reset_at <= now:
                entry = RateEntry(count=1, reset_at=now + self.window_ms)
                self._entries[identity] = entry
            else:
                entry.count += 1
            count, reset_at = entry.count, entry.reset_at

        if count > self.limit:
            retry_after = -(-(reset_at - now) // 1000)  # ceil to whole seconds
            logger.warning(
                "Rate limit exceeded for %s (%d/%d, retry in %ds)",
                identity, count, self.limit, retry_after,
            )
            return RateDecision(
                allowed=False,
                limit=self.limit,
                remaining=0,
                reset_at=reset_at,
                retry_after=retry_after,
            )

        return RateDecision(
            allowed=True,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_at=reset_at,
        )

    def prune(self, now: Optional[int] = None) -> int:
        """Drop every entry whose window has expired. Returns how many went."""
        if now is None:
            now = self._clock()
        with self._lock:
            return self._prune_locked(now)

    def _prune_locked(self, now: int) -> int:
        expired = [key for key, entry in self._entries.items() if entry.reset_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Pruned %d expired rate-limit entries", len(expired))
        return len(expired)

    def reset(self) -> None:
        """Forget every window."""
        with self._lock:
            self._entries.clear()
