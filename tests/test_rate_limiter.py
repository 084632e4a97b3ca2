"""
Tests for the fixed-window rate limiter: identity derivation, window
accounting, refusal metadata, and opportunistic pruning.

Run with: pytest tests/test_rate_limiter.py -v
"""
from __future__ import annotations

from edulink.gate.rate_limiter import (
    LIMIT,
    WINDOW_MS,
    FixedWindowRateLimiter,
    RateEntry,
    client_identity,
)


# ---------------------------------------------------------------------------
# Client identity
# ---------------------------------------------------------------------------

class TestClientIdentity:
    def test_forwarded_for_first_hop_wins(self):
        headers = {"x-forwarded-for": " 1.2.3.4 , 10.0.0.1", "x-real-ip": "9.9.9.9"}
        assert client_identity(headers) == "1.2.3.4"

    def test_falls_back_to_real_ip(self):
        assert client_identity({"x-real-ip": "9.9.9.9"}) == "9.9.9.9"

    def test_empty_forwarded_for_is_skipped(self):
        headers = {"x-forwarded-for": " , 10.0.0.1", "x-real-ip": "9.9.9.9"}
        assert client_identity(headers) == "9.9.9.9"

    def test_unknown_when_no_origin_headers(self):
        assert client_identity({}) == "unknown"
        assert client_identity({"x-forwarded-for": ""}) == "unknown"


# ---------------------------------------------------------------------------
# Window accounting
# ---------------------------------------------------------------------------

class TestFixedWindow:
    def test_sixty_requests_admitted_with_decreasing_remaining(self):
        limiter = FixedWindowRateLimiter()
        remaining = [limiter.hit("1.2.3.4", now=0).remaining for _ in range(LIMIT)]
        assert remaining == list(range(LIMIT - 1, -1, -1))
        assert remaining[0] == 59 and remaining[-1] == 0

    def test_sixty_first_request_is_throttled(self):
        limiter = FixedWindowRateLimiter()
        for _ in range(LIMIT):
            assert limiter.hit("1.2.3.4", now=0).allowed

        refused = limiter.hit("1.2.3.4", now=0)
        assert not refused.allowed
        assert refused.remaining == 0
        assert refused.retry_after == 60
        assert refused.reset_at == WINDOW_MS

        # Later requests inside the same window stay refused
        assert not limiter.hit("1.2.3.4", now=30_000).allowed

    def test_retry_after_rounds_up(self):
        limiter = FixedWindowRateLimiter(limit=1)
        limiter.hit("a", now=0)
        assert limiter.hit("a", now=59_001).retry_after == 1
        assert limiter.hit("a", now=58_999).retry_after == 2

    def test_expired_window_starts_fresh(self):
        limiter = FixedWindowRateLimiter()
        for _ in range(LIMIT + 1):
            limiter.hit("1.2.3.4", now=0)

        decision = limiter.hit("1.2.3.4", now=60_001)
        assert decision.allowed
        assert limiter.get("1.2.3.4") == RateEntry(count=1, reset_at=60_001 + WINDOW_MS)
        assert decision.remaining == LIMIT - 1

    def test_window_expires_exactly_at_reset(self):
        limiter = FixedWindowRateLimiter(limit=1)
        limiter.hit("a", now=0)
        assert not limiter.hit("a", now=WINDOW_MS - 1).allowed
        assert limiter.hit("a", now=WINDOW_MS).allowed

    def test_identities_are_counted_independently(self):
        limiter = FixedWindowRateLimiter(limit=2)
        limiter.hit("a", now=0)
        limiter.hit("a", now=0)
        assert not limiter.hit("a", now=0).allowed
        assert limiter.hit("b", now=0).allowed

    def test_headers_on_admit_and_refuse(self):
        limiter = FixedWindowRateLimiter(limit=1)
        admitted = limiter.hit("a", now=1_000).headers()
        assert admitted == {
            "X-RateLimit-Limit": "1",
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(1_000 + WINDOW_MS),
        }
        refused = limiter.hit("a", now=1_000).headers()
        assert refused["Retry-After"] == "60"
        assert refused["X-RateLimit-Remaining"] == "0"

    def test_uses_injected_clock(self):
        now = {"t": 5_000}
        limiter = FixedWindowRateLimiter(clock=lambda: now["t"])
        limiter.hit("a")
        assert limiter.get("a").reset_at == 5_000 + WINDOW_MS
        now["t"] = 5_000 + WINDOW_MS
        limiter.hit("a")
        assert limiter.get("a").reset_at == 5_000 + 2 * WINDOW_MS

    def test_reset_forgets_everything(self):
        limiter = FixedWindowRateLimiter()
        limiter.hit("a", now=0)
        limiter.reset()
        assert len(limiter) == 0


# ---------------------------------------------------------------------------
# Pruning
# ---------------------------------------------------------------------------

class TestPruning:
    def test_prune_keeps_live_entries(self):
        limiter = FixedWindowRateLimiter()
        limiter.hit("old", now=0)
        limiter.hit("live", now=30_000)
        assert limiter.prune(now=WINDOW_MS) == 1
        assert limiter.get("old") is None
        assert limiter.get("live") is not None

    def test_prune_runs_only_above_threshold(self):
        limiter = FixedWindowRateLimiter(prune_threshold=3)
        for key in ("a", "b", "c"):
            limiter.hit(key, now=0)
        limiter.hit("d", now=WINDOW_MS)   # size 3, not above threshold
        assert len(limiter) == 4

        limiter.hit("e", now=WINDOW_MS)   # size 4 > 3: expired a, b, c go
        assert len(limiter) == 2
        assert limiter.get("d") is not None
        assert limiter.get("e") is not None

    def test_overshoot_with_live_entries_is_tolerated(self):
        limiter = FixedWindowRateLimiter(prune_threshold=2)
        for key in ("a", "b", "c", "d"):
            limiter.hit(key, now=0)
        assert len(limiter) == 4
