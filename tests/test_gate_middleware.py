"""
End-to-end rate limiting through the gate middleware.

Run with: pytest tests/test_gate_middleware.py -v
"""
from __future__ import annotations

from fastapi.testclient import TestClient

from edulink.gate import FixedWindowRateLimiter
from edulink.main import create_app


class _Clock:
    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _client(clock: _Clock) -> tuple[TestClient, FixedWindowRateLimiter]:
    limiter = FixedWindowRateLimiter(clock=clock)
    return TestClient(create_app(rate_limiter=limiter)), limiter


FROM_1234 = {"X-Forwarded-For": "1.2.3.4"}


class TestThrottling:
    def test_sixty_admitted_then_throttled(self):
        clock = _Clock(0)
        client, _ = _client(clock)

        remaining = []
        for _ in range(60):
            resp = client.get("/health", headers=FROM_1234)
            assert resp.status_code == 200
            assert resp.headers["X-RateLimit-Limit"] == "60"
            assert resp.headers["X-RateLimit-Reset"] == "60000"
            remaining.append(int(resp.headers["X-RateLimit-Remaining"]))
        assert remaining == list(range(59, -1, -1))

        resp = client.get("/health", headers=FROM_1234)
        assert resp.status_code == 429
        assert resp.json() == {"detail": "Too many requests."}
        assert resp.headers["Retry-After"] == "60"
        assert resp.headers["X-RateLimit-Limit"] == "60"
        assert resp.headers["X-RateLimit-Remaining"] == "0"
        assert resp.headers["X-RateLimit-Reset"] == "60000"

    def test_new_window_after_expiry(self):
        clock = _Clock(0)
        client, limiter = _client(clock)
        for _ in range(61):
            client.get("/health", headers=FROM_1234)

        clock.now = 60_001
        resp = client.get("/health", headers=FROM_1234)
        assert resp.status_code == 200
        assert resp.headers["X-RateLimit-Remaining"] == "59"
        assert limiter.get("1.2.3.4").count == 1

    def test_other_client_unaffected(self):
        clock = _Clock(0)
        client, _ = _client(clock)
        for _ in range(61):
            client.get("/health", headers=FROM_1234)
        resp = client.get("/health", headers={"X-Forwarded-For": "5.6.7.8"})
        assert resp.status_code == 200

    def test_throttle_happens_before_session_gate(self):
        clock = _Clock(0)
        client, _ = _client(clock)
        for _ in range(60):
            client.get("/health", headers=FROM_1234)
        resp = client.get("/student/dashboard", headers=FROM_1234, follow_redirects=False)
        assert resp.status_code == 429

    def test_redirects_carry_rate_headers(self):
        client, _ = _client(_Clock(0))
        resp = client.get("/admin/dashboard", headers=FROM_1234, follow_redirects=False)
        assert resp.status_code == 307
        assert resp.headers["X-RateLimit-Remaining"] == "59"


class TestAppFactory:
    def test_injected_empty_limiter_is_kept(self):
        limiter = FixedWindowRateLimiter(clock=_Clock(0))
        assert len(limiter) == 0
        app = create_app(rate_limiter=limiter)
        assert app.state.rate_limiter is limiter

    def test_injected_limiter_counts_requests(self):
        limiter = FixedWindowRateLimiter(clock=_Clock(0))
        client = TestClient(create_app(rate_limiter=limiter))
        client.get("/health", headers=FROM_1234)
        assert limiter.get("1.2.3.4").count == 1

    def test_injected_collaborators_reach_the_gate(self):
        identity, store = object(), object()
        app = create_app(identity_provider=identity, profile_store=store)
        assert app.state.gate.identity_provider is identity
        assert app.state.gate.profile_store is store
