from .middleware import GateMiddleware
from .rate_limiter import FixedWindowRateLimiter, RateDecision, RateEntry, client_identity
from .session_gate import (
    CookieUpdate,
    GateOutcome,
    Identity,
    ProfileRecord,
    Session,
    SessionRoleGate,
    required_role,
)

__all__ = [
    "CookieUpdate",
    "FixedWindowRateLimiter",
    "GateMiddleware",
    "GateOutcome",
    "Identity",
    "ProfileRecord",
    "RateDecision",
    "RateEntry",
    "Session",
    "SessionRoleGate",
    "client_identity",
    "required_role",
]
