from __future__ import annotations

import logging
import sys
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pythonjsonlogger import jsonlogger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .database import init_db
from .rate_limit import limiter
from .api import routes_admin, routes_pages, routes_payments, routes_student, routes_testimonials
from .auth.identity import TokenIdentityProvider
from .auth.profiles import SqlProfileStore
from .auth.routes_auth import router as auth_router
from .gate import FixedWindowRateLimiter, GateMiddleware, SessionRoleGate
from .gate.session_gate import IdentityProvider, ProfileStore
from .seed import seed_admin, seed_testimonials

# ---------------------------------------------------------------------------
# Structured logging
# ---------------------------------------------------------------------------

def _configure_logging() -> None:
    """Configure structured JSON logging when log_format=json (default)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        handler.setFormatter(jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        ))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)

_configure_logging()

# Initialise database tables on startup
init_db()

# Seed default admin and launch testimonials on an empty database
seed_admin()
seed_testimonials()


def create_app(
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
    identity_provider: Optional[IdentityProvider] = None,
    profile_store: Optional[ProfileStore] = None,
) -> FastAPI:
    """
    Build the ASGI app. The rate-limit store and the gate's collaborators
    are created here once and shared by every request the app serves;
    pass your own to isolate tests or swap in a remote profile service.
    """
    app = FastAPI(
        title="EduLink",
        version="0.1.0",
        description=(
            "Academic-writing marketplace: student, writer and admin accounts, "
            "wallets, payment status and testimonials, behind a rate-limited "
            "session and role gate."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # An empty limiter is falsy (__len__).
    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter()
    if identity_provider is None:
        identity_provider = TokenIdentityProvider()
    if profile_store is None:
        profile_store = SqlProfileStore()
    gate = SessionRoleGate(
        identity_provider=identity_provider,
        profile_store=profile_store,
        lookup_timeout=settings.lookup_timeout_seconds,
        enforce_approval=settings.enforce_approval,
    )
    app.state.rate_limiter = rate_limiter
    app.state.gate = gate

    # Per-endpoint limits (login)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Last added runs first: CORS wraps the gate.
    app.add_middleware(GateMiddleware, rate_limiter=rate_limiter, gate=gate)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(routes_admin.router)
    app.include_router(routes_student.router)
    app.include_router(routes_payments.router)
    app.include_router(routes_testimonials.router)
    app.include_router(routes_pages.router)

    @app.get("/", tags=["meta"])
    def root() -> dict:
        return {"status": "ok", "service": "edulink", "version": "0.1.0"}

    @app.get("/health", tags=["meta"])
    def health() -> dict:
        return {"status": "healthy"}

    return app


app = create_app()
