from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.types import ASGIApp

from .rate_limiter import FixedWindowRateLimiter, client_identity
from .session_gate import SessionRoleGate

logger = logging.getLogger("edulink.gate")


class GateMiddleware(BaseHTTPMiddleware):
    """
    Runs every request through the rate limiter, then the session gate.

    A refused request gets a 429 with retry metadata; a gated request that
    fails authentication or role checks gets a 307 redirect. Admitted
    requests reach the handler with ``request.state.session`` set (None
    outside the role areas) and leave with X-RateLimit-* headers.
    """

    def __init__(
        self,
        app: ASGIApp,
        rate_limiter: FixedWindowRateLimiter,
        gate: SessionRoleGate,
    ) -> None:
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.gate = gate

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        decision = self.rate_limiter.hit(client_identity(request.headers))
        if not decision.allowed:
            return JSONResponse(
                {"detail": "Too many requests."},
                status_code=429,
                headers=decision.headers(),
            )

        outcome = await self.gate.evaluate(request)
        if outcome.admitted:
            request.state.session = outcome.session
            response = await call_next(request)
        else:
            logger.info("Redirecting %s -> %s", request.url.path, outcome.redirect_to)
            target = request.url.replace(path=outcome.redirect_to)
            response = RedirectResponse(str(target), status_code=307)

        response.headers.update(decision.headers())
        for cookie in outcome.cookies:
            cookie.apply(response)
        return response
