"""
identity.py — Session-cookie identity provider
==============================================
Resolves the caller from the signed session token in the session cookie.
Tokens close to expiry are rotated: a fresh token is issued and handed
back as a cookie update so the client's session stays alive while it
keeps using the site. Unreadable or expired tokens resolve to nobody and
the cookie is cleared.
"""
from __future__ import annotations

import logging
import time

from jose import JWTError
from starlette.requests import Request

from .core import create_session_token, decode_token
from ..config import settings
from ..gate.session_gate import CookieUpdate, Identity

logger = logging.getLogger("edulink.auth.identity")


def session_cookie(token: str) -> CookieUpdate:
    return CookieUpdate(
        name=settings.session_cookie_name,
        value=token,
        max_age=settings.jwt_expire_minutes * 60,
        secure=settings.session_cookie_secure,
    )


def clear_session_cookie() -> CookieUpdate:
    return CookieUpdate(name=settings.session_cookie_name, value=None)


class TokenIdentityProvider:
    def __init__(
        self,
        cookie_name: str | None = None,
        refresh_minutes: int | None = None,
    ) -> None:
        self.cookie_name = cookie_name or settings.session_cookie_name
        if refresh_minutes is None:
            refresh_minutes = settings.session_refresh_minutes
        self.refresh_seconds = refresh_minutes * 60

    async def resolve(self, request: Request) -> Identity:
        token = request.cookies.get(self.cookie_name)
        if not token:
            return Identity()

        try:
            payload = decode_token(token)
        except JWTError as exc:
            logger.info("Rejected session token: %s", exc)
            return Identity(cookies=[clear_session_cookie()])

        user_id = payload.get("sub")
        if not user_id:
            return Identity(cookies=[clear_session_cookie()])

        cookies = []
        exp = payload.get("exp")
        if exp is not None and exp - time.time() < self.refresh_seconds:
            cookies.append(session_cookie(create_session_token(user_id, payload.get("role", ""))))
            logger.debug("Rotated session token for user %s", user_id)

        return Identity(user_id=user_id, cookies=cookies)
