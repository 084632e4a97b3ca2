"""
session_gate.py — Session & role gate for the role areas
=========================================================
Requests under /student, /writer and /admin must come from a signed-in
caller whose profile role matches the area. Everything else passes
straight through without touching the identity provider or the
profile store.

  no session / lookup failure   -> redirect /login
  role mismatch                 -> redirect /<own role>/dashboard
  approval not granted          -> redirect /pending (only when
                                   settings.enforce_approval is on)

Lookups are bounded by a timeout; an expired lookup counts as a failed
one. Cookies the identity provider wants written (a rotated or cleared
session token) ride along on the outcome so the middleware can put them
on whatever response leaves the gate.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("edulink.gate.session")

PROTECTED_PREFIXES = ("/student", "/writer", "/admin")
LOGIN_PATH = "/login"
PENDING_PATH = "/pending"


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------

@dataclass
class CookieUpdate:
    """A cookie to write on the outgoing response; ``value=None`` clears it."""

    name: str
    value: Optional[str]
    max_age: Optional[int] = None
    secure: bool = False

    def apply(self, response: Response) -> None:
        if self.value is None:
            response.delete_cookie(self.name, path="/")
            return
        response.set_cookie(
            self.name,
            self.value,
            max_age=self.max_age,
            path="/",
            httponly=True,
            samesite="lax",
            secure=self.secure,
        )


@dataclass
class Identity:
    user_id: Optional[str] = None
    cookies: List[CookieUpdate] = field(default_factory=list)


@dataclass
class ProfileRecord:
    id: str
    role: str
    approval_status: str


class IdentityProvider(Protocol):
    async def resolve(self, request: Request) -> Identity: ...


class ProfileStore(Protocol):
    async def fetch_profile(self, user_id: str) -> Optional[ProfileRecord]: ...


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

@dataclass
class Session:
    user_id: str
    role: str
    approval_status: str


@dataclass
class GateOutcome:
    session: Optional[Session] = None
    redirect_to: Optional[str] = None
    cookies: List[CookieUpdate] = field(default_factory=list)

    @property
    def admitted(self) -> bool:
        return self.redirect_to is None


def required_role(path: str) -> Optional[str]:
    """Role a path demands, or None when the path is not protected."""
    for prefix in PROTECTED_PREFIXES:
        if path == prefix or path.startswith(prefix + "/"):
            return prefix.lstrip("/")
    return None


class SessionRoleGate:
    def __init__(
        self,
        identity_provider: IdentityProvider,
        profile_store: ProfileStore,
        lookup_timeout: float = 5.0,
        enforce_approval: bool = False,
    ) -> None:
        self.identity_provider = identity_provider
        self.profile_store = profile_store
        self.lookup_timeout = lookup_timeout
        self.enforce_approval = enforce_approval

    async def evaluate(self, request: Request) -> GateOutcome:
        path = request.url.path
        role = required_role(path)
        if role is None:
            return GateOutcome()

        try:
            identity = await asyncio.wait_for(
                self.identity_provider.resolve(request), self.lookup_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Session lookup timed out for %s", path)
            return GateOutcome(redirect_to=LOGIN_PATH)
        except Exception as exc:
            logger.warning("Session lookup failed for %s: %s", path, exc)
            return GateOutcome(redirect_to=LOGIN_PATH)

        cookies = identity.cookies
        if not identity.user_id:
            return GateOutcome(redirect_to=LOGIN_PATH, cookies=cookies)

        try:
            profile = await asyncio.wait_for(
                self.profile_store.fetch_profile(identity.user_id), self.lookup_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Profile lookup timed out for user %s", identity.user_id)
            profile = None
        except Exception as exc:
            logger.warning("Profile lookup failed for user %s: %s", identity.user_id, exc)
            profile = None

        if profile is None:
            return GateOutcome(redirect_to=LOGIN_PATH, cookies=cookies)

        if self.enforce_approval and profile.approval_status != "approved":
            return GateOutcome(redirect_to=PENDING_PATH, cookies=cookies)

        if profile.role != role:
            return GateOutcome(redirect_to=f"/{profile.role}/dashboard", cookies=cookies)

        return GateOutcome(
            session=Session(
                user_id=profile.id,
                role=profile.role,
                approval_status=profile.approval_status,
            ),
            cookies=cookies,
        )
