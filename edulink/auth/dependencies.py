from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from .core import decode_token
from ..config import settings
from ..database import db_session
from ..models import Profile

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Resolve current caller from session cookie or bearer token
# ---------------------------------------------------------------------------

def get_current_user_id(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> str:
    """
    Accepts either:
      - the session cookie set by POST /auth/login
      - Authorization: Bearer <jwt>
    Returns the profile id carried by the token or raises 401.
    """
    token = (bearer.credentials if bearer and bearer.credentials else None) or \
        request.cookies.get(settings.session_cookie_name)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Unauthorized")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Unauthorized")
    return user_id


def get_current_profile(user_id: str = Depends(get_current_user_id)) -> Profile:
    with db_session() as session:
        profile = session.get(Profile, user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Profile missing")
    return profile


# ---------------------------------------------------------------------------
# Role guards
# ---------------------------------------------------------------------------

def require_role(role: str) -> Callable[..., Profile]:
    """Approved caller with exactly ``role``; 403 otherwise."""

    def guard(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.approval_status != "approved":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="Approval required")
        if profile.role != role:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail=f"{role.capitalize()} role required")
        return profile

    return guard


require_admin = require_role("admin")
require_student = require_role("student")
