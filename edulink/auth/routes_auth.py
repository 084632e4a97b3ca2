import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import select

from .core import create_session_token, hash_password, verify_password
from .dependencies import get_current_profile
from .identity import clear_session_cookie, session_cookie
from ..config import settings
from ..database import db_session
from ..models import Profile
from ..rate_limit import limiter
from ..schemas import ProfileRead

logger = logging.getLogger("edulink.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=256, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=8)
    display_name: str = Field(..., min_length=2, max_length=128)
    role: str = Field(default="student", pattern="^(student|writer)$")


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: str
    approval_status: str
    display_name: str


# ---------------------------------------------------------------------------
# Registration — students and writers sign up; admins approve them
# ---------------------------------------------------------------------------

@router.post("/register", response_model=ProfileRead, status_code=201)
def register(body: RegisterRequest) -> ProfileRead:
    email = body.email.strip().lower()
    with db_session() as session:
        existing = session.execute(
            select(Profile).where(Profile.email == email)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail="Email already registered.")
        profile = Profile(
            email=email,
            display_name=body.display_name.strip(),
            password_hash=hash_password(body.password),
            role=body.role,
            approval_status="pending",
        )
        session.add(profile)
        session.flush()
        result = ProfileRead.model_validate(profile)

    logger.info("Registered %s account %s (pending approval)", result.role, result.id)
    return result


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------

@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.login_rate_limit)
def login(request: Request, response: Response, body: LoginRequest) -> TokenResponse:
    with db_session() as session:
        profile = session.execute(
            select(Profile).where(Profile.email == body.email.strip().lower())
        ).scalar_one_or_none()

    if not profile or not verify_password(body.password, profile.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Invalid credentials.")

    token = create_session_token(profile.id, profile.role)
    session_cookie(token).apply(response)
    return TokenResponse(
        access_token=token,
        user_id=profile.id,
        role=profile.role,
        approval_status=profile.approval_status,
        display_name=profile.display_name,
    )


@router.post("/logout")
def logout(response: Response) -> dict:
    clear_session_cookie().apply(response)
    return {"ok": True}


@router.get("/me", response_model=ProfileRead)
def me(profile: Profile = Depends(get_current_profile)) -> ProfileRead:
    return ProfileRead.model_validate(profile)
