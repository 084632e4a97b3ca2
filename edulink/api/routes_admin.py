from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select

from ..auth.dependencies import require_admin
from ..database import db_session
from ..models import Profile, Testimonial, Transaction
from ..schemas import (
    ApprovalDecision,
    PendingList,
    ProfileRead,
    TestimonialModeration,
    TestimonialRead,
    TransactionRead,
    WithdrawalList,
)
from ..wallets import ensure_wallet

logger = logging.getLogger("edulink.admin")

router = APIRouter(prefix="/api/admin", tags=["admin"])

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def _as_number(raw: Optional[str], default: float) -> float:
    if raw is None:
        return default
    if not raw.strip():
        return 0.0  # "?limit=" reads as zero, then clamps
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def page_window(limit: Optional[str], offset: Optional[str]) -> Tuple[int, int]:
    """Clamp raw ?limit / ?offset to (1..200, >= 0); junk falls back to defaults."""
    size = int(min(max(_as_number(limit, DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE))
    start = int(max(_as_number(offset, 0), 0))
    return size, start


# ---------------------------------------------------------------------------
# Account approvals
# ---------------------------------------------------------------------------

@router.get("/approvals", response_model=PendingList)
def list_pending(
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    _admin: Profile = Depends(require_admin),
) -> PendingList:
    """Profiles awaiting approval, oldest first."""
    size, start = page_window(limit, offset)
    with db_session() as session:
        rows = session.execute(
            select(Profile)
            .where(Profile.approval_status == "pending")
            .order_by(Profile.created_at.asc())
            .offset(start)
            .limit(size)
        ).scalars().all()
        pending = [ProfileRead.model_validate(r) for r in rows]
    return PendingList(pending=pending)


@router.post("/approvals")
def decide_approval(
    body: ApprovalDecision,
    admin: Profile = Depends(require_admin),
) -> dict:
    """Approve or reject an account. Approval opens the user's wallet."""
    if not body.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="userId required")

    with db_session() as session:
        profile = session.get(Profile, body.user_id)
        if profile is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail="Profile not found")
        profile.approval_status = body.decision
        if body.decision == "approved":
            ensure_wallet(session, profile.id)

    logger.info("Admin %s set %s to %s", admin.id, body.user_id, body.decision)
    return {"ok": True}


# ---------------------------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------------------------

@router.get("/withdrawals", response_model=WithdrawalList)
def list_withdrawals(
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    _admin: Profile = Depends(require_admin),
) -> WithdrawalList:
    """Payout transactions, newest first."""
    size, start = page_window(limit, offset)
    with db_session() as session:
        rows = session.execute(
            select(Transaction)
            .where(Transaction.type == "payout")
            .order_by(Transaction.created_at.desc())
            .offset(start)
            .limit(size)
        ).scalars().all()
        withdrawals = [TransactionRead.model_validate(r) for r in rows]
    return WithdrawalList(withdrawals=withdrawals)


# ---------------------------------------------------------------------------
# Testimonial moderation
# ---------------------------------------------------------------------------

@router.post("/testimonials/{testimonial_id}", response_model=TestimonialRead)
def moderate_testimonial(
    testimonial_id: str,
    body: TestimonialModeration,
    _admin: Profile = Depends(require_admin),
) -> TestimonialRead:
    with db_session() as session:
        row = session.get(Testimonial, testimonial_id)
        if row is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail="Testimonial not found")
        row.status = body.status
        return TestimonialRead.model_validate(row)
