from __future__ import annotations

import math
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select

from ..database import db_session
from ..models import Testimonial
from ..schemas import TestimonialCreated, TestimonialIn, TestimonialList, TestimonialRead

router = APIRouter(prefix="/api/testimonials", tags=["testimonials"])

FEED_SIZE = 30
MIN_MESSAGE_LENGTH = 10


def parse_rating(raw: Any) -> Optional[int]:
    """Whole-star rating in 1..5, or None for anything else (fractions included)."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or not value.is_integer() or not 1 <= value <= 5:
        return None
    return int(value)


@router.get("", response_model=TestimonialList)
def list_testimonials() -> TestimonialList:
    with db_session() as session:
        rows = session.execute(
            select(Testimonial)
            .where(Testimonial.status == "approved")
            .order_by(Testimonial.created_at.desc())
            .limit(FEED_SIZE)
        ).scalars().all()
        return TestimonialList(testimonials=[TestimonialRead.model_validate(r) for r in rows])


def _store(name: str, role: str, message: str, rating: int) -> TestimonialRead:
    with db_session() as session:
        row = Testimonial(name=name, role=role, message=message, rating=rating, status="pending")
        session.add(row)
        session.flush()
        return TestimonialRead.model_validate(row)


@router.post("", response_model=TestimonialCreated)
async def submit_testimonial(request: Request) -> TestimonialCreated:
    """Queue a testimonial for review. It is not listed until approved.

    An unreadable or non-object body is treated as empty, so it fails
    validation with 400 like any other incomplete submission.
    """
    try:
        raw = await request.json()
    except ValueError:
        raw = {}
    body = TestimonialIn.model_validate(raw if isinstance(raw, dict) else {})

    name = body.name.strip()
    role = body.role.strip()
    message = body.message.strip()
    if not name or not role or len(message) < MIN_MESSAGE_LENGTH:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Invalid testimonial data")

    rating = parse_rating(body.rating)
    if rating is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Rating must be between 1 and 5")

    testimonial = await run_in_threadpool(_store, name, role, message, rating)
    return TestimonialCreated(testimonial=testimonial)
