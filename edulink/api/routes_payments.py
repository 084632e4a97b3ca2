from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select

from ..auth.dependencies import get_current_user_id
from ..database import db_session
from ..models import Transaction
from ..schemas import TransactionRead, TransactionResponse

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get("/status", response_model=TransactionResponse)
def payment_status(
    reference: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
) -> TransactionResponse:
    """Look up one of the caller's transactions by provider reference.

    Clients poll this after starting a checkout to learn whether the
    payment completed. Other users' references are reported as not found.
    """
    if not reference:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="reference required")

    with db_session() as session:
        txn = session.execute(
            select(Transaction)
            .where(Transaction.reference == reference)
            .where(Transaction.user_id == user_id)
        ).scalar_one_or_none()
        if txn is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail="Transaction not found")
        return TransactionResponse(transaction=TransactionRead.model_validate(txn))
