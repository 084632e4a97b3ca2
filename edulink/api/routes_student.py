from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth.dependencies import require_student
from ..database import db_session
from ..models import Profile
from ..schemas import WalletRead, WalletResponse
from ..wallets import ensure_wallet

router = APIRouter(prefix="/api/student", tags=["student"])


@router.get("/wallet", response_model=WalletResponse)
def get_wallet(student: Profile = Depends(require_student)) -> WalletResponse:
    """The caller's wallet; an empty one is opened on first access."""
    with db_session() as session:
        wallet = ensure_wallet(session, student.id)
        return WalletResponse(wallet=WalletRead.model_validate(wallet))
