from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from .config import settings
from .models import Wallet


def ensure_wallet(session: Session, user_id: str) -> Wallet:
    """Return the user's wallet, opening an empty one if they have none."""
    wallet = session.get(Wallet, user_id)
    if wallet is None:
        wallet = Wallet(user_id=user_id, balance=Decimal("0"), currency=settings.default_currency)
        session.add(wallet)
        session.flush()
    return wallet
