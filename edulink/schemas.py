from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    display_name: str
    role: str
    approval_status: str
    created_at: datetime


class ApprovalDecision(BaseModel):
    """Body of POST /api/admin/approvals."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    decision: str = Field(default="approved", pattern="^(approved|rejected)$")


class PendingList(BaseModel):
    pending: List[ProfileRead]


# ---------------------------------------------------------------------------
# Wallets & transactions
# ---------------------------------------------------------------------------

class WalletRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    balance: Decimal
    currency: str
    created_at: datetime
    updated_at: datetime


class WalletResponse(BaseModel):
    wallet: WalletRead


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: str
    amount: Decimal
    currency: str
    status: str
    reference: str
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime


class TransactionResponse(BaseModel):
    transaction: TransactionRead


class WithdrawalList(BaseModel):
    withdrawals: List[TransactionRead]


# ---------------------------------------------------------------------------
# Testimonials
# ---------------------------------------------------------------------------

class TestimonialIn(BaseModel):
    """Raw submission; the route trims and range-checks it."""

    __test__ = False  # keep pytest from collecting this as a test class

    name: str = ""
    role: str = ""
    message: str = ""
    rating: Any = 0

    @field_validator("name", "role", "message", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Missing or null text becomes ""; anything else is stringified."""
        return "" if v is None else str(v)


class TestimonialRead(BaseModel):
    __test__ = False

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    role: str
    message: str
    rating: int
    created_at: datetime


class TestimonialList(BaseModel):
    __test__ = False

    testimonials: List[TestimonialRead]


class TestimonialCreated(BaseModel):
    __test__ = False

    ok: bool = True
    testimonial: TestimonialRead


class TestimonialModeration(BaseModel):
    __test__ = False

    status: str = Field(..., pattern="^(approved|rejected)$")
