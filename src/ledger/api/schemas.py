"""Pydantic API schemas for courier wallets."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class PostEntryRequest(BaseModel):
    kind: str
    amount: Decimal
    reference: str | None = None
    description: str | None = None
    order_id: str | None = None
    created_by: str = "OPERATOR"


class WithdrawRequest(BaseModel):
    amount: Decimal
    reference: str | None = None
    created_by: str = "OPERATOR"


class AdjustmentRequest(BaseModel):
    amount: Decimal
    reason: str
    created_by: str = "OPERATOR"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class WalletResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    courier_id: str
    balance: Decimal
    total_earned: Decimal
    total_withdrawn: Decimal
    total_bonuses: Decimal
    total_fines: Decimal
    entry_count: int
    updated_at: datetime


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sequence: int
    kind: str
    amount: Decimal
    signed_amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    reference: str | None = None
    description: str | None = None
    order_id: str | None = None
    created_by: str
    created_at: datetime


class AdjustmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    courier_id: str
    kind: str
    amount: Decimal
    reason: str
    applied: bool
    applied_at: datetime | None = None
    reference: str | None = None
    created_by: str
    created_at: datetime


class VerifyResponse(BaseModel):
    courier_id: str
    entries_checked: int
