"""Courier wallets and their immutable ledger entries.

A wallet's ``balance`` is only ever changed by ``CourierWallet.record``, which
builds the ledger entry in the same step:

    entry.balance_after == entry.balance_before + signed_amount(kind, amount)
    wallet.balance == latest entry.balance_after
"""

import decimal
from datetime import datetime
from enum import Enum

from protean import Index
from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Identifier, Integer, String, Text

from shared.domain import dispatch
from shared.money import ZERO, to_money


class TransactionKind(Enum):
    DELIVERY_FEE = "DELIVERY_FEE"
    BONUS = "BONUS"
    TIP = "TIP"
    FINE = "FINE"
    WITHDRAWAL = "WITHDRAWAL"
    ADJUSTMENT = "ADJUSTMENT"
    REFUND = "REFUND"
    COMPENSATION = "COMPENSATION"


CREDIT_KINDS = frozenset(
    {
        TransactionKind.DELIVERY_FEE,
        TransactionKind.BONUS,
        TransactionKind.TIP,
        TransactionKind.REFUND,
        TransactionKind.COMPENSATION,
    }
)
DEBIT_KINDS = frozenset({TransactionKind.WITHDRAWAL, TransactionKind.FINE})


def coerce_kind(kind: "TransactionKind | str") -> TransactionKind:
    try:
        return TransactionKind(kind)
    except ValueError:
        raise ValidationError({"kind": [f"Unknown transaction kind: {kind}"]}) from None


def signed_amount(kind: "TransactionKind | str", amount) -> decimal.Decimal:
    """Balance delta for ``amount`` of ``kind``.

    Credit and debit kinds take a positive magnitude; ADJUSTMENT carries its own
    sign. Zero is never a valid movement.
    """
    kind = coerce_kind(kind)
    amount = to_money(amount)

    if amount == ZERO:
        raise ValidationError({"amount": ["Amount must not be zero"]})
    if kind == TransactionKind.ADJUSTMENT:
        return amount
    if amount < ZERO:
        raise ValidationError({"amount": [f"{kind.value} amount must be positive, use ADJUSTMENT for signed corrections"]})
    if kind in DEBIT_KINDS:
        return -amount
    return amount


@dispatch.aggregate(
    limit=-1,
    indexes=[
        Index("wallet_id", "sequence", unique=True),
        Index("wallet_id", "kind", "order_id", unique=True),
    ],
)
class LedgerEntry:
    """One immutable movement on a wallet. ``sequence`` is dense from 1 per wallet."""

    wallet_id = Identifier(required=True)
    sequence = Integer(required=True, min_value=1)
    kind = String(required=True, choices=TransactionKind)
    amount = Decimal(precision=12, scale=2, required=True)
    signed_amount = Decimal(precision=12, scale=2, required=True)
    balance_before = Decimal(precision=12, scale=2, required=True)
    balance_after = Decimal(precision=12, scale=2, required=True)
    reference = String(max_length=255)
    description = Text()
    order_id = Identifier()
    created_by = String(required=True, max_length=100)
    created_at = DateTime(required=True)


@dispatch.aggregate(limit=-1)
class CourierWallet:
    courier_id = String(required=True, max_length=64, unique=True)
    balance = Decimal(precision=12, scale=2, default=ZERO)
    total_earned = Decimal(precision=12, scale=2, default=ZERO)
    total_withdrawn = Decimal(precision=12, scale=2, default=ZERO)
    total_bonuses = Decimal(precision=12, scale=2, default=ZERO)
    total_fines = Decimal(precision=12, scale=2, default=ZERO)
    entry_count = Integer(default=0, min_value=0)
    created_at = DateTime(required=True)
    updated_at = DateTime()

    @classmethod
    def open(cls, courier_id: str, now: datetime) -> "CourierWallet":
        return cls(
            courier_id=courier_id,
            balance=ZERO,
            total_earned=ZERO,
            total_withdrawn=ZERO,
            total_bonuses=ZERO,
            total_fines=ZERO,
            entry_count=0,
            created_at=now,
            updated_at=now,
        )

    def record(
        self,
        kind: "TransactionKind | str",
        amount,
        now: datetime,
        reference: str | None = None,
        description: str | None = None,
        order_id: str | None = None,
        created_by: str = "SYSTEM",
    ) -> LedgerEntry:
        """Build the next ledger entry and move the balance with it."""
        kind = coerce_kind(kind)
        delta = signed_amount(kind, amount)
        balance_before = self.balance
        balance_after = balance_before + delta

        entry = LedgerEntry(
            wallet_id=str(self.id),
            sequence=self.entry_count + 1,
            kind=kind.value,
            amount=to_money(amount),
            signed_amount=delta,
            balance_before=balance_before,
            balance_after=balance_after,
            reference=reference,
            description=description,
            order_id=order_id,
            created_by=created_by,
            created_at=now,
        )

        self.balance = balance_after
        self.entry_count = entry.sequence
        self.updated_at = now
        self._update_totals(kind, delta)
        return entry

    def _update_totals(self, kind: TransactionKind, delta: decimal.Decimal) -> None:
        if kind in (TransactionKind.DELIVERY_FEE, TransactionKind.TIP):
            self.total_earned += delta
        elif kind in (TransactionKind.BONUS, TransactionKind.COMPENSATION, TransactionKind.REFUND):
            self.total_bonuses += delta
        elif kind == TransactionKind.FINE:
            self.total_fines += -delta
        elif kind == TransactionKind.WITHDRAWAL:
            self.total_withdrawn += -delta
