"""Pending courier bonuses and fines.

Adjustments accrue against a courier and are posted to the ledger with the
courier's next completed delivery, inside that delivery's unit of work.
"""

from enum import Enum

import structlog
from protean import Index, UnitOfWork
from protean.fields import Boolean, DateTime, Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from ledger.wallet.ledger import Ledger, require_positive
from ledger.wallet.wallet import TransactionKind
from shared.clock import SystemClock
from shared.domain import dispatch

logger = structlog.get_logger(__name__)


class AdjustmentKind(Enum):
    BONUS = "BONUS"
    FINE = "FINE"


@dispatch.aggregate(limit=-1, indexes=[Index("courier_id", "applied")])
class CourierAdjustment:
    courier_id = String(required=True, max_length=64)
    kind = String(required=True, choices=AdjustmentKind)
    amount = Decimal(precision=12, scale=2, required=True)
    reason = Text(required=True)
    applied = Boolean(default=False)
    applied_at = DateTime()
    reference = Identifier()
    created_by = String(required=True, max_length=100)
    created_at = DateTime(required=True)


@dispatch.repository(part_of=CourierAdjustment)
class AdjustmentRepository:
    def unapplied(self, courier_id: str) -> list[CourierAdjustment]:
        return self.query.filter(courier_id=courier_id, applied=False).order_by("created_at").all().items


class AdjustmentBook:
    def __init__(self, ledger: Ledger, clock=None):
        self._ledger = ledger
        self._clock = clock or SystemClock()

    def add_bonus(self, courier_id: str, amount, reason: str, created_by: str = "OPERATOR") -> CourierAdjustment:
        return self._add(courier_id, AdjustmentKind.BONUS, amount, reason, created_by)

    def add_fine(self, courier_id: str, amount, reason: str, created_by: str = "OPERATOR") -> CourierAdjustment:
        return self._add(courier_id, AdjustmentKind.FINE, amount, reason, created_by)

    def _add(self, courier_id, kind: AdjustmentKind, amount, reason, created_by) -> CourierAdjustment:
        amount = require_positive(amount)
        adjustment = CourierAdjustment(
            courier_id=courier_id,
            kind=kind.value,
            amount=amount,
            reason=reason,
            applied=False,
            created_by=created_by,
            created_at=self._clock.now(),
        )
        current_domain.repository_for(CourierAdjustment).add(adjustment)

        logger.info("Courier adjustment recorded", courier_id=courier_id, kind=kind.value, amount=str(amount))
        return adjustment

    def pending(self, courier_id: str) -> list[CourierAdjustment]:
        return current_domain.repository_for(CourierAdjustment).unapplied(courier_id)

    def apply_pending(self, courier_id: str, order_id: str | None = None) -> list[CourierAdjustment]:
        """Post every unapplied adjustment for ``courier_id`` and mark it applied."""
        with UnitOfWork():
            repo = current_domain.repository_for(CourierAdjustment)
            adjustments = repo.unapplied(courier_id)
            for adjustment in adjustments:
                entry = self._ledger.post(
                    courier_id,
                    TransactionKind(adjustment.kind),
                    adjustment.amount,
                    reference=f"adjustment:{adjustment.id}",
                    description=adjustment.reason if order_id is None else f"{adjustment.reason} (order {order_id})",
                    created_by=adjustment.created_by,
                )
                adjustment.applied = True
                adjustment.applied_at = entry.created_at
                adjustment.reference = str(entry.id)
                repo.add(adjustment)

        if adjustments:
            logger.info("Courier adjustments applied", courier_id=courier_id, count=len(adjustments), order_id=order_id)
        return adjustments
