"""Timeout enforcement: force transitions when nobody acted in time.

Two jobs, each driven by the scheduler on its own cadence:

* auto-reject: PLACED orders not accepted within the threshold → REJECTED
* payment timeout: PENDING orders not paid within the threshold → CANCELLED

Candidates are selected by (status, age) outside any transaction. Each
transition then reloads the order inside its own unit of work and skips it
if the status moved on in between (a late payment, a last-second accept).
"""

from datetime import datetime, timedelta

import structlog
from protean.exceptions import ProteanException
from protean.utils.globals import current_domain

from ordering.order.intake import OrderIntake
from ordering.order.order import Order
from ordering.order.status import OrderStatus
from shared.clock import SystemClock
from shared.exceptions import StatusChanged

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "SYSTEM"


def auto_reject_reason(minutes: int) -> str:
    return f"Order automatically rejected - not accepted within {minutes} minutes"


def payment_timeout_reason(minutes: int) -> str:
    return f"Payment not completed within {minutes} minutes"


class TimeoutEnforcer:
    def __init__(
        self,
        intake: OrderIntake,
        clock=None,
        auto_reject_after_minutes: int = 10,
        payment_timeout_minutes: int = 15,
    ):
        self._intake = intake
        self._clock = clock or SystemClock()
        self.auto_reject_after_minutes = auto_reject_after_minutes
        self.payment_timeout_minutes = payment_timeout_minutes

    @property
    def auto_reject_reason(self) -> str:
        return auto_reject_reason(self.auto_reject_after_minutes)

    @property
    def payment_timeout_reason(self) -> str:
        return payment_timeout_reason(self.payment_timeout_minutes)

    def _stale(self, status: OrderStatus, cutoff: datetime) -> list[str]:
        return current_domain.repository_for(Order).stale_ids(status, cutoff)

    def auto_reject_stale_orders(self, as_of: datetime | None = None) -> int:
        """Reject PLACED orders the restaurant did not accept in time."""
        as_of = as_of or self._clock.now()
        cutoff = as_of - timedelta(minutes=self.auto_reject_after_minutes)

        logger.info(
            "Checking for unaccepted orders",
            cutoff=cutoff.isoformat(),
            threshold_minutes=self.auto_reject_after_minutes,
        )

        candidates = self._stale(OrderStatus.PLACED, cutoff)
        if not candidates:
            logger.info("No unaccepted orders found")
            return 0

        reason = self.auto_reject_reason
        rejected_count = 0
        for order_id in candidates:
            try:
                self._intake.reject_order(
                    order_id,
                    reason,
                    SYSTEM_ACTOR,
                    expected_status=OrderStatus.PLACED,
                )
                rejected_count += 1
                logger.info("Auto-rejected order", order_id=order_id)
            except StatusChanged as exc:
                logger.info("Skipping order that moved on", order_id=order_id, detail=str(exc))
            except ProteanException as exc:
                logger.warning("Failed to auto-reject order", order_id=order_id, error=str(exc))
            except Exception:
                logger.exception("Unexpected error auto-rejecting order", order_id=order_id)

        logger.info("Auto-reject run complete", rejected_count=rejected_count, candidates=len(candidates))
        return rejected_count

    def cancel_unpaid_orders(self, as_of: datetime | None = None) -> int:
        """Cancel PENDING orders whose payment never arrived."""
        as_of = as_of or self._clock.now()
        cutoff = as_of - timedelta(minutes=self.payment_timeout_minutes)

        logger.info(
            "Checking for unpaid orders",
            cutoff=cutoff.isoformat(),
            threshold_minutes=self.payment_timeout_minutes,
        )

        candidates = self._stale(OrderStatus.PENDING, cutoff)
        if not candidates:
            logger.info("No unpaid orders found")
            return 0

        reason = self.payment_timeout_reason
        cancelled_count = 0
        for order_id in candidates:
            try:
                self._intake.cancel_order(
                    order_id,
                    reason=reason,
                    cancelled_by=SYSTEM_ACTOR,
                    notes=reason,
                    expected_status=OrderStatus.PENDING,
                )
                cancelled_count += 1
                logger.info("Cancelled unpaid order", order_id=order_id)
            except StatusChanged as exc:
                logger.info("Skipping order that moved on", order_id=order_id, detail=str(exc))
            except ProteanException as exc:
                logger.warning("Failed to cancel unpaid order", order_id=order_id, error=str(exc))
            except Exception:
                logger.exception("Unexpected error cancelling unpaid order", order_id=order_id)

        logger.info("Payment timeout run complete", cancelled_count=cancelled_count, candidates=len(candidates))
        return cancelled_count
