"""Assignment coordinator: courier claims and the delivery sub-flow.

Claims are resolved in storage. ``accept`` issues a single conditional UPDATE
that only matches while no courier is bound, so when two couriers race for
the same order exactly one update hits a row and the other caller gets
``AlreadyAssigned``.

Completing a delivery credits the courier in the same unit of work as the
order completion: the fee entry, any accrued bonuses and fines, and the order's
COMPLETED status commit together or not at all.
"""

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from ledger.wallet.adjustments import AdjustmentBook
from ledger.wallet.fees import CourierFeePolicy
from ledger.wallet.ledger import Ledger
from ledger.wallet.wallet import TransactionKind
from ordering.order.order import Order
from ordering.order.status import OrderStatus
from shared.clock import SystemClock
from shared.exceptions import AlreadyAssigned, InvalidTransition

logger = structlog.get_logger(__name__)


class AssignmentCoordinator:
    def __init__(
        self,
        kitchen,
        ledger: Ledger,
        adjustments: AdjustmentBook | None = None,
        fee_policy: CourierFeePolicy | None = None,
        clock=None,
        estimated_delivery_minutes: int = 30,
    ):
        self._kitchen = kitchen
        self._ledger = ledger
        self._adjustments = adjustments
        self._fee_policy = fee_policy or CourierFeePolicy()
        self._clock = clock or SystemClock()
        self._estimated_delivery_minutes = estimated_delivery_minutes

    # -------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------
    def list_available(self, restaurant_id: str | None = None) -> list[Order]:
        """READY orders with no courier bound."""
        return current_domain.repository_for(Order).available_for_pickup(restaurant_id)

    def list_for_courier(self, courier_id: str) -> list[Order]:
        return current_domain.repository_for(Order).for_courier(courier_id)

    # -------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------
    def accept(self, order_id: str, courier_id: str, courier_name: str | None = None) -> Order:
        with UnitOfWork():
            orders = current_domain.repository_for(Order)
            order = orders.get(order_id)

            if order.current_status != OrderStatus.READY:
                raise InvalidTransition(
                    {"status": [f"Order is not ready for pickup, current status: {order.status}"]}
                )

            if not orders.claim_courier(order_id, courier_id):
                logger.info(
                    "Courier claim lost",
                    order_id=order_id,
                    courier_id=courier_id,
                    bound_courier_id=order.courier_id,
                )
                raise AlreadyAssigned({"courier_id": ["Order already has a courier assigned"]})

            order.record_courier_accepted(courier_id, courier_name, self._clock.now())
            orders.add(order)

        logger.info("Courier accepted order", order_id=order_id, courier_id=courier_id)
        return order

    def decline(self, order_id: str, courier_id: str, reason: str | None = None) -> Order:
        with UnitOfWork():
            orders = current_domain.repository_for(Order)
            order = orders.get(order_id)
            order.release_courier(courier_id, reason, self._clock.now())
            orders.add(order)

        logger.info("Courier declined order", order_id=order_id, courier_id=courier_id, reason=reason)
        return order

    def assign(self, order_id: str, courier_id: str, courier_name: str | None = None) -> Order:
        """Operator override: bind ``courier_id`` regardless of any earlier claim."""
        with UnitOfWork():
            orders = current_domain.repository_for(Order)
            order = orders.get(order_id)
            previous = order.courier_id
            order.assign_courier(courier_id, courier_name, self._clock.now())
            orders.add(order)

        logger.info(
            "Courier manually assigned",
            order_id=order_id,
            courier_id=courier_id,
            previous_courier_id=previous,
        )
        return order

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    def start_delivery(self, order_id: str, courier_id: str) -> Order:
        with UnitOfWork():
            orders = current_domain.repository_for(Order)
            order = orders.get(order_id)
            order.start_delivery(courier_id, self._clock.now(), self._estimated_delivery_minutes)
            orders.add(order)
            self._kitchen.mark_order_picked_up(order_id)

        logger.info("Delivery started", order_id=order_id, courier_id=courier_id)
        return order

    def complete_delivery(self, order_id: str, courier_id: str, notes: str | None = None) -> Order:
        with UnitOfWork():
            orders = current_domain.repository_for(Order)
            order = orders.get(order_id)
            order.complete_delivery(courier_id, notes, self._clock.now())
            orders.add(order)

            fee = self._fee_policy.fee_for(order.total)
            self._ledger.post(
                courier_id,
                TransactionKind.DELIVERY_FEE,
                fee,
                reference=order.order_number,
                description=f"Delivery fee for order {order.order_number}",
                order_id=order_id,
                created_by="SYSTEM",
            )
            if self._adjustments is not None:
                self._adjustments.apply_pending(courier_id, order_id=order_id)

        logger.info(
            "Delivery completed",
            order_id=order_id,
            courier_id=courier_id,
            fee=str(fee),
        )
        return order
