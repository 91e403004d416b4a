"""Order intake: creation, payment confirmation and restaurant decisions.

Creating an order also opens its kitchen ticket in the same unit of work.
Cancelling or rejecting an order cancels a ticket that has not started yet.
"""

from datetime import datetime
from decimal import Decimal

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from ordering.order.order import Order, PaymentMethod
from ordering.order.status import OrderStatus, coerce
from shared.clock import SystemClock
from shared.exceptions import StatusChanged

logger = structlog.get_logger(__name__)


def _assert_status(order: Order, expected: OrderStatus | None) -> None:
    if expected is not None and order.current_status != expected:
        raise StatusChanged({"status": [f"Order is {order.status}, expected {expected.value}"]})


class OrderIntake:
    def __init__(self, kitchen, clock=None, tax_rate: Decimal = Decimal("0.10")):
        self._kitchen = kitchen
        self._clock = clock or SystemClock()
        self._tax_rate = tax_rate

    # -------------------------------------------------------------------
    # Creation and payment
    # -------------------------------------------------------------------
    def create_order(
        self,
        restaurant_id: str,
        customer_id: str,
        items: list[dict],
        payment_method: str = PaymentMethod.CASH,
        delivery: dict | None = None,
        delivery_fee=Decimal("0"),
        discount=Decimal("0"),
        customer_notes: str | None = None,
        scheduled_for: datetime | None = None,
    ) -> Order:
        """Create an order and its kitchen ticket.

        Cash orders are placed straight away; other payment methods wait in
        PENDING for ``confirm_payment``.
        """
        with UnitOfWork():
            now = self._clock.now()
            order = Order.create(
                restaurant_id=restaurant_id,
                customer_id=customer_id,
                items_data=items,
                delivery_data=delivery,
                payment_method=payment_method,
                now=now,
                tax_rate=self._tax_rate,
                delivery_fee=delivery_fee,
                discount=discount,
                customer_notes=customer_notes,
                scheduled_for=scheduled_for,
            )
            if payment_method == PaymentMethod.CASH:
                order.place("CUSTOMER", "Order placed", now)

            current_domain.repository_for(Order).add(order)
            self._kitchen.open(order)

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            total=str(order.total),
        )
        return order

    def confirm_payment(self, order_id: str) -> Order:
        with UnitOfWork():
            repo = current_domain.repository_for(Order)
            order = repo.get(order_id)
            order.place("PAYMENT_GATEWAY", "Payment confirmed", self._clock.now())
            repo.add(order)

        logger.info("Payment confirmed", order_id=order_id, order_number=order.order_number)
        return order

    # -------------------------------------------------------------------
    # Restaurant decisions
    # -------------------------------------------------------------------
    def accept_order(self, order_id: str, accepted_by: str) -> Order:
        with UnitOfWork():
            repo = current_domain.repository_for(Order)
            order = repo.get(order_id)
            order.accept(accepted_by, self._clock.now())
            repo.add(order)

        logger.info("Order accepted", order_id=order_id, accepted_by=accepted_by)
        return order

    def reject_order(
        self,
        order_id: str,
        reason: str,
        rejected_by: str,
        expected_status: OrderStatus | None = None,
    ) -> Order:
        """Reject an order. With ``expected_status`` set, raise ``StatusChanged``
        instead if the order has meanwhile left that status.
        """
        with UnitOfWork():
            repo = current_domain.repository_for(Order)
            order = repo.get(order_id)
            _assert_status(order, expected_status)
            order.reject(reason, rejected_by, self._clock.now())
            repo.add(order)
            self._kitchen.cancel_for_order(order_id)

        logger.info("Order rejected", order_id=order_id, rejected_by=rejected_by, reason=reason)
        return order

    def cancel_order(
        self,
        order_id: str,
        reason: str | None = None,
        cancelled_by: str = "CUSTOMER",
        notes: str | None = None,
        expected_status: OrderStatus | None = None,
    ) -> Order:
        """Cancel an order. ``expected_status`` guards it the same way as in ``reject_order``."""
        with UnitOfWork():
            repo = current_domain.repository_for(Order)
            order = repo.get(order_id)
            _assert_status(order, expected_status)
            if notes is None:
                notes = f"Cancelled by {cancelled_by.lower()}: {reason or 'No reason provided'}"
            order.cancel(reason, cancelled_by, self._clock.now(), notes=notes)
            repo.add(order)
            self._kitchen.cancel_for_order(order_id)

        logger.info("Order cancelled", order_id=order_id, cancelled_by=cancelled_by, reason=reason)
        return order

    def transition(self, order_id: str, status: OrderStatus | str, actor: str, notes: str | None = None) -> Order:
        """Administrative status change, still bound by the transition table."""
        target = coerce(status)
        with UnitOfWork():
            repo = current_domain.repository_for(Order)
            order = repo.get(order_id)
            order.transition_to(target, actor, notes, self._clock.now())
            repo.add(order)
            if target in (OrderStatus.CANCELLED, OrderStatus.REJECTED):
                self._kitchen.cancel_for_order(order_id)

        logger.info("Order status changed", order_id=order_id, status=target.value, actor=actor)
        return order

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, order_id: str) -> Order:
        return current_domain.repository_for(Order).get(order_id)

    def get_by_number(self, order_number: str) -> Order:
        return current_domain.repository_for(Order).get_by_number(order_number)

    def list_orders(
        self,
        status: OrderStatus | str | None = None,
        restaurant_id: str | None = None,
        limit: int | None = None,
    ) -> list[Order]:
        return current_domain.repository_for(Order).list_orders(
            status=coerce(status) if status is not None else None,
            restaurant_id=restaurant_id,
            limit=limit,
        )
