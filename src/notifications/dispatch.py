"""Notification handler: announces committed order changes through the sink.

Runs after the unit of work that raised the event has committed. Delivery is
best effort: a failing sink call is logged, recorded as FAILED in the
notification log and otherwise ignored. Nothing here is retried and no
exception escapes to the operation that changed the order.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from notifications.log import DeliveryStatus, NotificationRecord
from notifications.registry import active_sink
from ordering.order.events import (
    CourierAccepted,
    CourierAssigned,
    CourierDeclined,
    OrderAccepted,
    OrderCancelled,
    OrderDelivered,
    OrderOutForDelivery,
    OrderPlaced,
    OrderPreparationStarted,
    OrderReady,
    OrderRejected,
)
from ordering.order.order import Order
from shared.domain import dispatch

logger = structlog.get_logger(__name__)


@dispatch.event_handler(part_of=Order)
class OrderNotifications:
    """Sends one notification per order event and logs the attempt."""

    @handle(OrderPlaced)
    def new_order(self, event: OrderPlaced) -> None:
        self._send("new_order", event, lambda sink: sink.notify_new_order(event))

    @handle(OrderAccepted)
    def order_accepted(self, event: OrderAccepted) -> None:
        self._send("order_accepted", event, lambda sink: sink.notify_order_accepted(event))

    @handle(OrderPreparationStarted)
    def order_preparing(self, event: OrderPreparationStarted) -> None:
        self._send("order_preparing", event, lambda sink: sink.notify_order_preparing(event))

    @handle(OrderReady)
    def order_ready(self, event: OrderReady) -> None:
        self._send("order_ready", event, lambda sink: sink.notify_order_ready(event))

    @handle(CourierAccepted)
    def courier_accepted(self, event: CourierAccepted) -> None:
        self._send("courier_accepted", event, lambda sink: sink.notify_courier_accepted(event, event.courier_name))

    @handle(CourierAssigned)
    def courier_assigned(self, event: CourierAssigned) -> None:
        self._send(
            "courier_assigned",
            event,
            lambda sink: sink.notify_courier_assigned(event, event.courier_id, event.courier_name),
        )

    @handle(CourierDeclined)
    def courier_declined(self, event: CourierDeclined) -> None:
        self._send(
            "courier_declined",
            event,
            lambda sink: sink.notify_courier_declined(event, event.courier_name, event.reason),
        )

    @handle(OrderOutForDelivery)
    def order_on_delivery(self, event: OrderOutForDelivery) -> None:
        self._send("order_on_delivery", event, lambda sink: sink.notify_order_on_delivery(event))

    @handle(OrderDelivered)
    def order_delivered(self, event: OrderDelivered) -> None:
        self._send("order_delivered", event, lambda sink: sink.notify_order_delivered(event))

    @handle(OrderCancelled)
    def order_cancelled(self, event: OrderCancelled) -> None:
        self._send("order_cancelled", event, lambda sink: sink.notify_order_cancelled(event))

    @handle(OrderRejected)
    def order_rejected(self, event: OrderRejected) -> None:
        self._send("order_rejected", event, lambda sink: sink.notify_order_rejected(event))

    def _send(self, kind: str, event, deliver) -> None:
        status, error = DeliveryStatus.SENT, None
        try:
            deliver(active_sink())
        except Exception as exc:
            status, error = DeliveryStatus.FAILED, str(exc)
            logger.warning(
                "Notification delivery failed",
                kind=kind,
                order_id=event.order_id,
                error=error,
            )

        try:
            current_domain.repository_for(NotificationRecord).add(
                NotificationRecord(
                    kind=kind,
                    order_id=event.order_id,
                    order_number=event.order_number,
                    status=status.value,
                    error=error,
                    created_at=event.occurred_at,
                )
            )
        except Exception as exc:
            logger.error("Could not write notification log", kind=kind, order_id=event.order_id, error=str(exc))
