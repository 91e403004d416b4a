"""Sink that writes each notification as a structured log line."""

import structlog

from notifications.sink import NotificationSink

logger = structlog.get_logger(__name__)


class LoggingSink(NotificationSink):
    def _emit(self, kind: str, order, **context) -> None:
        logger.info(
            "Notification",
            kind=kind,
            order_id=order.order_id,
            order_number=order.order_number,
            status=order.status,
            restaurant_id=order.restaurant_id,
            customer_id=order.customer_id,
            **context,
        )

    def notify_new_order(self, order):
        self._emit("new_order", order)

    def notify_order_accepted(self, order):
        self._emit("order_accepted", order)

    def notify_order_preparing(self, order):
        self._emit("order_preparing", order)

    def notify_order_ready(self, order):
        self._emit("order_ready", order)

    def notify_courier_assigned(self, order, courier_id, courier_name):
        self._emit("courier_assigned", order, courier_id=courier_id, courier_name=courier_name)

    def notify_order_on_delivery(self, order):
        self._emit("order_on_delivery", order, courier_id=order.courier_id)

    def notify_order_delivered(self, order):
        self._emit("order_delivered", order, courier_id=order.courier_id)

    def notify_order_cancelled(self, order):
        self._emit("order_cancelled", order)

    def notify_order_rejected(self, order):
        self._emit("order_rejected", order)

    def notify_courier_accepted(self, order, courier_name):
        self._emit("courier_accepted", order, courier_id=order.courier_id, courier_name=courier_name)

    def notify_courier_declined(self, order, courier_name, reason):
        self._emit("courier_declined", order, courier_name=courier_name, reason=reason)
