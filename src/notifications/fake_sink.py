"""Fake sink: records notifications in memory for test assertions."""

from notifications.sink import NotificationSink
from shared.exceptions import NotificationDeliveryFailure


class FakeSink(NotificationSink):
    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake sink behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _record(self, kind: str, order, **context) -> None:
        if not self.should_succeed:
            raise NotificationDeliveryFailure({"notification": [self.failure_reason]})
        self.sent_messages.append({"kind": kind, "order_id": order.order_id, "status": order.status, **context})

    def kinds(self, order_id: str | None = None) -> list[str]:
        return [m["kind"] for m in self.sent_messages if order_id is None or m["order_id"] == order_id]

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def notify_new_order(self, order):
        self._record("new_order", order)

    def notify_order_accepted(self, order):
        self._record("order_accepted", order)

    def notify_order_preparing(self, order):
        self._record("order_preparing", order)

    def notify_order_ready(self, order):
        self._record("order_ready", order)

    def notify_courier_assigned(self, order, courier_id, courier_name):
        self._record("courier_assigned", order, courier_id=courier_id, courier_name=courier_name)

    def notify_order_on_delivery(self, order):
        self._record("order_on_delivery", order)

    def notify_order_delivered(self, order):
        self._record("order_delivered", order)

    def notify_order_cancelled(self, order):
        self._record("order_cancelled", order)

    def notify_order_rejected(self, order):
        self._record("order_rejected", order)

    def notify_courier_accepted(self, order, courier_name):
        self._record("courier_accepted", order, courier_name=courier_name)

    def notify_courier_declined(self, order, courier_name, reason):
        self._record("courier_declined", order, courier_name=courier_name, reason=reason)
