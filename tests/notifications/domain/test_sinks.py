"""Tests for notification sinks: the fake sink and the sink registry."""

from datetime import datetime
from decimal import Decimal

import pytest
from notifications.fake_sink import FakeSink
from notifications.logging_sink import LoggingSink
from notifications.registry import get_sink, reset_sinks
from ordering.order.events import OrderPlaced
from shared.exceptions import NotificationDeliveryFailure


def _make_event(**overrides):
    data = {
        "order_id": "order-1",
        "order_number": "ORD-1705320000000-ABCDEF12",
        "status": "PLACED",
        "restaurant_id": "rest-001",
        "customer_id": "cust-001",
        "total": Decimal("31.90"),
        "courier_id": None,
        "courier_name": None,
        "occurred_at": datetime(2024, 1, 15, 12, 0, 0),
    }
    data.update(overrides)
    return OrderPlaced(**data)


class TestFakeSink:
    def setup_method(self):
        self.sink = FakeSink()

    def test_records_notification(self):
        self.sink.notify_new_order(_make_event())

        assert self.sink.sent_messages == [{"kind": "new_order", "order_id": "order-1", "status": "PLACED"}]

    def test_records_courier_context(self):
        self.sink.notify_courier_declined(_make_event(status="READY"), "Bob", "Too far")

        message = self.sink.sent_messages[0]
        assert message["courier_name"] == "Bob"
        assert message["reason"] == "Too far"

    def test_kinds_filter_by_order(self):
        self.sink.notify_new_order(_make_event())
        self.sink.notify_new_order(_make_event(order_id="order-2"))

        assert self.sink.kinds("order-2") == ["new_order"]
        assert len(self.sink.kinds()) == 2

    def test_configured_failure_raises(self):
        self.sink.configure(should_succeed=False, failure_reason="SMTP down")

        with pytest.raises(NotificationDeliveryFailure) as exc_info:
            self.sink.notify_order_ready(_make_event())
        assert "SMTP down" in str(exc_info.value)
        assert self.sink.sent_messages == []

    def test_reset(self):
        self.sink.notify_new_order(_make_event())
        self.sink.configure(should_succeed=False)
        self.sink.reset()

        assert self.sink.sent_messages == []
        assert self.sink.should_succeed is True


class TestLoggingSink:
    def test_every_notification_is_accepted(self):
        sink = LoggingSink()
        event = _make_event(courier_id="courier-1", courier_name="Bob")

        sink.notify_new_order(event)
        sink.notify_courier_assigned(event, "courier-1", "Bob")
        sink.notify_order_delivered(event)


class TestRegistry:
    def teardown_method(self):
        reset_sinks()

    def test_singleton_per_type(self):
        assert get_sink("fake") is get_sink("fake")
        assert isinstance(get_sink("log"), LoggingSink)

    def test_reset_creates_fresh_instances(self):
        first = get_sink("fake")
        reset_sinks()
        assert get_sink("fake") is not first

    def test_unknown_sink(self):
        with pytest.raises(ValueError):
            get_sink("carrier-pigeon")
