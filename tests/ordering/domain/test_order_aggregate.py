"""Tests for the Order aggregate: creation, totals, history and guarded operations."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from ordering.order.events import CourierDeclined, OrderAccepted, OrderCancelled, OrderPlaced
from ordering.order.order import Order, courier_actor
from ordering.order.status import OrderStatus
from protean.exceptions import ValidationError
from shared.exceptions import InvalidState, InvalidTransition

NOW = datetime(2024, 1, 15, 12, 0, 0)


def _make_order(**overrides):
    data = {
        "restaurant_id": "rest-001",
        "customer_id": "cust-001",
        "items_data": [
            {"product_id": "burger", "product_name": "Burger", "quantity": 2, "unit_price": "12.50"},
            {"product_id": "fries", "quantity": 1, "unit_price": "4.00"},
        ],
        "delivery_data": {"address": "1 Main St", "city": "Springfield"},
        "payment_method": "CASH",
        "now": NOW,
    }
    data.update(overrides)
    return Order.create(**data)


def _order_at(status):
    order = _make_order()
    steps = [
        (OrderStatus.PLACED, lambda: order.place("CUSTOMER", "Order placed", NOW)),
        (OrderStatus.ACCEPTED, lambda: order.accept("manager", NOW)),
        (OrderStatus.PREPARING, lambda: order.start_preparing("Alice", NOW)),
        (OrderStatus.READY, lambda: order.mark_ready(NOW)),
    ]
    for step_status, step in steps:
        if order.current_status == status:
            break
        step()
    order._events.clear()
    return order


class TestOrderCreation:
    def test_new_order_is_pending_with_one_history_record(self):
        order = _make_order()

        assert order.status == "PENDING"
        assert len(order.status_history) == 1
        history = order.status_history[0]
        assert history.status == "PENDING"
        assert history.changed_by == "CUSTOMER"
        assert history.notes == "Order created"

    def test_totals(self):
        order = _make_order(delivery_fee="3.00", discount="1.00")

        assert order.subtotal == Decimal("29.00")
        assert order.tax == Decimal("2.90")
        assert order.total == Decimal("33.90")
        assert [item.total_price for item in order.items] == [Decimal("25.00"), Decimal("4.00")]

    def test_order_number_format(self):
        order = _make_order()
        prefix, millis, suffix = order.order_number.split("-")
        assert prefix == "ORD"
        assert int(millis) == int(NOW.timestamp() * 1000)
        assert len(suffix) == 8 and suffix == suffix.upper()

    def test_item_name_defaults_to_product_id(self):
        order = _make_order()
        assert order.items[1].product_name == "fries"

    def test_requires_items(self):
        with pytest.raises(ValidationError):
            _make_order(items_data=[])

    def test_rejects_unknown_payment_method(self):
        with pytest.raises(ValidationError):
            _make_order(payment_method="BARTER")

    def test_rejects_zero_quantity(self):
        with pytest.raises(ValidationError):
            _make_order(items_data=[{"product_id": "p", "quantity": 0, "unit_price": "1.00"}])

    def test_rejects_discount_larger_than_order(self):
        with pytest.raises(ValidationError):
            _make_order(discount="500.00")


class TestHistory:
    def test_every_transition_appends_exactly_one_record(self):
        order = _make_order()
        order.place("CUSTOMER", "Order placed", NOW)
        order.accept("manager", NOW + timedelta(minutes=1))

        assert [h.status for h in order.status_history] == ["PENDING", "PLACED", "ACCEPTED"]
        assert [h.sequence for h in order.status_history] == [1, 2, 3]

    def test_failed_transition_leaves_no_record(self):
        order = _make_order()
        with pytest.raises(InvalidTransition):
            order.accept("manager", NOW)

        assert order.status == "PENDING"
        assert len(order.status_history) == 1

    def test_accept_stamps_time_and_raises_event(self):
        order = _order_at(OrderStatus.PLACED)
        later = NOW + timedelta(minutes=3)
        order.accept("manager", later)

        assert order.accepted_at == later
        (event,) = order._events
        assert isinstance(event, OrderAccepted)
        assert event.accepted_by == "manager"
        assert event.status == "ACCEPTED"


class TestCancellation:
    def test_cancel_from_placed(self):
        order = _order_at(OrderStatus.PLACED)
        order.cancel("Changed my mind", "CUSTOMER", NOW)

        assert order.status == "CANCELLED"
        assert order.cancellation_reason == "Changed my mind"
        assert order.cancelled_at == NOW
        assert isinstance(order._events[-1], OrderCancelled)

    def test_cannot_cancel_once_preparing(self):
        order = _order_at(OrderStatus.PREPARING)
        with pytest.raises(InvalidTransition) as exc_info:
            order.cancel("too late", "CUSTOMER", NOW)
        assert "Cannot cancel order in current status: PREPARING" in str(exc_info.value)


class TestCourierBinding:
    def test_assign_keeps_status_and_records_history(self):
        order = _order_at(OrderStatus.READY)
        order.assign_courier("c-1", "Bob", NOW)

        assert order.status == "READY"
        assert order.courier_id == "c-1"
        last = order.status_history[-1]
        assert last.status == "READY"
        assert last.changed_by == "OPERATOR"

    def test_assign_rejected_before_acceptance(self):
        order = _order_at(OrderStatus.PLACED)
        with pytest.raises(InvalidTransition):
            order.assign_courier("c-1", "Bob", NOW)

    def test_release_by_bound_courier(self):
        order = _order_at(OrderStatus.READY)
        order.assign_courier("c-1", "Bob", NOW)
        order._events.clear()

        order.release_courier("c-1", "Too far", NOW)

        assert order.courier_id is None
        assert order.decline_reason == "Too far"
        assert order.status_history[-1].changed_by == courier_actor("c-1")
        (event,) = order._events
        assert isinstance(event, CourierDeclined)
        assert event.courier_name == "Bob"

    def test_release_by_other_courier_is_refused(self):
        order = _order_at(OrderStatus.READY)
        order.assign_courier("c-1", "Bob", NOW)

        with pytest.raises(InvalidState) as exc_info:
            order.release_courier("c-2", None, NOW)
        assert "This order is not assigned to you" in str(exc_info.value)

    def test_start_delivery_requires_bound_courier(self):
        order = _order_at(OrderStatus.READY)
        with pytest.raises(InvalidState):
            order.start_delivery("c-1", NOW, 30)

    def test_start_delivery_sets_eta(self):
        order = _order_at(OrderStatus.READY)
        order.assign_courier("c-1", "Bob", NOW)
        order.start_delivery("c-1", NOW, 30)

        assert order.status == "PICKED_UP"
        assert order.estimated_delivery_time == NOW + timedelta(minutes=30)

    def test_complete_directly_from_ready(self):
        order = _order_at(OrderStatus.READY)
        order.assign_courier("c-1", "Bob", NOW)
        order.complete_delivery("c-1", None, NOW)

        assert order.status == "COMPLETED"
        assert order.status_history[-1].notes == "Order delivered successfully"


class TestAdministrativeTransition:
    def test_transition_to_placed(self):
        order = _make_order()
        order.transition_to("PLACED", "OPERATOR", None, NOW)

        assert order.status == "PLACED"
        assert isinstance(order._events[-1], OrderPlaced)

    def test_kitchen_statuses_cannot_be_forced(self):
        order = _order_at(OrderStatus.ACCEPTED)
        with pytest.raises(InvalidState):
            order.transition_to("PREPARING", "OPERATOR", None, NOW)
        assert order.status == "ACCEPTED"

    def test_illegal_edge_still_raises_invalid_transition(self):
        order = _order_at(OrderStatus.READY)
        with pytest.raises(InvalidTransition):
            order.transition_to("PREPARING", "OPERATOR", None, NOW)
        assert order.status == "READY"
