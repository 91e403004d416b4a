"""Order aggregate: status, money breakdown, status history and delivery record.

Status only changes through ``_transition``, which consults the transition
table and appends exactly one history record. The delivery address and the
courier binding are plain fields on the order so the binding can be claimed
with a conditional update on the ``order`` table.
"""

import decimal
import secrets
from datetime import datetime, timedelta

from protean import Index
from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Float, HasMany, Identifier, Integer, String, Text

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
from ordering.order.status import OrderStatus, can_cancel, coerce, validate
from shared.domain import dispatch
from shared.exceptions import InvalidState, InvalidTransition
from shared.money import ZERO, to_money


class PaymentMethod:
    CASH = "CASH"
    CARD = "CARD"
    ONLINE = "ONLINE"
    WALLET = "WALLET"

    ALL = (CASH, CARD, ONLINE, WALLET)


DELIVERY_FIELDS = (
    "address",
    "city",
    "zip_code",
    "latitude",
    "longitude",
    "delivery_instructions",
    "contact_phone",
)


def generate_order_number(now: datetime) -> str:
    millis = int(now.timestamp() * 1000)
    return f"ORD-{millis}-{secrets.token_hex(4).upper()}"


def courier_actor(courier_id: str) -> str:
    return f"COURIER_{courier_id}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dispatch.entity(part_of="Order", limit=-1)
class OrderItem:
    position = Integer(required=True, min_value=1)
    product_id = String(required=True, max_length=64)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Decimal(precision=12, scale=2, required=True)
    total_price = Decimal(precision=12, scale=2, required=True)
    special_instructions = Text()


@dispatch.entity(part_of="Order", limit=-1)
class StatusHistory:
    """One entry in the order's audit trail. ``sequence`` is dense from 1."""

    sequence = Integer(required=True, min_value=1)
    status = String(required=True, max_length=20)
    changed_by = String(required=True, max_length=100)
    notes = Text()
    created_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@dispatch.aggregate(
    limit=-1,
    indexes=[Index("status"), Index("courier_id"), Index("restaurant_id"), Index("created_at")],
)
class Order:
    order_number = String(required=True, max_length=40, unique=True)
    restaurant_id = String(required=True, max_length=64)
    customer_id = String(required=True, max_length=64)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_method = String(required=True, max_length=20)

    subtotal = Decimal(precision=12, scale=2, default=ZERO)
    delivery_fee = Decimal(precision=12, scale=2, default=ZERO)
    tax = Decimal(precision=12, scale=2, default=ZERO)
    discount = Decimal(precision=12, scale=2, default=ZERO)
    total = Decimal(precision=12, scale=2, default=ZERO)

    customer_notes = Text()
    scheduled_for = DateTime()

    # Delivery address
    address = String(max_length=500)
    city = String(max_length=100)
    zip_code = String(max_length=20)
    latitude = Float()
    longitude = Float()
    delivery_instructions = Text()
    contact_phone = String(max_length=32)

    # Courier binding
    courier_id = Identifier()
    courier_name = String(max_length=200)
    assigned_at = DateTime()
    pickup_time = DateTime()
    estimated_delivery_time = DateTime()
    delivery_time = DateTime()
    decline_reason = Text()
    delivery_notes = Text()

    created_at = DateTime(required=True)
    placed_at = DateTime()
    accepted_at = DateTime()
    preparing_at = DateTime()
    ready_at = DateTime()
    picked_up_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()
    rejected_at = DateTime()
    cancellation_reason = Text()
    rejection_reason = Text()
    updated_at = DateTime()

    order_items = HasMany(OrderItem)
    history = HasMany(StatusHistory)

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        restaurant_id: str,
        customer_id: str,
        items_data: list[dict],
        delivery_data: dict | None,
        payment_method: str,
        now: datetime,
        tax_rate: decimal.Decimal = decimal.Decimal("0.10"),
        delivery_fee=ZERO,
        discount=ZERO,
        customer_notes: str | None = None,
        scheduled_for: datetime | None = None,
    ) -> "Order":
        """Create a new order in PENDING with its items, totals and delivery address."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})
        if payment_method not in PaymentMethod.ALL:
            raise ValidationError({"payment_method": [f"Unknown payment method: {payment_method}"]})

        delivery_fee = to_money(delivery_fee)
        discount = to_money(discount)
        if delivery_fee < ZERO or discount < ZERO:
            raise ValidationError({"amount": ["Delivery fee and discount cannot be negative"]})

        items = []
        subtotal = ZERO
        for position, item in enumerate(items_data, start=1):
            quantity = int(item["quantity"])
            if quantity < 1:
                raise ValidationError({"quantity": ["Quantity must be at least 1"]})
            unit_price = to_money(item["unit_price"])
            if unit_price < ZERO:
                raise ValidationError({"unit_price": ["Unit price cannot be negative"]})
            line_total = to_money(unit_price * quantity)
            items.append(
                OrderItem(
                    position=position,
                    product_id=str(item["product_id"]),
                    product_name=item.get("product_name") or str(item["product_id"]),
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=line_total,
                    special_instructions=item.get("special_instructions"),
                )
            )
            subtotal += line_total

        tax = to_money(subtotal * tax_rate)
        total = subtotal + delivery_fee + tax - discount
        if total < ZERO:
            raise ValidationError({"discount": ["Discount exceeds the order amount"]})

        delivery = {key: value for key, value in (delivery_data or {}).items() if key in DELIVERY_FIELDS}
        order = cls(
            order_number=generate_order_number(now),
            restaurant_id=restaurant_id,
            customer_id=customer_id,
            status=OrderStatus.PENDING.value,
            payment_method=payment_method,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            tax=tax,
            discount=discount,
            total=to_money(total),
            customer_notes=customer_notes,
            scheduled_for=scheduled_for,
            created_at=now,
            updated_at=now,
            **delivery,
        )
        order.add_order_items(items)
        order._record_history(OrderStatus.PENDING, "CUSTOMER", "Order created", now)
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def items(self) -> list[OrderItem]:
        return sorted(self.order_items or [], key=lambda item: item.position)

    @property
    def status_history(self) -> list[StatusHistory]:
        return sorted(self.history or [], key=lambda entry: entry.sequence)

    def _event_fields(self, now: datetime) -> dict:
        return {
            "order_id": str(self.id),
            "order_number": self.order_number,
            "status": self.status,
            "restaurant_id": self.restaurant_id,
            "customer_id": self.customer_id,
            "total": self.total,
            "courier_id": self.courier_id,
            "courier_name": self.courier_name,
            "occurred_at": now,
        }

    def _record_history(self, status: OrderStatus, actor: str, notes: str | None, now: datetime) -> None:
        self.add_history(
            StatusHistory(
                sequence=len(self.history or []) + 1,
                status=status.value,
                changed_by=actor,
                notes=notes,
                created_at=now,
            )
        )

    def _transition(self, target: OrderStatus, actor: str, notes: str | None, now: datetime) -> None:
        validate(self.current_status, target)
        self.status = target.value
        self.updated_at = now
        self._record_history(target, actor, notes, now)

    def _assert_bound_courier(self, courier_id: str) -> None:
        if self.courier_id is None or self.courier_id != courier_id:
            raise InvalidState({"courier_id": ["This order is not assigned to you"]})

    # -------------------------------------------------------------------
    # Intake and restaurant decisions
    # -------------------------------------------------------------------
    def place(self, actor: str, notes: str, now: datetime) -> None:
        """PENDING → PLACED: payment is settled and the restaurant can act."""
        self._transition(OrderStatus.PLACED, actor, notes, now)
        self.placed_at = now
        self.raise_(OrderPlaced(**self._event_fields(now)))

    def accept(self, accepted_by: str, now: datetime) -> None:
        self._transition(OrderStatus.ACCEPTED, accepted_by, "Order accepted by restaurant", now)
        self.accepted_at = now
        self.raise_(OrderAccepted(**self._event_fields(now), accepted_by=accepted_by))

    def reject(self, reason: str, rejected_by: str, now: datetime) -> None:
        self._transition(OrderStatus.REJECTED, rejected_by, reason, now)
        self.rejected_at = now
        self.rejection_reason = reason
        self.raise_(OrderRejected(**self._event_fields(now), reason=reason, rejected_by=rejected_by))

    def cancel(self, reason: str | None, cancelled_by: str, now: datetime, notes: str | None = None) -> None:
        if not can_cancel(self.current_status):
            raise InvalidTransition({"status": [f"Cannot cancel order in current status: {self.status}"]})
        self._transition(OrderStatus.CANCELLED, cancelled_by, notes or reason, now)
        self.cancelled_at = now
        self.cancellation_reason = reason
        self.raise_(OrderCancelled(**self._event_fields(now), reason=reason, cancelled_by=cancelled_by))

    # -------------------------------------------------------------------
    # Kitchen
    # -------------------------------------------------------------------
    def start_preparing(self, preparer: str, now: datetime) -> None:
        self._transition(OrderStatus.PREPARING, preparer, f"Preparation started by {preparer}", now)
        self.preparing_at = now
        self.raise_(OrderPreparationStarted(**self._event_fields(now), preparer=preparer))

    def mark_ready(self, now: datetime) -> None:
        self._transition(OrderStatus.READY, "KITCHEN", "Order ready for pickup/delivery", now)
        self.ready_at = now
        self.raise_(OrderReady(**self._event_fields(now)))

    # -------------------------------------------------------------------
    # Courier assignment
    # -------------------------------------------------------------------
    def record_courier_accepted(self, courier_id: str, courier_name: str | None, now: datetime) -> None:
        """Record a successful claim of a READY order by ``courier_id``."""
        self.courier_id = courier_id
        self.courier_name = courier_name
        self.assigned_at = now
        self.pickup_time = now
        self.decline_reason = None
        self.updated_at = now
        self._record_history(self.current_status, courier_actor(courier_id), "Courier accepted order", now)
        self.raise_(CourierAccepted(**self._event_fields(now)))

    def assign_courier(self, courier_id: str, courier_name: str | None, now: datetime) -> None:
        """Operator override: bind ``courier_id`` whatever the current binding is."""
        if self.current_status not in (OrderStatus.ACCEPTED, OrderStatus.PREPARING, OrderStatus.READY):
            raise InvalidTransition(
                {"status": [f"Cannot assign a courier to an order in status: {self.status}"]}
            )
        self.courier_id = courier_id
        self.courier_name = courier_name
        self.assigned_at = now
        self.pickup_time = None
        self.decline_reason = None
        self.updated_at = now
        self._record_history(self.current_status, "OPERATOR", "Courier manually assigned", now)
        self.raise_(CourierAssigned(**self._event_fields(now)))

    def release_courier(self, courier_id: str, reason: str | None, now: datetime) -> None:
        """The bound courier declines; the order becomes available again."""
        self._assert_bound_courier(courier_id)
        if self.current_status != OrderStatus.READY:
            raise InvalidState({"status": [f"Order cannot be declined in status: {self.status}"]})

        courier_name = self.courier_name
        self.courier_id = None
        self.courier_name = None
        self.assigned_at = None
        self.pickup_time = None
        self.decline_reason = reason
        self.updated_at = now
        note = f"Courier declined order: {reason}" if reason else "Courier declined order"
        self._record_history(self.current_status, courier_actor(courier_id), note, now)

        fields = self._event_fields(now)
        fields.update(courier_id=courier_id, courier_name=courier_name or courier_id)
        self.raise_(CourierDeclined(**fields, reason=reason))

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    def start_delivery(self, courier_id: str, now: datetime, estimated_minutes: int) -> None:
        self._assert_bound_courier(courier_id)
        self._transition(OrderStatus.PICKED_UP, courier_actor(courier_id), "Order picked up, out for delivery", now)
        self.picked_up_at = now
        self.pickup_time = now
        self.estimated_delivery_time = now + timedelta(minutes=estimated_minutes)
        self.raise_(OrderOutForDelivery(**self._event_fields(now)))

    def complete_delivery(self, courier_id: str, notes: str | None, now: datetime) -> None:
        self._assert_bound_courier(courier_id)
        self._transition(
            OrderStatus.COMPLETED,
            courier_actor(courier_id),
            notes or "Order delivered successfully",
            now,
        )
        self.completed_at = now
        self.delivery_time = now
        self.delivery_notes = notes
        self.raise_(OrderDelivered(**self._event_fields(now)))

    # -------------------------------------------------------------------
    # Administrative
    # -------------------------------------------------------------------
    def transition_to(self, target, actor: str, notes: str | None, now: datetime) -> None:
        """Guarded transition to any status, dispatched to the matching operation."""
        target = coerce(target)
        if target == OrderStatus.PLACED:
            self.place(actor, notes or "Order placed", now)
        elif target == OrderStatus.ACCEPTED:
            self.accept(actor, now)
        elif target == OrderStatus.CANCELLED:
            self.cancel(notes, actor, now)
        elif target == OrderStatus.REJECTED:
            self.reject(notes or "Rejected by operator", actor, now)
        else:
            # PREPARING and READY move with the kitchen ticket, PICKED_UP and
            # COMPLETED with the bound courier
            validate(self.current_status, target)
            raise InvalidState({"status": [f"{target.value} can only be reached through the kitchen or delivery flow"]})
