"""Pydantic API schemas for ordering.

These are the external API contracts. Responses are built explicitly from the
aggregate; the nested delivery block is assembled from the order's flat fields.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    product_id: str
    product_name: str | None = None
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)
    special_instructions: str | None = None


class DeliveryRequest(BaseModel):
    address: str | None = None
    city: str | None = None
    zip_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    delivery_instructions: str | None = None
    contact_phone: str | None = None


class CreateOrderRequest(BaseModel):
    restaurant_id: str
    customer_id: str
    items: list[OrderItemRequest]
    payment_method: str = "CASH"
    delivery: DeliveryRequest | None = None
    delivery_fee: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    customer_notes: str | None = None
    scheduled_for: datetime | None = None


class AcceptOrderRequest(BaseModel):
    accepted_by: str


class RejectOrderRequest(BaseModel):
    reason: str
    rejected_by: str = "OPERATOR"


class CancelOrderRequest(BaseModel):
    reason: str | None = None
    cancelled_by: str = "CUSTOMER"


class TransitionRequest(BaseModel):
    status: str
    actor: str
    notes: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    special_instructions: str | None = None


class StatusHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    status: str
    changed_by: str
    notes: str | None = None
    created_at: datetime


class DeliveryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    address: str | None = None
    city: str | None = None
    zip_code: str | None = None
    delivery_instructions: str | None = None
    courier_id: str | None = None
    courier_name: str | None = None
    assigned_at: datetime | None = None
    pickup_time: datetime | None = None
    estimated_delivery_time: datetime | None = None
    delivery_time: datetime | None = None
    decline_reason: str | None = None
    delivery_notes: str | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    restaurant_id: str
    customer_id: str
    status: str
    payment_method: str
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    customer_notes: str | None = None
    scheduled_for: datetime | None = None
    created_at: datetime
    placed_at: datetime | None = None
    accepted_at: datetime | None = None
    preparing_at: datetime | None = None
    ready_at: datetime | None = None
    picked_up_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    rejected_at: datetime | None = None
    cancellation_reason: str | None = None
    rejection_reason: str | None = None
    delivery: DeliveryResponse | None = None
    status_history: list[StatusHistoryResponse] | None = None
    items: list[OrderItemResponse] | None = None

    @classmethod
    def from_order(cls, order, detail: bool = True) -> "OrderResponse":
        """Build the response. Lists pass ``detail=False`` to leave out items and status history."""
        data = {
            name: getattr(order, name)
            for name in cls.model_fields
            if name not in ("id", "delivery", "status_history", "items")
        }
        data["id"] = str(order.id)
        data["delivery"] = DeliveryResponse.model_validate(order)
        if detail:
            data["status_history"] = [StatusHistoryResponse.model_validate(h) for h in order.status_history]
            data["items"] = [OrderItemResponse.model_validate(i) for i in order.items]
        return cls(**data)


class DailyStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    orders_created: int
    orders_completed: int
    orders_cancelled: int
    orders_rejected: int
    orders_in_progress: int
    completed_revenue: Decimal
    computed_at: datetime


class MaintenanceResponse(BaseModel):
    job: str
    processed: int | None = None
