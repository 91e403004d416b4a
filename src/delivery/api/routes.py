"""FastAPI routes for couriers: claiming, declining and delivering orders."""

from fastapi import APIRouter, Depends

from delivery.api.schemas import (
    AssignCourierRequest,
    CompleteDeliveryRequest,
    CourierAcceptRequest,
    CourierActionRequest,
    CourierDeclineRequest,
)
from ordering.api.schemas import OrderResponse
from shared.web import get_services

router = APIRouter(prefix="/courier", tags=["courier"])


@router.get("/orders/available", response_model=list[OrderResponse])
async def list_available_orders(restaurant_id: str | None = None, services=Depends(get_services)) -> list[OrderResponse]:
    """READY orders with no courier, oldest first."""
    return [OrderResponse.from_order(o, detail=False) for o in services.coordinator.list_available(restaurant_id)]


@router.get("/{courier_id}/orders", response_model=list[OrderResponse])
async def list_courier_orders(courier_id: str, services=Depends(get_services)) -> list[OrderResponse]:
    return [OrderResponse.from_order(o, detail=False) for o in services.coordinator.list_for_courier(courier_id)]


@router.put("/orders/{order_id}/accept", response_model=OrderResponse)
async def accept_order(order_id: str, body: CourierAcceptRequest, services=Depends(get_services)) -> OrderResponse:
    """Claim a READY order. Exactly one concurrent claimant wins; the rest get 409."""
    order = services.coordinator.accept(order_id, body.courier_id, body.courier_name)
    return OrderResponse.from_order(order)


@router.put("/orders/{order_id}/decline", response_model=OrderResponse)
async def decline_order(order_id: str, body: CourierDeclineRequest, services=Depends(get_services)) -> OrderResponse:
    order = services.coordinator.decline(order_id, body.courier_id, body.reason)
    return OrderResponse.from_order(order)


@router.put("/orders/{order_id}/assign", response_model=OrderResponse)
async def assign_courier(order_id: str, body: AssignCourierRequest, services=Depends(get_services)) -> OrderResponse:
    """Operator override of the courier binding."""
    order = services.coordinator.assign(order_id, body.courier_id, body.courier_name)
    return OrderResponse.from_order(order)


@router.put("/orders/{order_id}/start-delivery", response_model=OrderResponse)
async def start_delivery(order_id: str, body: CourierActionRequest, services=Depends(get_services)) -> OrderResponse:
    order = services.coordinator.start_delivery(order_id, body.courier_id)
    return OrderResponse.from_order(order)


@router.put("/orders/{order_id}/complete", response_model=OrderResponse)
async def complete_delivery(
    order_id: str, body: CompleteDeliveryRequest, services=Depends(get_services)
) -> OrderResponse:
    """Complete the delivery and credit the courier's fee in one transaction."""
    order = services.coordinator.complete_delivery(order_id, body.courier_id, body.notes)
    return OrderResponse.from_order(order)
