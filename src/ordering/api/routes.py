"""FastAPI routes for the Ordering domain: orders, maintenance jobs and daily metrics."""

from fastapi import APIRouter, Depends, HTTPException

from ordering.api.schemas import (
    AcceptOrderRequest,
    CancelOrderRequest,
    CreateOrderRequest,
    DailyStatsResponse,
    MaintenanceResponse,
    OrderResponse,
    RejectOrderRequest,
    TransitionRequest,
)
from shared.web import get_services

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest, services=Depends(get_services)) -> OrderResponse:
    """Create an order. Cash orders are placed immediately."""
    order = services.intake.create_order(
        restaurant_id=body.restaurant_id,
        customer_id=body.customer_id,
        items=[item.model_dump() for item in body.items],
        payment_method=body.payment_method,
        delivery=body.delivery.model_dump(exclude_none=True) if body.delivery else None,
        delivery_fee=body.delivery_fee,
        discount=body.discount,
        customer_notes=body.customer_notes,
        scheduled_for=body.scheduled_for,
    )
    return OrderResponse.from_order(order)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(
    status: str | None = None,
    restaurant_id: str | None = None,
    limit: int | None = None,
    services=Depends(get_services),
) -> list[OrderResponse]:
    orders = services.intake.list_orders(status=status, restaurant_id=restaurant_id, limit=limit)
    return [OrderResponse.from_order(order, detail=False) for order in orders]


@order_router.get("/number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(order_number: str, services=Depends(get_services)) -> OrderResponse:
    return OrderResponse.from_order(services.intake.get_by_number(order_number))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, services=Depends(get_services)) -> OrderResponse:
    """Full order detail including items and status history."""
    return OrderResponse.from_order(services.intake.get(order_id))


@order_router.put("/{order_id}/confirm-payment", response_model=OrderResponse)
async def confirm_payment(order_id: str, services=Depends(get_services)) -> OrderResponse:
    return OrderResponse.from_order(services.intake.confirm_payment(order_id))


@order_router.put("/{order_id}/accept", response_model=OrderResponse)
async def accept_order(order_id: str, body: AcceptOrderRequest, services=Depends(get_services)) -> OrderResponse:
    return OrderResponse.from_order(services.intake.accept_order(order_id, body.accepted_by))


@order_router.put("/{order_id}/reject", response_model=OrderResponse)
async def reject_order(order_id: str, body: RejectOrderRequest, services=Depends(get_services)) -> OrderResponse:
    return OrderResponse.from_order(services.intake.reject_order(order_id, body.reason, body.rejected_by))


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest, services=Depends(get_services)) -> OrderResponse:
    order = services.intake.cancel_order(order_id, body.reason, cancelled_by=body.cancelled_by)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def transition_order(order_id: str, body: TransitionRequest, services=Depends(get_services)) -> OrderResponse:
    """Administrative transition, guarded by the same table as every other path."""
    order = services.intake.transition(order_id, body.status, body.actor, body.notes)
    return OrderResponse.from_order(order)


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/{job}", response_model=MaintenanceResponse)
async def run_maintenance_job(job: str, services=Depends(get_services)) -> MaintenanceResponse:
    """Run one periodic job immediately (auto-reject, payment-timeout, metrics, cleanup)."""
    func = services.maintenance_jobs.get(job)
    if func is None:
        raise HTTPException(status_code=404, detail=f"Unknown maintenance job: {job}")
    result = func()
    return MaintenanceResponse(job=job, processed=result if isinstance(result, int) else None)


# ---------------------------------------------------------------------------
# Metrics Router
# ---------------------------------------------------------------------------
metrics_router = APIRouter(prefix="/metrics", tags=["metrics"])


@metrics_router.get("/daily/{date_key}", response_model=DailyStatsResponse)
async def get_daily_stats(date_key: str, services=Depends(get_services)) -> DailyStatsResponse:
    return DailyStatsResponse.model_validate(services.metrics.get(date_key))
