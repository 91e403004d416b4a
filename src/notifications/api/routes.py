"""FastAPI routes for notifications: the delivery log and the fake sink switch."""

from fastapi import APIRouter, Depends, HTTPException
from protean.utils.globals import current_domain

from notifications.api.schemas import ConfigureSinkRequest, NotificationRecordResponse, StatusResponse
from notifications.fake_sink import FakeSink
from notifications.log import NotificationRecord
from shared.web import get_services

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/orders/{order_id}", response_model=list[NotificationRecordResponse])
async def list_order_notifications(order_id: str) -> list[NotificationRecordResponse]:
    """Every notification attempt for an order, sent or failed."""
    records = current_domain.repository_for(NotificationRecord).for_order(order_id)
    return [NotificationRecordResponse.model_validate(r) for r in records]


@router.post("/sink/configure", response_model=StatusResponse)
async def configure_sink(body: ConfigureSinkRequest, services=Depends(get_services)) -> StatusResponse:
    """Configure the fake sink behavior (test/dev only)."""
    if services.settings.env == "production":
        raise HTTPException(status_code=403, detail="Not available in production")
    if not isinstance(services.sink, FakeSink):
        raise HTTPException(status_code=400, detail="Not using fake sink")
    services.sink.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return StatusResponse(status="configured")
