"""Pydantic API schemas for the notification log."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ConfigureSinkRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Notification delivery failed"


class StatusResponse(BaseModel):
    status: str = "ok"


class NotificationRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    order_id: str
    order_number: str
    status: str
    error: str | None = None
    created_at: datetime
