"""Pydantic API schemas for the kitchen."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class StartPreparationRequest(BaseModel):
    preparer_name: str


class UpdatePriorityRequest(BaseModel):
    priority: str


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    restaurant_id: str
    status: str
    priority: str
    assigned_preparer: str | None = None
    preparation_started_at: datetime | None = None
    preparation_completed_at: datetime | None = None
    estimated_preparation_minutes: int
    actual_preparation_minutes: int | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
