"""Pydantic API schemas for courier assignment."""

from pydantic import BaseModel


class CourierAcceptRequest(BaseModel):
    courier_id: str
    courier_name: str | None = None


class CourierDeclineRequest(BaseModel):
    courier_id: str
    reason: str | None = None


class AssignCourierRequest(BaseModel):
    courier_id: str
    courier_name: str | None = None


class CourierActionRequest(BaseModel):
    courier_id: str


class CompleteDeliveryRequest(BaseModel):
    courier_id: str
    notes: str | None = None
