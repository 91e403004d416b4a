"""Kitchen ticket: the preparation record bound one-to-one to an order.

State Machine:
    PENDING → PREPARING → READY → PICKED_UP
    PENDING → CANCELLED
"""

import math
from datetime import datetime
from enum import Enum

from protean import Index
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from shared.domain import dispatch
from shared.exceptions import InvalidState


class TicketStatus(Enum):
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    READY = "READY"
    PICKED_UP = "PICKED_UP"
    CANCELLED = "CANCELLED"


class TicketPriority(Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


PRIORITY_RANK = {
    TicketPriority.URGENT.value: 0,
    TicketPriority.HIGH.value: 1,
    TicketPriority.NORMAL.value: 2,
    TicketPriority.LOW.value: 3,
}

_VALID_TRANSITIONS = {
    TicketStatus.PENDING: {TicketStatus.PREPARING, TicketStatus.CANCELLED},
    TicketStatus.PREPARING: {TicketStatus.READY},
    TicketStatus.READY: {TicketStatus.PICKED_UP},
    TicketStatus.PICKED_UP: set(),  # terminal
    TicketStatus.CANCELLED: set(),  # terminal
}


@dispatch.aggregate(limit=-1, indexes=[Index("restaurant_id"), Index("status")])
class KitchenTicket:
    order_id = Identifier(required=True, unique=True)
    restaurant_id = String(required=True, max_length=64)
    status = String(choices=TicketStatus, default=TicketStatus.PENDING.value)
    priority = String(choices=TicketPriority, default=TicketPriority.NORMAL.value)
    assigned_preparer = String(max_length=100)
    preparation_started_at = DateTime()
    preparation_completed_at = DateTime()
    estimated_preparation_minutes = Integer(required=True, min_value=0)
    actual_preparation_minutes = Integer()
    notes = Text()
    created_at = DateTime(required=True)
    updated_at = DateTime()

    @classmethod
    def open(cls, order_id: str, restaurant_id: str, estimated_minutes: int, now: datetime, notes: str | None = None):
        return cls(
            order_id=order_id,
            restaurant_id=restaurant_id,
            status=TicketStatus.PENDING.value,
            priority=TicketPriority.NORMAL.value,
            estimated_preparation_minutes=estimated_minutes,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    def _assert_can_transition(self, target_status: TicketStatus) -> None:
        current = TicketStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidState({"status": [f"Kitchen ticket cannot move from {current.value} to {target_status.value}"]})

    def start_preparation(self, preparer_name: str, now: datetime) -> None:
        if TicketStatus(self.status) != TicketStatus.PENDING:
            raise InvalidState({"status": [f"Preparation can only start from PENDING, ticket is {self.status}"]})
        self.status = TicketStatus.PREPARING.value
        self.assigned_preparer = preparer_name
        self.preparation_started_at = now
        self.updated_at = now

    def mark_ready(self, now: datetime) -> None:
        if TicketStatus(self.status) != TicketStatus.PREPARING:
            raise InvalidState({"status": [f"Only a PREPARING ticket can be marked ready, ticket is {self.status}"]})
        self.status = TicketStatus.READY.value
        self.preparation_completed_at = now
        self.actual_preparation_minutes = preparation_minutes(self.preparation_started_at, now)
        self.updated_at = now

    def mark_picked_up(self, now: datetime) -> None:
        self._assert_can_transition(TicketStatus.PICKED_UP)
        self.status = TicketStatus.PICKED_UP.value
        self.updated_at = now

    def cancel(self, now: datetime) -> None:
        self._assert_can_transition(TicketStatus.CANCELLED)
        self.status = TicketStatus.CANCELLED.value
        self.updated_at = now

    def update_priority(self, priority: "TicketPriority | str", now: datetime) -> None:
        try:
            priority = TicketPriority(priority)
        except ValueError:
            raise ValidationError({"priority": [f"Unknown priority: {priority}"]}) from None
        self.priority = priority.value
        self.updated_at = now


def preparation_minutes(started_at: datetime, completed_at: datetime) -> int:
    """Whole minutes elapsed, rounded down."""
    return math.floor((completed_at - started_at).total_seconds() / 60)
