"""Audit trail of notification attempts, one row per sink call."""

from datetime import datetime
from enum import Enum

from protean import Index
from protean.fields import DateTime, Identifier, String, Text

from shared.domain import dispatch


class DeliveryStatus(Enum):
    SENT = "SENT"
    FAILED = "FAILED"


@dispatch.aggregate(limit=-1, indexes=[Index("order_id"), Index("created_at")])
class NotificationRecord:
    kind = String(required=True, max_length=40)
    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    status = String(required=True, choices=DeliveryStatus)
    error = Text()
    created_at = DateTime(required=True)


@dispatch.repository(part_of=NotificationRecord)
class NotificationLogRepository:
    def for_order(self, order_id: str) -> list[NotificationRecord]:
        return self.query.filter(order_id=order_id).order_by(["created_at", "kind"]).all().items

    def delete_older_than(self, cutoff: datetime) -> int:
        return self.query.filter(created_at__lt=cutoff).delete()
