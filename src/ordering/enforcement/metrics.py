"""Daily order statistics, recomputed by the hourly metrics job.

Read-only with respect to orders; the only write is the day's stats row.
"""

from datetime import datetime, timedelta

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Decimal, Integer, String
from protean.utils.globals import current_domain

from ordering.order.order import Order
from ordering.order.status import OrderStatus
from shared.clock import SystemClock
from shared.domain import dispatch
from shared.money import ZERO

logger = structlog.get_logger(__name__)


@dispatch.aggregate(limit=-1)
class DailyOrderStats:
    date = String(identifier=True, max_length=10)  # YYYY-MM-DD
    orders_created = Integer(default=0)
    orders_completed = Integer(default=0)
    orders_cancelled = Integer(default=0)
    orders_rejected = Integer(default=0)
    orders_in_progress = Integer(default=0)
    completed_revenue = Decimal(precision=14, scale=2, default=ZERO)
    computed_at = DateTime()


_TERMINAL_COLUMNS = {
    OrderStatus.COMPLETED.value: "orders_completed",
    OrderStatus.CANCELLED.value: "orders_cancelled",
    OrderStatus.REJECTED.value: "orders_rejected",
}


class OrderMetrics:
    def __init__(self, clock=None):
        self._clock = clock or SystemClock()

    def aggregate(self, as_of: datetime | None = None) -> DailyOrderStats:
        """Recompute the stats row for the day containing ``as_of``."""
        as_of = as_of or self._clock.now()
        start = as_of.replace(hour=0, minute=0, second=0, microsecond=0)
        end = start + timedelta(days=1)
        date_key = start.date().isoformat()

        orders = current_domain.repository_for(Order)
        counts = orders.count_by_status(start, end)
        revenue = sum((o.total for o in orders.completed_between(start, end)), ZERO)

        repo = current_domain.repository_for(DailyOrderStats)
        stats = repo.get_or_none(date_key) or DailyOrderStats(date=date_key)
        stats.orders_created = sum(counts.values())
        for status, column in _TERMINAL_COLUMNS.items():
            setattr(stats, column, counts.get(status, 0))
        stats.orders_in_progress = stats.orders_created - sum(counts.get(s, 0) for s in _TERMINAL_COLUMNS)
        stats.completed_revenue = revenue
        stats.computed_at = self._clock.now()
        repo.add(stats)

        logger.info(
            "Daily order metrics computed",
            date=date_key,
            orders_created=stats.orders_created,
            orders_completed=stats.orders_completed,
            orders_cancelled=stats.orders_cancelled,
            orders_rejected=stats.orders_rejected,
        )
        return stats

    def get(self, date_key: str) -> DailyOrderStats:
        stats = current_domain.repository_for(DailyOrderStats).get_or_none(date_key)
        if stats is None:
            raise ObjectNotFoundError({"date": [f"No order metrics for {date_key}"]})
        return stats

    def delete_older_than(self, cutoff: datetime) -> int:
        repo = current_domain.repository_for(DailyOrderStats)
        return repo.query.filter(date__lt=cutoff.date().isoformat()).delete()
