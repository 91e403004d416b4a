"""Retention cleanup for operational records.

Orders, history and ledger entries are kept forever. What ages out is the
notification audit log and old daily metrics rows.
"""

from datetime import datetime, timedelta

import structlog
from protean import UnitOfWork
from protean.utils.globals import current_domain

from notifications.log import NotificationRecord
from ordering.enforcement.metrics import OrderMetrics
from shared.clock import SystemClock

logger = structlog.get_logger(__name__)


class RetentionCleanup:
    def __init__(self, metrics: OrderMetrics, clock=None, retention_days: int = 90):
        self._metrics = metrics
        self._clock = clock or SystemClock()
        self.retention_days = retention_days

    def run(self, as_of: datetime | None = None) -> int:
        as_of = as_of or self._clock.now()
        cutoff = as_of - timedelta(days=self.retention_days)

        with UnitOfWork():
            notifications = current_domain.repository_for(NotificationRecord).delete_older_than(cutoff)
            stats = self._metrics.delete_older_than(cutoff)

        logger.info(
            "Retention cleanup complete",
            cutoff=cutoff.isoformat(),
            notification_records=notifications,
            stats_rows=stats,
        )
        return notifications + stats
