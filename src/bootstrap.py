"""Composition root: initializes the domain and builds every service once.

    services = bootstrap()                       # settings from the environment
    services = bootstrap(settings, clock=FixedClock(), sink=FakeSink())
"""

from dataclasses import dataclass, field

import structlog

from delivery.assignment.coordinator import AssignmentCoordinator
from kitchen.ticket.preparation import KitchenSynchronizer
from ledger.wallet.adjustments import AdjustmentBook
from ledger.wallet.fees import CourierFeePolicy
from ledger.wallet.ledger import Ledger
from notifications.registry import get_sink, use_sink
from notifications.sink import NotificationSink
from ordering.enforcement.metrics import OrderMetrics
from ordering.enforcement.retention import RetentionCleanup
from ordering.enforcement.scheduler import PeriodicJob
from ordering.enforcement.timeouts import TimeoutEnforcer
from ordering.order.intake import OrderIntake
from shared.clock import SystemClock
from shared.config import Settings, get_settings
from shared.database import setup_db
from shared.domain import dispatch, in_domain_context, init_domain

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    clock: object
    sink: NotificationSink
    intake: OrderIntake
    kitchen: KitchenSynchronizer
    coordinator: AssignmentCoordinator
    ledger: Ledger
    adjustments: AdjustmentBook
    enforcer: TimeoutEnforcer
    metrics: OrderMetrics
    retention: RetentionCleanup
    maintenance_jobs: dict = field(default_factory=dict)

    def periodic_jobs(self) -> list[PeriodicJob]:
        intervals = {
            "auto-reject": self.settings.auto_reject_interval_seconds,
            "payment-timeout": self.settings.payment_timeout_interval_seconds,
            "metrics": self.settings.metrics_interval_seconds,
            "cleanup": self.settings.cleanup_interval_seconds,
        }
        return [PeriodicJob(name, intervals[name], func) for name, func in self.maintenance_jobs.items()]


def bootstrap(
    settings: Settings | None = None,
    clock=None,
    sink: NotificationSink | None = None,
    create_schema: bool = True,
) -> Services:
    settings = settings or get_settings()
    clock = clock or SystemClock()
    sink = use_sink(sink or get_sink(settings.notification_sink))

    init_domain(settings.database_url)
    if create_schema:
        setup_db(dispatch)

    kitchen = KitchenSynchronizer(clock, settings.default_preparation_minutes)
    intake = OrderIntake(kitchen, clock, tax_rate=settings.tax_rate)
    ledger = Ledger(clock)
    adjustments = AdjustmentBook(ledger, clock)
    coordinator = AssignmentCoordinator(
        kitchen,
        ledger,
        adjustments=adjustments,
        fee_policy=CourierFeePolicy(
            base=settings.courier_base_fee,
            rate=settings.courier_fee_rate,
            cap=settings.courier_fee_cap,
        ),
        clock=clock,
        estimated_delivery_minutes=settings.estimated_delivery_minutes,
    )
    enforcer = TimeoutEnforcer(
        intake,
        clock,
        auto_reject_after_minutes=settings.auto_reject_after_minutes,
        payment_timeout_minutes=settings.payment_timeout_minutes,
    )
    metrics = OrderMetrics(clock)
    retention = RetentionCleanup(metrics, clock, retention_days=settings.retention_days)

    services = Services(
        settings=settings,
        clock=clock,
        sink=sink,
        intake=intake,
        kitchen=kitchen,
        coordinator=coordinator,
        ledger=ledger,
        adjustments=adjustments,
        enforcer=enforcer,
        metrics=metrics,
        retention=retention,
    )
    # Jobs run on worker threads, each of which needs its own domain context
    services.maintenance_jobs = {
        "auto-reject": in_domain_context(enforcer.auto_reject_stale_orders),
        "payment-timeout": in_domain_context(enforcer.cancel_unpaid_orders),
        "metrics": in_domain_context(metrics.aggregate),
        "cleanup": in_domain_context(retention.run),
    }
    logger.debug("Services assembled", database_url=settings.database_url, sink=type(sink).__name__)
    return services
