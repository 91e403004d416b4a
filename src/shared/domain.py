"""The Dispatchline domain.

One Protean domain holds every bounded context so that an order, its kitchen
ticket and the courier's wallet can change inside a single unit of work.
Element modules register themselves on import; ``init_domain`` imports them
and initializes the domain once per process.
"""

from functools import wraps

import structlog
from protean.domain import Domain

dispatch = Domain(
    name="dispatchline",
    config={
        "event_processing": "sync",
        "command_processing": "sync",
        "databases": {
            "default": {
                "provider": "sqlite",
                "database_uri": "sqlite:///dispatchline.db",
                "connect_args": {"timeout": 30},
            },
        },
    },
)

logger = structlog.get_logger(__name__)

_initialized = False


def _load_elements() -> None:
    # Importing the element modules registers them with the domain
    import kitchen.ticket.repository  # noqa: F401
    import kitchen.ticket.ticket  # noqa: F401
    import ledger.wallet.adjustments  # noqa: F401
    import ledger.wallet.repository  # noqa: F401
    import ledger.wallet.wallet  # noqa: F401
    import notifications.dispatch  # noqa: F401
    import notifications.log  # noqa: F401
    import ordering.enforcement.metrics  # noqa: F401
    import ordering.order.events  # noqa: F401
    import ordering.order.order  # noqa: F401
    import ordering.order.repository  # noqa: F401


def init_domain(database_url: str | None = None) -> Domain:
    """Point the default database at ``database_url`` and initialize the domain.

    Only the first call has any effect; the domain cannot be re-initialized
    against another database within the same process.
    """
    global _initialized
    if _initialized:
        return dispatch

    if database_url is not None:
        database = {"provider": "sqlite", "database_uri": database_url}
        if database_url.startswith("sqlite"):
            database["connect_args"] = {"timeout": 30}
        else:
            database["provider"] = "postgresql"
        dispatch.config["databases"]["default"] = database

    _load_elements()
    dispatch.init(traverse=False)
    _initialized = True

    logger.debug("Domain initialized", database_uri=dispatch.config["databases"]["default"]["database_uri"])
    return dispatch


def in_domain_context(func):
    """Run ``func`` inside a fresh domain context, for worker threads and jobs."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        with dispatch.domain_context():
            return func(*args, **kwargs)

    return wrapper
