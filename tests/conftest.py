import os
import tempfile
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Initialize the domain over a throwaway SQLite file and push its
    domain_context. The activated domain can then be referred to elsewhere as
    `current_domain`. A file database lets worker threads open their own
    connections to the same data.
    """
    os.environ["DISPATCH_ENV"] = session.config.option.env
    database_url = f"sqlite:///{Path(tempfile.mkdtemp()) / 'dispatchline-test.db'}"
    os.environ["DISPATCH_DATABASE_URL"] = database_url

    from shared.domain import dispatch, init_domain

    init_domain(database_url)
    dispatch.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from shared.database import drop_db, setup_db
    from shared.domain import dispatch

    setup_db(dispatch)

    yield

    drop_db(dispatch)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    from notifications.registry import reset_sinks
    from shared.config import reset_settings
    from shared.logging import clear_context

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_sinks()
    reset_settings()
    clear_context()


@pytest.fixture
def clock():
    from shared.clock import FixedClock

    return FixedClock()


@pytest.fixture
def sink():
    from notifications.fake_sink import FakeSink

    return FakeSink()


@pytest.fixture
def settings():
    from shared.config import Settings

    return Settings(env="test", database_url=os.environ["DISPATCH_DATABASE_URL"], notification_sink="fake")


@pytest.fixture
def services(settings, clock, sink):
    from bootstrap import bootstrap

    return bootstrap(settings=settings, clock=clock, sink=sink, create_schema=False)


# ---------------------------------------------------------------------------
# Order builders
# ---------------------------------------------------------------------------
@pytest.fixture
def make_order(services):
    """Factory creating an order through intake. Cash orders start PLACED."""

    def _make(**overrides):
        data = {
            "restaurant_id": "rest-001",
            "customer_id": "cust-001",
            "items": [
                {"product_id": "burger", "product_name": "Burger", "quantity": 2, "unit_price": "12.50"},
                {"product_id": "fries", "product_name": "Fries", "quantity": 1, "unit_price": "4.00"},
            ],
            "payment_method": "CASH",
            "delivery": {"address": "1 Main St", "city": "Springfield"},
        }
        data.update(overrides)
        return services.intake.create_order(**data)

    return _make


@pytest.fixture
def ready_order(services, make_order):
    """Factory driving a new order through the kitchen to READY; returns the order id."""

    def _make(**overrides):
        order = make_order(**overrides)
        services.intake.accept_order(order.id, "chef-manager")
        ticket = services.kitchen.get_for_order(order.id)
        services.kitchen.start_preparation(ticket.id, "Alice")
        services.kitchen.mark_ready(ticket.id)
        return order.id

    return _make


@pytest.fixture
def client(services):
    from fastapi.testclient import TestClient

    from app import create_app

    return TestClient(create_app(services))


@pytest.fixture
def run_concurrently():
    """Run ``func`` once per argument on its own thread, all released together.

    Each thread pushes its own domain context. Returns ``(arg, outcome)``
    pairs where the outcome is the return value or the raised exception.
    """
    import threading

    from shared.domain import in_domain_context

    def _run(func, args):
        barrier = threading.Barrier(len(args))
        outcomes = []

        @in_domain_context
        def worker(arg):
            barrier.wait()
            try:
                outcomes.append((arg, func(arg)))
            except Exception as exc:
                outcomes.append((arg, exc))

        threads = [threading.Thread(target=worker, args=(arg,)) for arg in args]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)
        return outcomes

    return _run
