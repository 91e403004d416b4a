"""Ordering API package."""

from ordering.api.routes import maintenance_router, metrics_router, order_router

__all__ = ["order_router", "maintenance_router", "metrics_router"]
