"""Dispatchline FastAPI application.

Every request runs inside the Dispatchline domain context against the
services assembled by ``bootstrap``; domain errors are mapped to HTTP status
codes in one place.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from delivery.api.routes import router as courier_router
from kitchen.api.routes import router as kitchen_router
from ledger.api.routes import router as wallet_router
from notifications.api.routes import router as notification_router
from ordering.api import maintenance_router, metrics_router, order_router
from shared.domain import dispatch
from shared.logging import configure_logging
from shared.web import register_error_handlers


def create_app(services=None) -> FastAPI:
    """Build the application. Without ``services`` they are bootstrapped on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "services", None) is None:
            from bootstrap import bootstrap

            configure_logging()
            app.state.services = bootstrap()
        yield

    app = FastAPI(
        title="Dispatchline API",
        description="Food delivery order dispatch: orders, kitchen, couriers and wallets",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the Dispatchline domain context for each request."""
        with dispatch.domain_context():
            response = await call_next(request)
        return response

    register_error_handlers(app)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    app.include_router(order_router)
    app.include_router(kitchen_router)
    app.include_router(courier_router)
    app.include_router(wallet_router)
    app.include_router(notification_router)
    app.include_router(maintenance_router)
    app.include_router(metrics_router)

    @app.get("/health")
    async def health():
        current = app.state.services
        return JSONResponse(
            content={
                "status": "ok",
                "domain": dispatch.name,
                "env": current.settings.env if current is not None else None,
            }
        )

    return app


app = create_app()
