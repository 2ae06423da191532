"""FastAPI application entrypoint for the Reach marketplace API.

Every service's routers are mounted in-process under ``/api``; services talk
to each other through direct imports rather than HTTP.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.dashboard_service.routers import dashboard_router
from services.handover_service.routers import (
    admin_transactions_router,
    handovers_router,
    payments_router,
)
from services.listings_service.routers import (
    admin_properties_router,
    inspections_router,
    leads_router,
    properties_router,
)
from services.notifications_service.routers import notifications_router
from services.promotions_service.routers import creator_router, tracking_router
from services.users_service.routers import users_router
from services.wallet_service.routers import (
    admin_router as admin_withdrawals_router,
)
from services.wallet_service.routers import (
    admin_ledger_router,
    transactions_router,
    wallet_router,
    webhooks_router,
)

API_PREFIX = "/api"

ROUTERS = (
    users_router,
    wallet_router,
    transactions_router,
    webhooks_router,
    admin_withdrawals_router,
    properties_router,
    admin_properties_router,
    leads_router,
    inspections_router,
    creator_router,
    tracking_router,
    notifications_router,
    handovers_router,
    payments_router,
    admin_transactions_router,
    admin_ledger_router,
    dashboard_router,
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()

    app = FastAPI(
        title="Reach Marketplace API",
        version="0.1.0",
        description="Wallet, payouts, listings, inspections, promotions and handovers.",
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    return app


app = create_app()
