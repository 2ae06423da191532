"""Wallet service routers."""

from services.wallet_service.routers.admin import ledger_router as admin_ledger_router
from services.wallet_service.routers.admin import router as admin_router
from services.wallet_service.routers.member import router as wallet_router
from services.wallet_service.routers.transactions import router as transactions_router
from services.wallet_service.routers.webhooks import router as webhooks_router

__all__ = [
    "admin_ledger_router",
    "admin_router",
    "transactions_router",
    "wallet_router",
    "webhooks_router",
]
