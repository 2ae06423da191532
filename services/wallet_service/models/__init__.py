"""Wallet Service models package.

Re-exports all models and enums so that:
  - ``from services.wallet_service.models import Wallet`` works
  - SQLAlchemy's mapper registry sees every model class on import

IMPORTANT: Every model class AND enum must be listed here.
When adding a new model, add both its import and its __all__ entry.
"""

from services.wallet_service.models.audit import (  # noqa: F401
    AdminAction,
    WalletActivityLog,
)
from services.wallet_service.models.bank_account import BankAccount  # noqa: F401
from services.wallet_service.models.enums import (  # noqa: F401
    TERMINAL_TRANSACTION_STATUSES,
    AdminActionType,
    PayoutStatus,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    WalletActivityAction,
    WalletUserType,
)
from services.wallet_service.models.limits import WithdrawalLimit  # noqa: F401
from services.wallet_service.models.payout import Payout  # noqa: F401
from services.wallet_service.models.transaction import Transaction  # noqa: F401
from services.wallet_service.models.wallet import Wallet  # noqa: F401

__all__ = [
    # Enums
    "TERMINAL_TRANSACTION_STATUSES",
    "AdminActionType",
    "PayoutStatus",
    "TransactionCategory",
    "TransactionStatus",
    "TransactionType",
    "WalletActivityAction",
    "WalletUserType",
    # Models
    "Wallet",
    "BankAccount",
    "Transaction",
    "Payout",
    "WalletActivityLog",
    "AdminAction",
    "WithdrawalLimit",
]
