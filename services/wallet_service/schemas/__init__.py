"""Wallet Service schemas package.

Re-exports all schemas so that routers can import them from
``services.wallet_service.schemas`` directly.

IMPORTANT: Every schema class must be listed here.
When adding a new schema, add its import and __all__ entry.
"""

from services.wallet_service.schemas.bank_account import (  # noqa: F401
    BankAccountCreate,
    BankAccountDeleteResponse,
    BankAccountResponse,
)
from services.wallet_service.schemas.payout import (  # noqa: F401
    PayoutListResponse,
    PayoutRequest,
    PayoutResponse,
    RejectPayoutRequest,
)
from services.wallet_service.schemas.transaction import (  # noqa: F401
    AdminTransactionListResponse,
    AdminTransactionResponse,
    AdminTransactionUser,
    TransactionListResponse,
    TransactionResponse,
    TransactionStats,
    WebhookAck,
)
from services.wallet_service.schemas.wallet import (  # noqa: F401
    AddFundsRequest,
    AddFundsResponse,
    VerifyDepositRequest,
    VerifyPinRequest,
    VerifyPinResponse,
    WalletResponse,
    WalletSetupRequest,
    WalletSetupResponse,
    WithdrawRequest,
)

__all__ = [
    # Wallet
    "WalletResponse",
    "WalletSetupRequest",
    "WalletSetupResponse",
    "VerifyPinRequest",
    "VerifyPinResponse",
    "WithdrawRequest",
    "AddFundsRequest",
    "AddFundsResponse",
    "VerifyDepositRequest",
    # Bank accounts
    "BankAccountCreate",
    "BankAccountResponse",
    "BankAccountDeleteResponse",
    # Transactions
    "TransactionResponse",
    "TransactionListResponse",
    "TransactionStats",
    "WebhookAck",
    "AdminTransactionUser",
    "AdminTransactionResponse",
    "AdminTransactionListResponse",
    # Payouts
    "PayoutRequest",
    "PayoutResponse",
    "PayoutListResponse",
    "RejectPayoutRequest",
]
