"""Member-facing wallet endpoints."""

import math
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from libs.auth.dependencies import get_current_user, require_roles
from libs.auth.models import AuthUser
from libs.common.errors import NotFoundError, ValidationError
from libs.common.logging import get_logger
from libs.common.rate_limit import (
    bank_account_limit,
    deposit_limit,
    get_client_ip,
    pin_limit,
    withdrawal_limit,
)
from libs.db.session import get_async_db
from services.wallet_service.models import (
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
    WalletActivityAction,
)
from services.wallet_service.paystack_client import PaystackClient, get_paystack_client
from services.wallet_service.schemas import (
    AddFundsRequest,
    AddFundsResponse,
    BankAccountCreate,
    BankAccountDeleteResponse,
    BankAccountResponse,
    PayoutRequest,
    PayoutResponse,
    TransactionListResponse,
    TransactionResponse,
    VerifyDepositRequest,
    VerifyPinRequest,
    VerifyPinResponse,
    WalletResponse,
    WalletSetupRequest,
    WalletSetupResponse,
    WithdrawRequest,
)
from services.wallet_service.services.activity import log_wallet_activity
from services.wallet_service.services.bank_accounts import (
    add_bank_account,
    delete_bank_account,
    list_bank_accounts,
    set_primary_bank_account,
)
from services.wallet_service.services.deposits import initialize_deposit, verify_deposit
from services.wallet_service.services.payouts import request_payout
from services.wallet_service.services.pin import setup_pin, verify_pin
from services.wallet_service.services.wallet_ops import (
    get_or_create_wallet,
    require_setup_wallet,
    require_wallet,
    wallet_user_type,
)
from services.wallet_service.services.withdrawals import initiate_withdrawal
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/wallet", tags=["wallet"])


def _client(request: Request) -> dict:
    return {
        "ip_address": get_client_ip(request),
        "user_agent": request.headers.get("user-agent"),
    }


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------


@router.get("", response_model=WalletResponse)
async def get_my_wallet(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get (creating on first use) the caller's wallet."""
    return await get_or_create_wallet(
        db,
        user_id=current_user.user_id,
        user_type=wallet_user_type(current_user.account_role),
    )


@router.post("/setup", response_model=WalletSetupResponse)
async def setup_wallet(
    body: WalletSetupRequest,
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Set the 4-digit transaction PIN."""
    wallet = await get_or_create_wallet(
        db,
        user_id=current_user.user_id,
        user_type=wallet_user_type(current_user.account_role),
    )
    created = await setup_pin(db, wallet=wallet, pin=body.pin)
    if not created:
        return WalletSetupResponse(
            message="Wallet is already set up",
            wallet=WalletResponse.model_validate(wallet),
        )

    await log_wallet_activity(
        db,
        user_id=wallet.user_id,
        wallet_id=wallet.id,
        action=WalletActivityAction.WALLET_SETUP,
        **_client(request),
    )
    return WalletSetupResponse(
        message="Wallet set up successfully",
        wallet=WalletResponse.model_validate(wallet),
    )


@router.post("/verify-pin", response_model=VerifyPinResponse)
@pin_limit
async def verify_wallet_pin(
    body: VerifyPinRequest,
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    wallet = await require_setup_wallet(db, current_user.user_id)
    await verify_pin(db, wallet=wallet, pin=body.pin)
    return VerifyPinResponse()


# ---------------------------------------------------------------------------
# Bank accounts
# ---------------------------------------------------------------------------


@router.get("/bank-accounts", response_model=list[BankAccountResponse])
async def get_bank_accounts(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    wallet = await require_wallet(db, current_user.user_id)
    return await list_bank_accounts(db, wallet=wallet)


@router.post(
    "/bank-accounts",
    response_model=BankAccountResponse,
    status_code=status.HTTP_201_CREATED,
)
@bank_account_limit
async def create_bank_account(
    body: BankAccountCreate,
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """Resolve the account with Paystack and attach it to the wallet."""
    wallet = await require_wallet(db, current_user.user_id)
    account = await add_bank_account(
        db,
        wallet=wallet,
        bank_code=body.bank_code,
        account_number=body.account_number,
        bank_name=body.bank_name,
        paystack=paystack,
    )
    await log_wallet_activity(
        db,
        user_id=wallet.user_id,
        wallet_id=wallet.id,
        action=WalletActivityAction.BANK_ACCOUNT_ADDED,
        details={"bank_account_id": str(account.id), "bank_name": account.bank_name},
        **_client(request),
    )
    return account


@router.patch("/bank-accounts/{bank_account_id}/primary", response_model=BankAccountResponse)
async def make_primary_bank_account(
    bank_account_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    wallet = await require_wallet(db, current_user.user_id)
    return await set_primary_bank_account(db, wallet=wallet, bank_account_id=bank_account_id)


@router.delete("/bank-accounts/{bank_account_id}", response_model=BankAccountDeleteResponse)
async def remove_bank_account(
    bank_account_id: uuid.UUID,
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    wallet = await require_wallet(db, current_user.user_id)
    promoted = await delete_bank_account(db, wallet=wallet, bank_account_id=bank_account_id)
    await log_wallet_activity(
        db,
        user_id=wallet.user_id,
        wallet_id=wallet.id,
        action=WalletActivityAction.BANK_ACCOUNT_REMOVED,
        details={"bank_account_id": str(bank_account_id)},
        **_client(request),
    )
    return BankAccountDeleteResponse(
        promoted_primary_id=promoted.id if promoted else None
    )


# ---------------------------------------------------------------------------
# Money movement
# ---------------------------------------------------------------------------


@router.post("/withdraw", response_model=TransactionResponse)
@withdrawal_limit
async def withdraw(
    body: WithdrawRequest,
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """Transfer funds to one of the caller's bank accounts."""
    wallet = await require_setup_wallet(db, current_user.user_id)
    return await initiate_withdrawal(
        db,
        wallet=wallet,
        amount=body.amount,
        bank_account_id=body.bank_account_id,
        pin=body.pin,
        narration=body.narration,
        paystack=paystack,
        **_client(request),
    )


@router.post(
    "/payouts", response_model=PayoutResponse, status_code=status.HTTP_201_CREATED
)
@withdrawal_limit
async def create_payout(
    body: PayoutRequest,
    request: Request,
    current_user: AuthUser = Depends(require_roles("creator", "developer")),
    db: AsyncSession = Depends(get_async_db),
):
    """Request a payout that an admin reviews before the money moves."""
    wallet = await require_setup_wallet(db, current_user.user_id)
    return await request_payout(
        db,
        wallet=wallet,
        amount=body.amount,
        bank_account_id=body.bank_account_id,
        pin=body.pin,
    )


@router.post("/add-funds", response_model=AddFundsResponse)
@deposit_limit
async def add_funds(
    body: AddFundsRequest,
    request: Request,
    current_user: AuthUser = Depends(require_roles("developer", "admin")),
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """Start a Paystack checkout that tops up the wallet."""
    if not current_user.email:
        raise ValidationError("An email address is required to add funds")
    wallet = await get_or_create_wallet(
        db,
        user_id=current_user.user_id,
        user_type=wallet_user_type(current_user.account_role),
    )
    txn, init = await initialize_deposit(
        db,
        wallet=wallet,
        email=current_user.email,
        amount=body.amount,
        paystack=paystack,
        **_client(request),
    )
    return AddFundsResponse(
        authorization_url=init.authorization_url,
        access_code=init.access_code,
        reference=txn.reference,
        amount=txn.amount,
        fee=txn.fee,
        net_amount=txn.net_amount,
    )


@router.post("/verify-transaction", response_model=TransactionResponse)
async def verify_wallet_deposit(
    body: VerifyDepositRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
    paystack: PaystackClient = Depends(get_paystack_client),
):
    """Confirm a deposit after the Paystack redirect."""
    return await verify_deposit(
        db, user_id=current_user.user_id, reference=body.reference, paystack=paystack
    )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@router.get("/transactions", response_model=TransactionListResponse)
async def list_my_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    transaction_type: Optional[TransactionType] = Query(None, alias="type"),
    transaction_status: Optional[TransactionStatus] = Query(None, alias="status"),
    category: Optional[TransactionCategory] = None,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List my transactions (paginated, filterable by type and status)."""
    base = select(Transaction).where(Transaction.user_id == current_user.user_id)
    count_base = (
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.user_id == current_user.user_id)
    )
    for column, value in (
        (Transaction.type, transaction_type),
        (Transaction.status, transaction_status),
        (Transaction.category, category),
    ):
        if value is not None:
            base = base.where(column == value)
            count_base = count_base.where(column == value)

    total = (await db.execute(count_base)).scalar() or 0
    result = await db.execute(
        base.order_by(desc(Transaction.created_at))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return TransactionListResponse(
        transactions=list(result.scalars().all()),
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_my_transaction(
    transaction_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    txn = await db.get(Transaction, transaction_id)
    if txn is None or txn.user_id != current_user.user_id:
        raise NotFoundError("Transaction")
    return txn
