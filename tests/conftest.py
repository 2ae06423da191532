import hashlib
import hmac
import json
import uuid
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.db.base import Base
from services.gateway_service.app.main import app

# Import all models so metadata includes every table
from services.handover_service import models as _handover_models  # noqa: F401
from services.listings_service import models as _listing_models  # noqa: F401
from services.notifications_service import models as _notification_models  # noqa: F401
from services.promotions_service import models as _promotion_models  # noqa: F401
from services.users_service import models as _user_models  # noqa: F401
from services.wallet_service import models as _wallet_models  # noqa: F401
from services.wallet_service.paystack_client import (
    PaymentInitialization,
    PaystackError,
    ResolvedAccount,
    TransferRecipient,
    TransferResult,
    VerifiedPayment,
)

settings = get_settings()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    A fresh sqlite database file per test.

    Every session gets its own connection (NullPool) so request sessions and
    the test's own session behave like separate clients of one database.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'reach-test.db'}",
        future=True,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


async def reload(db: AsyncSession, model, pk):
    """Fetch ``model`` by primary key, discarding any stale in-session state."""
    return await db.get(model, pk, populate_existing=True)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


def make_user(
    role: str = "buyer",
    user_id: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
) -> AuthUser:
    user_id = user_id or f"{role}-{uuid.uuid4().hex[:8]}"
    return AuthUser(
        user_id=user_id,
        email=email if email is not None else f"{user_id}@test.com",
        phone=phone,
        app_metadata={"role": role},
    )


def auth_headers(user: AuthUser) -> dict:
    """Bearer header carrying a Supabase-style HS256 token for ``user``."""
    claims = {
        "sub": user.user_id,
        "email": user.email,
        "phone": user.phone,
        "role": user.role,
        "app_metadata": user.app_metadata,
        "user_metadata": user.user_metadata,
    }
    token = jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Paystack
# ---------------------------------------------------------------------------


class FakePaystack:
    """In-memory stand-in for ``PaystackClient`` with the same coroutine API."""

    def __init__(self):
        self.payments: dict[str, VerifiedPayment] = {}
        self.transfers: dict[str, TransferResult] = {}
        self.initialized: list[dict] = []
        self.initiated_transfers: list[dict] = []
        self.verify_calls: list[str] = []
        self.fail_initialize = False
        self.fail_resolve = False
        self.fail_recipient = False
        self.fail_transfer = False

    def set_payment(self, reference: str, amount: int, status: str = "success"):
        self.payments[reference] = VerifiedPayment(
            reference=reference,
            status=status,
            amount=amount,
            currency="NGN",
            gateway_response="Approved" if status == "success" else "Declined",
            raw={"reference": reference, "status": status, "amount": amount},
        )

    def set_transfer(self, reference: str, status: str, amount: int = 0):
        self.transfers[reference] = TransferResult(
            transfer_code=f"TRF_{reference[-6:]}",
            reference=reference,
            status=status,
            amount=amount,
            currency="NGN",
        )

    async def initialize_transaction(
        self, email, amount_kobo, reference, callback_url=None, metadata=None
    ):
        if self.fail_initialize:
            raise PaystackError("Gateway unavailable", status_code=503)
        self.initialized.append(
            {
                "email": email,
                "amount": amount_kobo,
                "reference": reference,
                "metadata": metadata or {},
            }
        )
        return PaymentInitialization(
            authorization_url=f"https://checkout.paystack.test/{reference}",
            access_code=f"ac_{reference[-8:]}",
            reference=reference,
        )

    async def verify_transaction(self, reference):
        self.verify_calls.append(reference)
        if reference in self.payments:
            return self.payments[reference]
        return VerifiedPayment(
            reference=reference, status="ongoing", amount=0, currency="NGN"
        )

    async def list_banks(self, country="nigeria"):
        return []

    async def resolve_account(self, account_number, bank_code):
        if self.fail_resolve:
            raise PaystackError("Could not resolve account name", status_code=422)
        return ResolvedAccount(
            account_number=account_number, account_name="ADA OBI", bank_code=bank_code
        )

    async def create_transfer_recipient(
        self, account_number, bank_code, name, description=None
    ):
        if self.fail_recipient:
            raise PaystackError("Recipient creation failed", status_code=400)
        return TransferRecipient(
            recipient_code=f"RCP_{account_number}",
            name=name,
            account_number=account_number,
            bank_code=bank_code,
            bank_name="Test Bank",
        )

    async def initiate_transfer(self, recipient_code, amount_kobo, reason, reference=None):
        if self.fail_transfer:
            raise PaystackError("Insufficient Paystack balance", status_code=400)
        self.initiated_transfers.append(
            {"recipient": recipient_code, "amount": amount_kobo, "reference": reference}
        )
        return TransferResult(
            transfer_code=f"TRF_{uuid.uuid4().hex[:10]}",
            reference=reference or "",
            status="pending",
            amount=amount_kobo,
            currency="NGN",
        )

    async def verify_transfer(self, reference):
        if reference in self.transfers:
            return self.transfers[reference]
        return TransferResult(
            transfer_code="", reference=reference, status="pending", amount=0, currency="NGN"
        )


@pytest.fixture
def paystack() -> FakePaystack:
    return FakePaystack()


def sign_webhook(payload: dict) -> tuple[bytes, dict]:
    """Serialise ``payload`` and sign it the way Paystack does."""
    body = json.dumps(payload).encode("utf-8")
    signature = hmac.new(
        settings.PAYSTACK_SECRET_KEY.encode("utf-8"), body, hashlib.sha512
    ).hexdigest()
    return body, {"x-paystack-signature": signature, "content-type": "application/json"}


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory, paystack) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the gateway app.

    Each request gets its own session on the test database, and Paystack is
    replaced by the ``paystack`` fake.
    """
    from libs.db.session import get_async_db
    from services.wallet_service.paystack_client import get_paystack_client

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_db] = _test_db
    app.dependency_overrides[get_paystack_client] = lambda: paystack

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
