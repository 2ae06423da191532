"""
Paystack API client for collections, transfers and bank account verification.

Provides async methods for:
- Initialising and verifying card/bank payments (deposits, purchases)
- Listing Nigerian banks
- Resolving/verifying bank accounts
- Creating transfer recipients
- Initiating and verifying transfers
- Verifying webhook signatures
"""

import hashlib
import hmac
from dataclasses import dataclass, field
from typing import Any, List, Optional

import httpx
from libs.common.config import get_settings
from libs.common.errors import GatewayError
from libs.common.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Bank:
    """Nigerian bank info from Paystack."""

    name: str
    code: str
    slug: str
    is_active: bool


@dataclass
class ResolvedAccount:
    """Result of bank account verification."""

    account_number: str
    account_name: str
    bank_code: str


@dataclass
class TransferRecipient:
    """Paystack transfer recipient."""

    recipient_code: str
    name: str
    account_number: str
    bank_code: str
    bank_name: str


@dataclass
class TransferResult:
    """Result of initiating a transfer."""

    transfer_code: str
    reference: str
    status: str  # pending, success, failed, otp
    amount: int  # in kobo
    currency: str


@dataclass
class PaymentInitialization:
    authorization_url: str
    access_code: str
    reference: str


@dataclass
class VerifiedPayment:
    """Result of ``GET /transaction/verify/:reference``."""

    reference: str
    status: str  # success, failed, abandoned, ongoing, pending, reversed
    amount: int  # in kobo
    currency: str
    paid_at: Optional[str] = None
    channel: Optional[str] = None
    gateway_response: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    raw: dict = field(default_factory=dict)

    @property
    def is_successful(self) -> bool:
        return self.status == "success"


class PaystackError(Exception):
    """Base exception for Paystack API errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


def verify_webhook_signature(raw_body: bytes, signature: Optional[str]) -> bool:
    """Paystack signs the raw body with HMAC-SHA512 using the secret key."""
    secret = (get_settings().PAYSTACK_SECRET_KEY or "").encode("utf-8")
    if not signature or not secret:
        return False
    digest = hmac.new(secret, raw_body, hashlib.sha512).hexdigest()
    return hmac.compare_digest(digest, signature)


class PaystackClient:
    """Async client for the Paystack REST API."""

    def __init__(self, secret_key: str = None, base_url: str = None):
        settings = get_settings()
        self.secret_key = secret_key or settings.PAYSTACK_SECRET_KEY
        if not self.secret_key:
            raise ValueError("PAYSTACK_SECRET_KEY is required")
        self.base_url = (base_url or settings.PAYSTACK_API_BASE_URL).rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict = None,
        json_data: dict = None,
    ) -> dict:
        """Make an async request to Paystack API."""
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    params=params,
                    json=json_data,
                )
        except httpx.HTTPError as exc:
            logger.error("Paystack request to %s failed: %s", endpoint, exc)
            raise PaystackError(message=f"Could not reach Paystack: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text}

        if not response.is_success:
            logger.error(
                "Paystack API error: %s - %s", response.status_code, data
            )
            raise PaystackError(
                message=data.get("message", "Unknown Paystack error"),
                status_code=response.status_code,
                response_data=data,
            )

        if not data.get("status"):
            raise PaystackError(
                message=data.get("message", "Paystack request failed"),
                response_data=data,
            )

        return data

    # =========================================================================
    # Collections
    # =========================================================================

    async def initialize_transaction(
        self,
        email: str,
        amount_kobo: int,
        reference: str,
        callback_url: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> PaymentInitialization:
        """Start a checkout; the customer pays at ``authorization_url``."""
        payload: dict[str, Any] = {
            "email": email,
            "amount": amount_kobo,
            "currency": "NGN",
            "reference": reference,
            "metadata": metadata or {},
        }
        if callback_url:
            payload["callback_url"] = callback_url

        data = await self._request(
            "POST", "/transaction/initialize", json_data=payload
        )
        init = data.get("data", {})
        return PaymentInitialization(
            authorization_url=init.get("authorization_url", ""),
            access_code=init.get("access_code", ""),
            reference=init.get("reference", reference),
        )

    async def verify_transaction(self, reference: str) -> VerifiedPayment:
        """Fetch the authoritative state of a collection by reference."""
        data = await self._request("GET", f"/transaction/verify/{reference}")
        txn = data.get("data") or {}
        return VerifiedPayment(
            reference=txn.get("reference", reference),
            status=str(txn.get("status") or "").lower(),
            amount=int(txn.get("amount") or 0),
            currency=txn.get("currency", "NGN"),
            paid_at=txn.get("paid_at"),
            channel=txn.get("channel"),
            gateway_response=txn.get("gateway_response"),
            metadata=txn.get("metadata") or {},
            raw=txn,
        )

    # =========================================================================
    # Bank Methods
    # =========================================================================

    async def list_banks(self, country: str = "nigeria") -> List[Bank]:
        """Get list of banks supported by Paystack."""
        data = await self._request(
            "GET",
            "/bank",
            params={"country": country, "perPage": 100},
        )

        return [
            Bank(
                name=bank_data["name"],
                code=bank_data["code"],
                slug=bank_data.get("slug", ""),
                is_active=bank_data.get("active", True),
            )
            for bank_data in data.get("data", [])
        ]

    async def resolve_account(
        self,
        account_number: str,
        bank_code: str,
    ) -> ResolvedAccount:
        """
        Verify a bank account and get the account holder's name.

        Raises:
            PaystackError: If account cannot be verified
        """
        data = await self._request(
            "GET",
            "/bank/resolve",
            params={
                "account_number": account_number,
                "bank_code": bank_code,
            },
        )

        account_data = data.get("data", {})
        return ResolvedAccount(
            account_number=account_data.get("account_number", account_number),
            account_name=account_data.get("account_name", ""),
            bank_code=bank_code,
        )

    # =========================================================================
    # Transfer Recipient Methods
    # =========================================================================

    async def create_transfer_recipient(
        self,
        account_number: str,
        bank_code: str,
        name: str,
        description: str = None,
    ) -> TransferRecipient:
        """
        Create a transfer recipient for future payouts.

        The recipient_code returned should be stored and reused for transfers.
        """
        data = await self._request(
            "POST",
            "/transferrecipient",
            json_data={
                "type": "nuban",
                "name": name,
                "account_number": account_number,
                "bank_code": bank_code,
                "currency": "NGN",
                "description": description or f"Reach wallet withdrawal: {name}",
            },
        )

        recipient = data.get("data", {})
        details = recipient.get("details", {})

        return TransferRecipient(
            recipient_code=recipient.get("recipient_code", ""),
            name=recipient.get("name", name),
            account_number=details.get("account_number", account_number),
            bank_code=details.get("bank_code", bank_code),
            bank_name=details.get("bank_name", ""),
        )

    # =========================================================================
    # Transfer Methods
    # =========================================================================

    async def initiate_transfer(
        self,
        recipient_code: str,
        amount_kobo: int,
        reason: str,
        reference: str = None,
    ) -> TransferResult:
        """
        Initiate a transfer to a recipient.

        The final status arrives via webhook (transfer.success/failed/reversed).
        """
        payload = {
            "source": "balance",
            "recipient": recipient_code,
            "amount": amount_kobo,
            "reason": reason,
        }

        if reference:
            payload["reference"] = reference

        data = await self._request("POST", "/transfer", json_data=payload)

        transfer = data.get("data", {})
        return TransferResult(
            transfer_code=transfer.get("transfer_code", ""),
            reference=transfer.get("reference", reference or ""),
            status=transfer.get("status", "pending"),
            amount=transfer.get("amount", amount_kobo),
            currency=transfer.get("currency", "NGN"),
        )

    async def verify_transfer(self, reference: str) -> TransferResult:
        """Check the status of a transfer by reference."""
        data = await self._request("GET", f"/transfer/verify/{reference}")

        transfer = data.get("data", {})
        return TransferResult(
            transfer_code=transfer.get("transfer_code", ""),
            reference=transfer.get("reference", reference),
            status=transfer.get("status", "pending"),
            amount=transfer.get("amount", 0),
            currency=transfer.get("currency", "NGN"),
        )


def get_paystack_client() -> PaystackClient:
    """FastAPI dependency returning a configured PaystackClient."""
    try:
        return PaystackClient()
    except ValueError as exc:
        logger.error("Paystack is not configured: %s", exc)
        raise GatewayError("Payment gateway is not configured") from exc
