"""
Paystack Service
Outbound calls to the Paystack REST API: transaction initialize/verify and
provider payout subaccounts. Calls are synchronous from the caller's point of
view and never retried; any failure surfaces as GatewayError.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..config import (
    PAYSTACK_BASE_URL,
    PAYSTACK_CURRENCY,
    PAYSTACK_SECRET_KEY,
    PAYSTACK_TIMEOUT_SECONDS,
)
from ..shared.errors import GatewayError

logger = logging.getLogger(__name__)


class PaystackService:
    """Service for Paystack API operations"""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        currency: Optional[str] = None,
        timeout: float = PAYSTACK_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else PAYSTACK_SECRET_KEY
        self.base_url = (base_url or PAYSTACK_BASE_URL).rstrip("/")
        self.currency = currency or PAYSTACK_CURRENCY
        self.timeout = timeout
        self.transport = transport

        if not self.secret_key:
            logger.warning("PAYSTACK_SECRET_KEY not set; payment endpoints will fail until configured")

    def is_available(self) -> bool:
        """Check if the Paystack secret is configured"""
        return bool(self.secret_key)

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict[str, Any]:
        """Send a request and return the ``data`` object of a successful response"""
        if not self.is_available():
            raise GatewayError("PAYSTACK_SECRET_KEY is not configured")

        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as http_client:
                response = await http_client.request(
                    method,
                    url,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.secret_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Paystack {method} {path} failed: {e}")
            raise GatewayError(f"Payment gateway unreachable: {e}") from e

        try:
            body = response.json()
        except ValueError:
            logger.error(f"❌ Paystack {method} {path} returned non-JSON ({response.status_code}): {response.text}")
            raise GatewayError("Malformed response from payment gateway") from None

        if response.status_code >= 300 or not isinstance(body, dict) or not body.get("status"):
            logger.error(f"❌ Paystack {method} {path} error ({response.status_code}): {body}")
            message = body.get("message") if isinstance(body, dict) else None
            raise GatewayError(message or "Payment gateway request failed")

        data = body.get("data")
        if not isinstance(data, dict):
            logger.error(f"❌ Paystack {method} {path} response missing data: {body}")
            raise GatewayError("Malformed response from payment gateway")
        return data

    async def initialize_transaction(
        self,
        email: str,
        amount_minor: int,
        reference: str,
        callback_url: str,
        subaccount: Optional[str] = None,
        transaction_charge: Optional[int] = None,
        metadata: Optional[dict] = None,
    ) -> dict[str, Any]:
        """
        Start a transaction.

        Args:
            email: Customer email
            amount_minor: Amount in the currency's minor unit
            reference: Unique transaction reference
            callback_url: Where the customer lands after paying
            subaccount: Provider subaccount code for split payouts
            transaction_charge: Flat amount (minor unit) kept by the main account

        Returns:
            Gateway data with ``authorization_url``, ``access_code`` and ``reference``
        """
        payload = {
            "email": email,
            "amount": amount_minor,
            "currency": self.currency,
            "reference": reference,
            "callback_url": callback_url,
        }
        if subaccount:
            payload["subaccount"] = subaccount
            payload["bearer"] = "subaccount"
            if transaction_charge is not None:
                payload["transaction_charge"] = transaction_charge
        if metadata:
            payload["metadata"] = metadata

        data = await self._request("POST", "/transaction/initialize", payload)
        if not data.get("authorization_url"):
            logger.error(f"❌ Paystack initialize response missing authorization_url: {data}")
            raise GatewayError("Malformed response from payment gateway")
        logger.info(f"💳 Paystack transaction initialized: {reference}")
        return data

    async def verify_transaction(self, reference: str) -> dict[str, Any]:
        """Look up a transaction; ``data['status'] == 'success'`` means paid"""
        return await self._request("GET", f"/transaction/verify/{quote(reference, safe='')}")

    async def create_subaccount(
        self,
        business_name: str,
        settlement_bank: str,
        account_number: str,
        percentage_charge: float,
    ) -> dict[str, Any]:
        """Create a payout subaccount for a provider"""
        data = await self._request(
            "POST",
            "/subaccount",
            {
                "business_name": business_name,
                "settlement_bank": settlement_bank,
                "account_number": account_number,
                "percentage_charge": percentage_charge,
            },
        )
        logger.info(f"🏦 Paystack subaccount created: {data.get('subaccount_code')}")
        return data

    async def update_subaccount(self, subaccount_code: str, **fields) -> dict[str, Any]:
        """Update an existing payout subaccount"""
        return await self._request("PUT", f"/subaccount/{quote(subaccount_code, safe='')}", fields)


paystack_service = PaystackService()


def get_paystack_service() -> PaystackService:
    """Dependency injection for PaystackService"""
    return paystack_service
