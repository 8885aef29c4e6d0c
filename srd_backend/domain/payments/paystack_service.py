"""Paystack service - Integration with the Paystack transactions API"""

import logging
from typing import Any, Optional

import httpx

from ...config import PAYSTACK_BASE_URL, PAYSTACK_SECRET_KEY, PAYSTACK_TIMEOUT_SECONDS
from ...errors import PaymentInitError, PaymentVerificationError
from ...webhook_security import verify_paystack_signature

logger = logging.getLogger(__name__)


class PaystackService:
    """Service for Paystack API operations. Amounts are always in kobo."""

    def __init__(
        self,
        secret_key: Optional[str] = PAYSTACK_SECRET_KEY,
        base_url: str = PAYSTACK_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = PAYSTACK_TIMEOUT_SECONDS,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

        if not self.secret_key:
            logger.warning("PAYSTACK_SECRET_KEY not set; payment endpoints will fail until configured")

    def is_available(self) -> bool:
        return bool(self.secret_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.secret_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self.transport,
        )

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        callback_url: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        currency: Optional[str] = None,
    ) -> dict[str, Any]:
        """Start a transaction; returns Paystack's authorization_url, access_code and reference"""
        if not self.is_available():
            raise PaymentInitError("Payment gateway is not configured")

        payload: dict[str, Any] = {
            "email": email,
            "amount": amount,
            "reference": reference,
            "metadata": metadata or {},
        }
        if callback_url:
            payload["callback_url"] = callback_url
        if currency:
            payload["currency"] = currency

        try:
            async with self._client() as client:
                response = await client.post("/transaction/initialize", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Paystack initialize request failed for {reference}: {e}")
            raise PaymentInitError() from e

        body = self._json(response)
        if response.status_code >= 400 or not body.get("status"):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.error(f"❌ Paystack rejected initialize for {reference}: {message}")
            raise PaymentInitError(f"Payment gateway error: {message}")

        data = body.get("data") or {}
        if not data.get("authorization_url"):
            logger.error(f"❌ Paystack initialize for {reference} returned no authorization_url")
            raise PaymentInitError()

        logger.info(f"💳 Paystack transaction initialized: {data.get('reference', reference)}")
        return data

    async def verify_transaction(self, reference: str) -> dict[str, Any]:
        """Fetch the transaction outcome; returns Paystack's data object"""
        if not self.is_available():
            raise PaymentVerificationError("Payment gateway is not configured")

        try:
            async with self._client() as client:
                response = await client.get(f"/transaction/verify/{reference}")
        except httpx.HTTPError as e:
            logger.error(f"❌ Paystack verify request failed for {reference}: {e}")
            raise PaymentVerificationError() from e

        body = self._json(response)
        if response.status_code >= 500:
            logger.error(f"❌ Paystack verify for {reference} returned HTTP {response.status_code}")
            raise PaymentVerificationError()

        # 4xx with status false means Paystack has no such transaction; report it as not successful
        data = body.get("data") if body.get("status") else None
        if not isinstance(data, dict):
            logger.warning(f"⚠️ Paystack could not verify {reference}: {body.get('message')}")
            return {"status": "failed", "reference": reference, "gateway_response": body.get("message")}

        return data

    def verify_webhook_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        return verify_paystack_signature(raw_body, signature, self.secret_key)

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}


# Singleton instance
paystack_service = PaystackService()


def get_paystack_service() -> PaystackService:
    """Dependency returning the shared gateway client; overridden in tests"""
    return paystack_service
