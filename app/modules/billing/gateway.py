"""Razorpay orders client and payment signature verification."""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass

import httpx

from app.core.config import Settings
from app.shared.exceptions import PaymentGatewayException
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)

MOCK_ORDER_PREFIX = "order_mock_"
MOCK_PAYMENT_PREFIX = "pay_mock_"


@dataclass(frozen=True, slots=True)
class GatewayOrder:
    """Order handle returned by the gateway."""

    order_id: str
    amount_minor: int
    currency: str
    receipt: str
    is_mock: bool


def compute_hmac_sha256(secret: str, payload: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


class RazorpayGateway:
    """Thin async client for the Razorpay orders API."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        api_url: str = "https://api.razorpay.com/v1",
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "RazorpayGateway | None":
        """Build client from settings; None when keys are not configured."""
        if not settings.gateway_configured:
            return None
        return cls(
            key_id=settings.razorpay_key_id or "",
            key_secret=settings.razorpay_key_secret or "",
            api_url=settings.razorpay_api_url,
            timeout_seconds=settings.gateway_timeout_seconds,
        )

    @property
    def is_mock(self) -> bool:
        return "placeholder" in self.key_id or "placeholder" in self.key_secret

    async def create_order(self, amount_minor: int, currency: str, receipt: str) -> GatewayOrder:
        """Create a captured-on-payment order for `amount_minor`."""
        if self.is_mock:
            order_id = f"{MOCK_ORDER_PREFIX}{int(utc_now().timestamp() * 1000)}"
            logger.info("Gateway keys are placeholders, issuing mock order %s", order_id)
            return GatewayOrder(order_id, amount_minor, currency, receipt, is_mock=True)

        body = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(
                    f"{self.api_url}/orders",
                    json=body,
                    auth=(self.key_id, self.key_secret),
                )
        except httpx.HTTPError as exc:
            logger.error("Razorpay order request failed: %s", exc)
            raise PaymentGatewayException("Payment gateway is unreachable") from exc

        if response.status_code not in (200, 201):
            logger.error("Razorpay order creation failed (%s): %s", response.status_code, response.text)
            raise PaymentGatewayException(f"Payment gateway rejected order ({response.status_code})")

        order_id = response.json().get("id")
        if not order_id:
            raise PaymentGatewayException("Payment gateway returned no order id")
        return GatewayOrder(order_id, amount_minor, currency, receipt, is_mock=False)

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check the checkout signature over `order_id|payment_id`."""
        if self.is_mock and payment_id.startswith(MOCK_PAYMENT_PREFIX):
            return True
        if not signature:
            return False
        expected = compute_hmac_sha256(self.key_secret, f"{order_id}|{payment_id}")
        return hmac.compare_digest(expected, signature)
