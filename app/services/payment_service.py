"""
Stripe Payment Service
Charges and refunds orders through the Stripe REST API.

Business failures (card declined, refund rejected, Stripe unreachable) come
back as an unsuccessful PaymentResult; nothing here raises for them.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx

from ..config import STRIPE_API_URL, STRIPE_SECRET_KEY
from ..domain.value_objects import MINOR_UNITS, Currency, Money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    payment_id: Optional[str] = None
    error_message: Optional[str] = None
    amount: Optional[Money] = None


def to_minor_units(money: Money) -> int:
    exponent = MINOR_UNITS[money.currency]
    return int((money.amount * (Decimal(10) ** exponent)).to_integral_value())


def from_minor_units(value: int, currency: Currency) -> Money:
    exponent = MINOR_UNITS[currency]
    return Money.create(Decimal(value) / (Decimal(10) ** exponent), currency)


def _stripe_error(response: httpx.Response) -> str:
    try:
        return response.json().get("error", {}).get("message") or response.text
    except ValueError:
        return response.text


class StripePaymentService:
    """Thin async wrapper over the Stripe PaymentIntents and Refunds endpoints"""

    def __init__(self, api_key: Optional[str] = STRIPE_SECRET_KEY, api_url: str = STRIPE_API_URL,
                 timeout: float = 30.0):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _post(self, path: str, data: dict, idempotency_key: Optional[str] = None) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        async with httpx.AsyncClient(timeout=self.timeout) as http_client:
            return await http_client.post(f"{self.api_url}{path}", data=data, headers=headers)

    async def process_payment(
        self,
        amount: Money,
        payment_method_id: str,
        description: str,
        metadata: Optional[dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> PaymentResult:
        """
        Create and confirm a PaymentIntent in one call.

        Args:
            amount: Amount to charge
            payment_method_id: Stripe payment method (pm_...) from the client
            description: Shown on the Stripe dashboard
            metadata: Order identifiers to attach
            idempotency_key: Stripe idempotency key, normally the order number

        Returns:
            PaymentResult with the PaymentIntent id on success
        """
        if not self.is_configured():
            logger.error("❌ Stripe is not configured (STRIPE_SECRET_KEY missing)")
            return PaymentResult(False, error_message="Payment provider not configured")

        data = {
            "amount": str(to_minor_units(amount)),
            "currency": amount.currency.value.lower(),
            "payment_method": payment_method_id,
            "confirm": "true",
            "description": description,
            "automatic_payment_methods[enabled]": "true",
            "automatic_payment_methods[allow_redirects]": "never",
        }
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = value

        try:
            response = await self._post("/payment_intents", data, idempotency_key)
        except httpx.HTTPError as e:
            logger.error(f"❌ Stripe payment request failed: {e}")
            return PaymentResult(False, error_message="Payment provider unavailable")

        if response.status_code != 200:
            message = _stripe_error(response)
            logger.warning(f"⚠️ Stripe declined payment: {message}")
            return PaymentResult(False, error_message=message)

        intent = response.json()
        if intent.get("status") != "succeeded":
            logger.warning(f"⚠️ PaymentIntent {intent.get('id')} ended in status {intent.get('status')}")
            return PaymentResult(
                False,
                payment_id=intent.get("id"),
                error_message=f"Payment {intent.get('status', 'failed')}",
            )

        logger.info(f"✅ Payment succeeded: {intent['id']} ({amount})")
        return PaymentResult(True, payment_id=intent["id"], amount=amount)

    async def process_refund(self, payment_id: str, amount: Optional[Money] = None) -> PaymentResult:
        """Refund a PaymentIntent, fully or for ``amount``"""
        if not self.is_configured():
            logger.error("❌ Stripe is not configured (STRIPE_SECRET_KEY missing)")
            return PaymentResult(False, error_message="Payment provider not configured")

        data = {"payment_intent": payment_id}
        if amount is not None:
            data["amount"] = str(to_minor_units(amount))

        try:
            response = await self._post("/refunds", data)
        except httpx.HTTPError as e:
            logger.error(f"❌ Stripe refund request failed: {e}")
            return PaymentResult(False, error_message="Payment provider unavailable")

        if response.status_code != 200:
            message = _stripe_error(response)
            logger.warning(f"⚠️ Stripe rejected refund for {payment_id}: {message}")
            return PaymentResult(False, error_message=message)

        refund = response.json()
        if refund.get("status") not in ("succeeded", "pending"):
            return PaymentResult(False, payment_id=refund.get("id"),
                                 error_message=f"Refund {refund.get('status', 'failed')}")

        refunded = amount
        if refund.get("amount") is not None and refund.get("currency"):
            refunded = from_minor_units(int(refund["amount"]), Currency.parse(refund["currency"]))

        logger.info(f"✅ Refund {refund.get('id')} for {payment_id} ({refunded})")
        return PaymentResult(True, payment_id=refund.get("id"), amount=refunded)


def get_payment_service() -> StripePaymentService:
    """Dependency injection for the payment provider"""
    return StripePaymentService()
