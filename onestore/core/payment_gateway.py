# onestore/core/payment_gateway.py
"""Payment gateway communication layer (Razorpay SDK)."""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

import razorpay
import requests
from fastapi import Request
from razorpay.errors import (
    BadRequestError,
    GatewayError,
    ServerError,
    SignatureVerificationError,
)

from onestore.core.config import Settings

logger = logging.getLogger(__name__)

# Payment states that prove the customer actually paid.
CONFIRMED_PAYMENT_STATUSES = {"authorized", "captured"}

# Everything the SDK raises when a call does not go through.
_SDK_ERRORS = (BadRequestError, GatewayError, ServerError, requests.RequestException)


class PaymentGatewayError(Exception):
    """The gateway could not be reached or rejected the request."""


def to_minor_units(amount: Decimal) -> int:
    """
    Convert a major-unit amount to minor units (x100),
    rounded to the nearest integer.
    """
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway:
    """Thin wrapper around the Razorpay client."""

    def __init__(self, client: razorpay.Client, key_id: str, timeout: float | None = None):
        """
        Initialize the gateway.

        Args:
            client: Razorpay client authenticated with (key_id, key_secret)
            key_id: public key handed to the hosted payment UI
            timeout: per-request timeout in seconds
        """
        self.client = client
        self.key_id = key_id
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentGateway":
        client = razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))
        client.set_app_details({"title": settings.PROJECT_NAME, "version": "0.1.0"})
        return cls(client, settings.RAZORPAY_KEY_ID, settings.PAYMENT_TIMEOUT_SECONDS)

    def close(self) -> None:
        self.client.session.close()

    def create_order(self, amount: int, currency: str, receipt: str) -> dict[str, Any]:
        """
        Open a payment session on the gateway.

        Args:
            amount: amount in minor currency units
            currency: ISO currency code
            receipt: our own order id, echoed back by the gateway

        Returns:
            Gateway order payload; its "id" is the session id for the client.

        Raises:
            PaymentGatewayError: if the gateway is unavailable or refuses
        """
        try:
            return self.client.order.create(
                data={"amount": amount, "currency": currency, "receipt": receipt},
                timeout=self.timeout,
            )
        except _SDK_ERRORS as e:
            logger.error("Payment gateway order creation failed for receipt %s: %s", receipt, e)
            raise PaymentGatewayError("Could not create gateway order") from e

    def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        """
        Look up a payment by id.

        Raises:
            PaymentGatewayError: if the gateway is unavailable or refuses
        """
        try:
            return self.client.payment.fetch(payment_id, timeout=self.timeout)
        except _SDK_ERRORS as e:
            logger.error("Payment gateway lookup failed for payment %s: %s", payment_id, e)
            raise PaymentGatewayError("Could not fetch payment") from e

    def verify_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        """
        Check the signature the hosted UI returns on success.

        Signatures are hex digests; anything non-ASCII is rejected
        before it reaches the digest comparison.
        """
        if not (gateway_order_id.isascii() and payment_id.isascii() and signature.isascii()):
            return False
        try:
            self.client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": gateway_order_id,
                    "razorpay_payment_id": payment_id,
                    "razorpay_signature": signature,
                }
            )
        except SignatureVerificationError:
            return False
        return True


def get_payment_gateway(request: Request) -> PaymentGateway:
    """Get the payment gateway client from app state."""
    return request.app.state.payment_gateway
