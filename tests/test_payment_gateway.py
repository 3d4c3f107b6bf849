from decimal import Decimal

import pytest
import razorpay
import requests
from razorpay.errors import BadRequestError, ServerError

from conftest import GATEWAY_KEY_SECRET, sign
from onestore.core.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    to_minor_units,
)


def _gateway(timeout=None) -> PaymentGateway:
    client = razorpay.Client(auth=("key", GATEWAY_KEY_SECRET))
    return PaymentGateway(client, "key", timeout)


def _raise(exc):
    def _call(*args, **kwargs):
        raise exc

    return _call


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("21.00"), 2100),
        (Decimal("0.01"), 1),
        (Decimal("10.005"), 1001),
        (Decimal("0"), 0),
    ],
)
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


def test_verify_signature():
    gateway = _gateway()
    good = sign("order_9", "pay_9")

    assert gateway.verify_signature("order_9", "pay_9", good)
    assert not gateway.verify_signature("order_9", "pay_10", good)
    assert not gateway.verify_signature("order_9", "pay_9", "0" * 64)


def test_verify_signature_rejects_non_ascii():
    gateway = _gateway()

    assert not gateway.verify_signature("order_9", "pay_9", "é")
    assert not gateway.verify_signature("order_9", "pay_é", sign("order_9", "pay_9"))


def test_create_order_sends_amount_currency_and_receipt():
    seen = []

    def create(data=None, **kwargs):
        seen.append((data, kwargs))
        return {"id": "order_1", "amount": 500, "currency": "INR"}

    gateway = _gateway(timeout=5.0)
    gateway.client.order.create = create

    result = gateway.create_order(500, "INR", receipt="r-1")

    assert result["id"] == "order_1"
    assert seen == [({"amount": 500, "currency": "INR", "receipt": "r-1"}, {"timeout": 5.0})]


@pytest.mark.parametrize(
    "error",
    [
        BadRequestError("Authentication failed"),
        ServerError("The server encountered an error"),
        requests.ConnectionError("connection refused"),
    ],
)
def test_sdk_errors_raise_gateway_error(error):
    gateway = _gateway()
    gateway.client.order.create = _raise(error)
    gateway.client.payment.fetch = _raise(error)

    with pytest.raises(PaymentGatewayError):
        gateway.create_order(100, "INR", receipt="r-1")
    with pytest.raises(PaymentGatewayError):
        gateway.fetch_payment("pay_1")
