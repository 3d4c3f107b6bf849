# onestore/schemas/order.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, field_validator

from onestore.schemas.common import ApiModel

OrderStatus = Literal["pending", "completed", "cancelled", "failed"]

# Statuses a client may ask for; "failed" is only set by the checkout
# compensation path.
RequestedOrderStatus = Literal["pending", "completed", "cancelled"]


class OrderRead(ApiModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    user_id: uuid.UUID
    total_amount: Decimal
    status: OrderStatus
    customer_name: str
    customer_email: str
    shipping_address: str
    gateway_order_id: str | None
    payment_id: str | None
    created_at: datetime
    updated_at: datetime


class OrderItemRead(ApiModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    quantity: int
    price: Decimal


class OrderDetail(ApiModel):
    """
    Full order view including items.
    """

    order: OrderRead
    items: list[OrderItemRead]


class OrderStatusUpdate(ApiModel):
    """
    Payload to move an order out of `pending`.

    - completed: paymentId + signature returned by the hosted payment UI
    - cancelled: nothing else
    """

    model_config = ConfigDict(extra="forbid")

    status: RequestedOrderStatus
    payment_id: str | None = None
    signature: str | None = None

    @field_validator("payment_id", "signature")
    @classmethod
    def normalize(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v.isascii():
            raise ValueError("must contain only ASCII characters")
        return v or None


class CheckoutSession(ApiModel):
    """
    What the client needs to open the hosted payment UI.
    `amount` is in minor currency units.
    """

    gateway_key: str
    session_id: str
    amount: int
    currency: str
    order_id: uuid.UUID
