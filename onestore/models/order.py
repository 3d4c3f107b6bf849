# onestore/models/order.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(SQLModel, table=True):
    """
    A checkout attempt and its outcome.

    total_amount is computed once from the cart at checkout
    and never recomputed afterwards.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        index=True,
    )

    total_amount: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Order total at checkout time",
    )

    # pending | completed | cancelled | failed
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    customer_name: str = Field(description="Customer name at checkout time")
    customer_email: str = Field(description="Customer email at checkout time")
    shipping_address: str = Field(description="Shipping address at checkout time")

    gateway_order_id: str | None = Field(
        default=None,
        index=True,
        description="Payment session id issued by the gateway",
    )
    payment_id: str | None = Field(
        default=None,
        description="Gateway payment id once the payment is verified",
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column_kwargs={"onupdate": _utcnow},
    )


class OrderItem(SQLModel, table=True):
    """
    Price/name snapshot of a cart line at order time.
    Rows are written together with their Order and never modified.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        ondelete="CASCADE",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        ondelete="CASCADE",
        index=True,
    )

    product_name: str

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    price: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Unit price at time of order",
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
    )
