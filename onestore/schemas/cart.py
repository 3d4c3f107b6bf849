# onestore/schemas/cart.py
import uuid
from decimal import Decimal

from sqlmodel import Field

from onestore.schemas.common import ApiModel


class CartItemCreate(ApiModel):
    """
    Payload for adding to cart.
    Quantity defaults to 1.
    """

    product_id: uuid.UUID
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(ApiModel):
    """
    Payload for setting the quantity of a cart line.
    """

    id: uuid.UUID
    quantity: int = Field(ge=1)


class CartItemDelete(ApiModel):
    id: uuid.UUID


class CartProductRead(ApiModel):
    id: uuid.UUID
    name: str
    description: str | None
    price: Decimal
    image: str | None
    stock: int


class CartItemRead(ApiModel):
    """
    A cart line with the current product state and line_total.
    """

    id: uuid.UUID
    quantity: int
    product: CartProductRead
    line_total: Decimal


class CartSummary(ApiModel):
    """
    Full cart response model with totals.
    """

    items: list[CartItemRead]
    total_quantity: int
    total_amount: Decimal
