# onestore/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import field_validator
from sqlmodel import Field

from onestore.schemas.common import ApiModel


class ProductWrite(ApiModel):
    """
    Payload for creating or replacing a product.

    Validation rules:
      - name, slug and description are trimmed and must not be empty
      - price must be a non-negative decimal with at most 2 decimals
      - stock must be >= 0
    """

    name: str
    slug: str
    description: str
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    image: str | None = None
    is_active: bool = True

    @field_validator("name", "slug", "description")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("image")
    @classmethod
    def normalize_image(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class ProductCreate(ProductWrite):
    """Payload for creating a product (admin)."""

    pass


class ProductUpdate(ProductWrite):
    """
    Full-replace payload for products (admin).
    Every editable field is overwritten.
    """

    pass


class ProductRead(ApiModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    slug: str
    description: str | None
    price: Decimal
    stock: int
    image: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
