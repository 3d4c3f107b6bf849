# onestore/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(SQLModel, table=True):
    """
    Sellable catalog entry.

    Columns:
      - id, name, slug, description, price, stock, image,
        is_active, created_at, updated_at
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        index=True,
        description="Display name of the product",
    )

    slug: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    description: str | None = Field(
        default=None,
        description="Long description shown on the product page",
    )

    price: Decimal = Field(
        max_digits=10,
        decimal_places=2,
        description="Unit price in major currency units",
    )

    stock: int = Field(
        default=0,
        ge=0,
        description="Units currently available; never negative",
    )

    image: str | None = Field(
        default=None,
        description="Public image URL",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product can be added to carts",
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column_kwargs={"onupdate": _utcnow},
        description="Last modification timestamp (UTC)",
    )
