# onestore/schemas/common.py
import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel

DataT = TypeVar("DataT")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


class ApiModel(SQLModel):
    """
    Base for every request/response schema.

    - JSON keys are camelCase on the wire (productId, totalAmount, ...)
    - snake_case names are accepted on input as well
    - read models can be built straight from ORM rows
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if limit else 0,
        )


class ApiResponse(BaseModel, Generic[DataT]):
    """
    Uniform success envelope: { success, data?, message? }.

    Failures use the same keys plus `error`; they are produced by
    the exception handlers in onestore.core.errors.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    data: DataT | None = None
    message: str | None = None


class PaginatedResponse(ApiResponse[list[DataT]], Generic[DataT]):
    pagination: Pagination
