# backend/schemas/common.py
from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# Base configuration: ORM compatibility, camelCase on the wire, snake_case accepted on input
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class Pagination(ORMBase):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, total_pages=(total + limit - 1) // limit)


# Envelope for every successful response
class ApiResponse(ORMBase, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: T
    pagination: Optional[Pagination] = None


# Envelope for every error response
class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error: Optional[Any] = None


# Partial updates: a key may be omitted, but columns that can't be NULL may not be sent as null
def reject_null(value):
    if value is None:
        raise ValueError("must not be null")
    return value
