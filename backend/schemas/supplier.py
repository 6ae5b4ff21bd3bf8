# backend/schemas/supplier.py
from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field, field_validator

from schemas.common import ORMBase, reject_null

PHONE_PATTERN = r"^[0-9\-\+\(\)\s]+$"


class SupplierCreate(ORMBase):
    name: str = Field(min_length=1)
    contact: Optional[str] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    address: Optional[str] = None


class SupplierUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1)
    contact: Optional[str] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("name", "active")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class SupplierOut(ORMBase):
    id: int
    name: str
    contact: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None


class SupplierDetail(SupplierOut):
    product_count: int = 0
