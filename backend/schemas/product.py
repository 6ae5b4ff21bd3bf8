# backend/schemas/product.py
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import Field, field_validator

from schemas.common import ORMBase, reject_null


# Shared attributes for product entities
class ProductBase(ORMBase):
    description: Optional[str] = None
    min_stock: int = Field(default=5, ge=0)
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    supplier_id: Optional[int] = None
    brand_id: Optional[int] = None


# Schema for creating a new product; `stock` becomes an opening ledger entry
class ProductCreate(ProductBase):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    stock: int = Field(default=0, ge=0)


# Schema for updates - all fields optional, stock is not accepted here
class ProductUpdate(ORMBase):
    """Stock only changes through /movements and /stock/adjust."""
    code: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    min_stock: Optional[int] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = None
    supplier_id: Optional[int] = None
    brand_id: Optional[int] = None

    @field_validator("code", "name", "min_stock", "price")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


# Full product representation
class ProductOut(ProductBase):
    id: int
    code: str
    name: str
    stock: int
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
