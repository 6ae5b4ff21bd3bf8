# backend/schemas/brand.py
from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator

from schemas.common import ORMBase, reject_null


class BrandCreate(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class BrandUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("name", "active")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class BrandOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None
