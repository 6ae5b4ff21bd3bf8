# backend/schemas/stock.py
from datetime import datetime
from typing import List, Optional
from pydantic import Field, field_validator

from models.stock import LEGACY_KINDS, MovementKind
from schemas.common import ORMBase


# Schema for recording a movement; `type` is the wire name of the kind
class StockMovementCreate(ORMBase):
    product_id: int
    kind: MovementKind = Field(alias="type")
    quantity: int = Field(gt=0)
    reason: str = Field(min_length=1)
    reference: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("kind", mode="before")
    @classmethod
    def _legacy_kind(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return LEGACY_KINDS.get(value, value)
        return value

    @field_validator("reason")
    @classmethod
    def _reason_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("reason is required")
        return value.strip()


# Ledger entry as returned by the API
class StockMovementOut(ORMBase):
    id: int
    product_id: int
    user_id: int
    kind: MovementKind = Field(serialization_alias="type")
    quantity: int
    reason: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    is_adjustment: bool
    occurred_at: datetime


class MovementCreated(ORMBase):
    movement: StockMovementOut
    previous_stock: int
    new_stock: int


class LedgerSummary(ORMBase):
    inbound: int
    outbound: int
    balance: int


class LedgerData(ORMBase):
    product_id: int
    movements: List[StockMovementOut]
    summary: LedgerSummary


# Schema for bringing stock to a target quantity
class StockAdjustCreate(ORMBase):
    product_id: int
    # Negative targets are clamped to zero by the ledger
    quantity: int
    reason: str = Field(min_length=1)
    notes: Optional[str] = None


class StockAdjustResult(ORMBase):
    product_id: int
    product_name: str
    previous_stock: int
    new_stock: int
    delta: int
    kind: Optional[MovementKind] = None
    movement: Optional[StockMovementOut] = None


class DashboardSummary(ORMBase):
    total_products: int
    low_stock_count: int
    out_of_stock_count: int
    recent_movements: List[StockMovementOut]
