# backend/services/dashboard.py
from dataclasses import dataclass
from typing import List

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from models.product import Product
from models.stock import StockMovement
from services.ledger import StockLedger
from services.ownership import owned


@dataclass
class DashboardSummary:
    total_products: int
    low_stock_count: int
    out_of_stock_count: int
    recent_movements: List[StockMovement]


def summary(db: Session, owner_id: int) -> DashboardSummary:
    """Counts over the owner's active products plus their latest movements. Read-only."""
    total, low, out = (
        owned(db, Product, owner_id)
        .filter(Product.active.is_(True))
        .with_entities(
            func.count(Product.id),
            func.coalesce(func.sum(case((Product.stock <= Product.min_stock, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Product.stock == 0, 1), else_=0)), 0),
        )
        .one()
    )
    return DashboardSummary(
        total_products=int(total),
        low_stock_count=int(low),
        out_of_stock_count=int(out),
        recent_movements=StockLedger(db, owner_id).recent_movements(),
    )
