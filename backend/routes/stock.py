# backend/routes/stock.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.common import ApiResponse
import schemas.stock as stock_schemas
from services import dashboard as dashboard_service
from services.ledger import StockLedger
from utils.audit import write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/stock", tags=["Stock"])


# Bring a product's stock to a target quantity through an adjustment movement
@router.post("/adjust", response_model=ApiResponse[stock_schemas.StockAdjustResult])
def adjust_stock(
    payload: stock_schemas.StockAdjustCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = StockLedger(db, current_user.id).adjust_stock_to(
        payload.product_id, payload.quantity, payload.reason, notes=payload.notes,
    )
    data = {
        "product_id": result.product_id,
        "product_name": result.product_name,
        "previous_stock": result.previous_stock,
        "new_stock": result.new_stock,
        "delta": result.delta,
        "kind": result.kind,
        "movement": result.movement,
    }
    if not result.changed:
        return {"success": True, "message": "Stock unchanged", "data": data}

    write_log(
        db, user_id=current_user.id, action="STOCK_ADJUSTMENT", resource="stock",
        ip=request.client.host if request.client else None,
        meta={"id": result.movement.id, "product_id": result.product_id,
              "previous_stock": result.previous_stock, "new_stock": result.new_stock},
    )
    return {"success": True, "message": "Stock adjusted", "data": data}


# Counts and latest movements for the current user's catalog
@router.get("/dashboard", response_model=ApiResponse[stock_schemas.DashboardSummary])
def dashboard(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    summary = dashboard_service.summary(db, current_user.id)
    data = {
        "total_products": summary.total_products,
        "low_stock_count": summary.low_stock_count,
        "out_of_stock_count": summary.out_of_stock_count,
        "recent_movements": summary.recent_movements,
    }
    return {"success": True, "data": data}
