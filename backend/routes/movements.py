# backend/routes/movements.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.common import ApiResponse, Pagination
import schemas.stock as stock_schemas
from services.ledger import StockLedger
from utils.audit import write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/movements", tags=["Movements"])


# Record an inbound or outbound movement and move stock with it
@router.post("", response_model=ApiResponse[stock_schemas.MovementCreated], status_code=status.HTTP_201_CREATED)
def create_movement(
    payload: stock_schemas.StockMovementCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = StockLedger(db, current_user.id).record_movement(
        payload.product_id, payload.kind, payload.quantity, payload.reason,
        reference=payload.reference, notes=payload.notes,
    )
    movement_id = result.movement.id
    write_log(
        db, user_id=current_user.id, action="STOCK_MOVEMENT", resource="stock",
        ip=request.client.host if request.client else None,
        meta={"id": movement_id, "product_id": payload.product_id, "type": payload.kind.value,
              "quantity": payload.quantity, "new_stock": result.new_stock},
    )
    data = {"movement": result.movement, "previous_stock": result.previous_stock, "new_stock": result.new_stock}
    return {"success": True, "message": "Movement recorded", "data": data}


# Ledger of one product, newest first, with inbound/outbound totals for the filtered set
@router.get("/{product_id}", response_model=ApiResponse[stock_schemas.LedgerData])
def get_movements(
    product_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ledger = StockLedger(db, current_user.id).get_ledger(
        product_id, kind=type or None, start_date=start_date, end_date=end_date, page=page, limit=limit,
    )
    return {
        "success": True,
        "data": {
            "product_id": product_id,
            "movements": ledger.items,
            "summary": {
                "inbound": ledger.totals.inbound,
                "outbound": ledger.totals.outbound,
                "balance": ledger.totals.balance,
            },
        },
        "pagination": Pagination.build(ledger.total, ledger.page, ledger.limit),
    }
