# backend/routes/suppliers.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.common import ApiResponse, Pagination
from schemas.supplier import SupplierCreate, SupplierDetail, SupplierOut, SupplierUpdate
from services.catalog import CatalogRepository
from utils.audit import write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


@router.get("", response_model=ApiResponse[List[SupplierOut]])
def list_suppliers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = CatalogRepository(db, current_user.id).list_suppliers(page=page, limit=limit, search=search)
    return {"success": True, "data": result.items, "pagination": Pagination.build(result.total, page, limit)}


@router.get("/{supplier_id}", response_model=ApiResponse[SupplierDetail])
def get_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    catalog = CatalogRepository(db, current_user.id)
    supplier = catalog.get_supplier(supplier_id)
    data = SupplierOut.model_validate(supplier).model_dump()
    data["product_count"] = catalog.supplier_product_count(supplier.id)
    return {"success": True, "data": data}


@router.post("", response_model=ApiResponse[SupplierOut], status_code=status.HTTP_201_CREATED)
def create_supplier(payload: SupplierCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    supplier = CatalogRepository(db, current_user.id).create_supplier(payload.model_dump())
    write_log(db, user_id=current_user.id, action="SUPPLIER_CREATE", resource="suppliers", meta={"id": supplier.id})
    return {"success": True, "message": "Supplier created", "data": supplier}


@router.put("/{supplier_id}", response_model=ApiResponse[SupplierOut])
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    supplier = CatalogRepository(db, current_user.id).update_supplier(supplier_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "message": "Supplier updated", "data": supplier}


@router.delete("/{supplier_id}", response_model=ApiResponse[SupplierOut])
def delete_supplier(supplier_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    supplier = CatalogRepository(db, current_user.id).delete_supplier(supplier_id)
    write_log(db, user_id=current_user.id, action="SUPPLIER_DELETE", resource="suppliers", meta={"id": supplier.id})
    return {"success": True, "message": "Supplier deleted", "data": supplier}
