# backend/routes/marcas.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.brand import BrandCreate, BrandOut, BrandUpdate
from schemas.common import ApiResponse, Pagination
from services.catalog import CatalogRepository
from utils.audit import write_log
from utils.tokenJWT import get_current_user

# Brands keep their historical "marcas" path
router = APIRouter(prefix="/marcas", tags=["Brands"])


@router.get("", response_model=ApiResponse[List[BrandOut]])
def list_brands(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = CatalogRepository(db, current_user.id).list_brands(page=page, limit=limit, search=search)
    return {"success": True, "data": result.items, "pagination": Pagination.build(result.total, page, limit)}


@router.get("/{brand_id}", response_model=ApiResponse[BrandOut])
def get_brand(brand_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return {"success": True, "data": CatalogRepository(db, current_user.id).get_brand(brand_id)}


@router.post("", response_model=ApiResponse[BrandOut], status_code=status.HTTP_201_CREATED)
def create_brand(payload: BrandCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    brand = CatalogRepository(db, current_user.id).create_brand(payload.model_dump())
    write_log(db, user_id=current_user.id, action="BRAND_CREATE", resource="marcas", meta={"id": brand.id})
    return {"success": True, "message": "Brand created", "data": brand}


@router.put("/{brand_id}", response_model=ApiResponse[BrandOut])
def update_brand(
    brand_id: int,
    payload: BrandUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    brand = CatalogRepository(db, current_user.id).update_brand(brand_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "message": "Brand updated", "data": brand}


@router.delete("/{brand_id}", response_model=ApiResponse[BrandOut])
def delete_brand(brand_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    brand = CatalogRepository(db, current_user.id).delete_brand(brand_id)
    write_log(db, user_id=current_user.id, action="BRAND_DELETE", resource="marcas", meta={"id": brand.id})
    return {"success": True, "message": "Brand deleted", "data": brand}
