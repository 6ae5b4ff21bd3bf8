# backend/routes/products.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.common import ApiResponse, Pagination
import schemas.product as product_schemas
from services.catalog import CatalogRepository
from utils.audit import write_log
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/products", tags=["Products"])


def _page(result) -> dict:
    return {
        "success": True,
        "data": result.items,
        "pagination": Pagination.build(result.total, result.page, result.limit),
    }


# =========================
# PRODUCT LIST
# =========================
@router.get("", response_model=ApiResponse[List[product_schemas.ProductOut]])
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    sort_by: str = Query("id", alias="sortBy"),
    order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    catalog = CatalogRepository(db, current_user.id)
    return _page(catalog.list_products(page=page, limit=limit, search=search, sort_by=sort_by, order=order))


# =========================
# LOOKUP HELPERS
# =========================
@router.get("/search", response_model=ApiResponse[product_schemas.ProductOut])
def search_by_code(
    code: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"success": True, "data": CatalogRepository(db, current_user.id).find_by_code(code)}


@router.get("/low-stock", response_model=ApiResponse[List[product_schemas.ProductOut]])
def low_stock_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _page(CatalogRepository(db, current_user.id).low_stock_products(page=page, limit=limit))


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=ApiResponse[product_schemas.ProductOut])
def get_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return {"success": True, "data": CatalogRepository(db, current_user.id).get_product(product_id)}


@router.post("", response_model=ApiResponse[product_schemas.ProductOut], status_code=status.HTTP_201_CREATED)
def create_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = CatalogRepository(db, current_user.id).create_product(payload.model_dump())
    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        ip=request.client.host if request.client else None,
        meta={"id": product.id, "code": product.code, "opening_stock": payload.stock},
    )
    return {"success": True, "message": "Product created", "data": product}


@router.put("/{product_id}", response_model=ApiResponse[product_schemas.ProductOut])
def update_product(
    product_id: int,
    payload: product_schemas.ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = CatalogRepository(db, current_user.id).update_product(product_id, payload.model_dump(exclude_unset=True))
    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products", meta={"id": product.id})
    return {"success": True, "message": "Product updated", "data": product}


@router.delete("/{product_id}", response_model=ApiResponse[product_schemas.ProductOut])
def delete_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    product = CatalogRepository(db, current_user.id).delete_product(product_id)
    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products", meta={"id": product.id})
    return {"success": True, "message": f"Product '{product.name}' deleted", "data": product}
