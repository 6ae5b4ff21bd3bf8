# backend/services/catalog.py
"""Catalog repository: products, suppliers and brands of one owner.

Stock is never written here. New products get their opening stock through
``StockLedger.open_stock`` in the same transaction as the insert.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.brand import Brand
from models.product import Product
from models.stock import StockMovement
from models.supplier import Supplier
from services.ledger import StockLedger
from services.ownership import owned, get_owned
from utils.errors import Conflict, HasDependents, NotFound, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

PRODUCT_SORT_FIELDS = {
    "id": Product.id,
    "code": Product.code,
    "name": Product.name,
    "stock": Product.stock,
    "price": Product.price,
    "created_at": Product.created_at,
}

# How the (owner_id, code) unique constraint shows up in driver messages (Postgres / SQLite)
PRODUCT_CODE_MARKERS = ("uq_product_owner_code", "products.owner_id, products.code")


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int


def _norm_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    c = code.strip().upper()
    return c if c else None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _like(search: str) -> str:
    # Escape LIKE wildcards typed by the user
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _product_integrity_error(exc: IntegrityError) -> Exception:
    # Only a unique-constraint failure is a conflict; NOT NULL / CHECK failures are bad input
    detail = str(exc.orig).lower()
    if any(marker in detail for marker in PRODUCT_CODE_MARKERS):
        return Conflict("A product with this code already exists")
    return ValidationError("Invalid value for a required product field")


def _paginate(query, page: int, limit: int) -> Page:
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return Page(items=items, total=total, page=page, limit=limit)


class CatalogRepository:
    """Owner-scoped CRUD over the catalog."""

    def __init__(self, db: Session, owner_id: int):
        self.db = db
        self.owner_id = owner_id

    # =========================
    # PRODUCTS
    # =========================

    def list_products(self, page: int = 1, limit: int = 10, search: Optional[str] = None,
                      sort_by: str = "id", order: str = "asc") -> Page[Product]:
        query = owned(self.db, Product, self.owner_id).filter(Product.active.is_(True))
        if search:
            like = _like(search.strip())
            query = query.filter(or_(
                Product.name.ilike(like, escape="\\"),
                Product.code.ilike(like, escape="\\"),
                Product.description.ilike(like, escape="\\"),
            ))
        col = PRODUCT_SORT_FIELDS.get((sort_by or "id").lower(), Product.id)
        query = query.order_by(col.desc() if order == "desc" else col.asc(), Product.id.asc())
        return _paginate(query, page, limit)

    def low_stock_products(self, page: int = 1, limit: int = 10) -> Page[Product]:
        query = (
            owned(self.db, Product, self.owner_id)
            .filter(Product.active.is_(True), Product.stock <= Product.min_stock)
            .order_by(Product.stock.asc(), Product.id.asc())
        )
        return _paginate(query, page, limit)

    def get_product(self, product_id: int) -> Product:
        product = get_owned(self.db, Product, self.owner_id, product_id)
        if product is None or not product.active:
            raise NotFound("Product not found")
        return product

    def find_by_code(self, code: str) -> Product:
        norm = _norm_code(code)
        if not norm:
            raise ValidationError("code is required")
        product = (
            owned(self.db, Product, self.owner_id)
            .filter(Product.code == norm, Product.active.is_(True))
            .first()
        )
        if product is None:
            raise NotFound("Product not found")
        return product

    def _ensure_code_free(self, code: str, exclude_id: Optional[int] = None) -> None:
        query = owned(self.db, Product, self.owner_id).filter(Product.code == code)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first() is not None:
            raise Conflict("A product with this code already exists")

    def _check_references(self, data: Dict[str, Any]) -> None:
        if data.get("supplier_id") is not None:
            supplier = get_owned(self.db, Supplier, self.owner_id, data["supplier_id"])
            if supplier is None or not supplier.active:
                raise NotFound("Supplier not found")
        if data.get("brand_id") is not None:
            brand = get_owned(self.db, Brand, self.owner_id, data["brand_id"])
            if brand is None or not brand.active:
                raise NotFound("Brand not found")

    def create_product(self, data: Dict[str, Any]) -> Product:
        data = dict(data)
        opening = data.pop("stock", 0) or 0
        code = _norm_code(data.pop("code", None))
        name = _clean(data.pop("name", None))
        if not code or not name:
            raise ValidationError("code and name are required")
        if opening < 0:
            raise ValidationError("stock must be >= 0")
        self._ensure_code_free(code)
        self._check_references(data)

        product = Product(owner_id=self.owner_id, code=code, name=name, stock=0, **data)
        self.db.add(product)
        try:
            self.db.flush()
            if opening > 0:
                # Commits product and opening movement together
                StockLedger(self.db, self.owner_id).open_stock(product.id, opening)
            else:
                self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise _product_integrity_error(exc)
        self.db.refresh(product)
        logger.info("Product %s (%s) created by user %s", product.id, product.code, self.owner_id)
        return product

    def update_product(self, product_id: int, data: Dict[str, Any]) -> Product:
        product = self.get_product(product_id)
        data = {k: v for k, v in data.items() if k != "stock"}

        if "code" in data:
            code = _norm_code(data.pop("code"))
            if not code:
                raise ValidationError("code must not be empty")
            if code != product.code:
                self._ensure_code_free(code, exclude_id=product.id)
            product.code = code
        if "name" in data:
            name = _clean(data.pop("name"))
            if not name:
                raise ValidationError("name must not be empty")
            product.name = name
        self._check_references(data)

        for key, value in data.items():
            setattr(product, key, value)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise _product_integrity_error(exc)
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int) -> Product:
        product = self.get_product(product_id)
        movements = self.db.query(StockMovement).filter(StockMovement.product_id == product.id).count()
        if movements:
            raise HasDependents("Product has stock movements and cannot be deleted", movements)
        product.active = False
        self.db.commit()
        return product

    def recent_products(self, limit: int = 5) -> List[Product]:
        return (
            owned(self.db, Product, self.owner_id)
            .filter(Product.active.is_(True))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
            .all()
        )

    # =========================
    # SUPPLIERS & BRANDS
    # =========================

    def _get_named(self, model, entity_id: int, label: str):
        entity = get_owned(self.db, model, self.owner_id, entity_id)
        if entity is None:
            raise NotFound(f"{label} not found")
        return entity

    def _ensure_name_free(self, model, name: str, label: str, exclude_id: Optional[int] = None) -> None:
        query = owned(self.db, model, self.owner_id).filter(func.lower(model.name) == name.lower())
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first() is not None:
            raise Conflict(f"A {label.lower()} with this name already exists")

    def _commit_named(self, label: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            # Names have no unique index; anything here is a NOT NULL / CHECK failure
            logger.warning("Rejected %s write: %s", label.lower(), exc.orig)
            raise ValidationError(f"Invalid value for a required {label.lower()} field")

    def _create_named(self, model, data: Dict[str, Any], label: str):
        data = {k: _clean(v) if isinstance(v, str) else v for k, v in data.items()}
        name = data.pop("name", None)
        if not name:
            raise ValidationError(f"{label} name is required")
        self._ensure_name_free(model, name, label)
        entity = model(owner_id=self.owner_id, name=name, **data)
        self.db.add(entity)
        self._commit_named(label)
        self.db.refresh(entity)
        return entity

    def _update_named(self, model, entity_id: int, data: Dict[str, Any], label: str):
        entity = self._get_named(model, entity_id, label)
        data = {k: _clean(v) if isinstance(v, str) else v for k, v in data.items()}
        if "name" in data:
            name = data.pop("name")
            if not name:
                raise ValidationError(f"{label} name must not be empty")
            if name.lower() != entity.name.lower():
                self._ensure_name_free(model, name, label, exclude_id=entity.id)
            entity.name = name
        for key, value in data.items():
            setattr(entity, key, value)
        self._commit_named(label)
        self.db.refresh(entity)
        return entity

    def _delete_named(self, model, fk, entity_id: int, label: str):
        entity = self._get_named(model, entity_id, label)
        dependents = (
            owned(self.db, Product, self.owner_id)
            .filter(fk == entity.id, Product.active.is_(True))
            .count()
        )
        if dependents:
            raise HasDependents(f"{label} is referenced by {dependents} product(s) and cannot be deleted", dependents)
        entity.active = False
        self.db.commit()
        return entity

    def _list_named(self, model, search_cols, page: int, limit: int, search: Optional[str]):
        query = owned(self.db, model, self.owner_id)
        if search:
            like = _like(search.strip())
            query = query.filter(or_(*[c.ilike(like, escape="\\") for c in search_cols]))
        return _paginate(query.order_by(model.name.asc(), model.id.asc()), page, limit)

    def list_suppliers(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Page[Supplier]:
        return self._list_named(Supplier, [Supplier.name, Supplier.contact, Supplier.email], page, limit, search)

    def get_supplier(self, supplier_id: int) -> Supplier:
        return self._get_named(Supplier, supplier_id, "Supplier")

    def supplier_product_count(self, supplier_id: int) -> int:
        return (
            owned(self.db, Product, self.owner_id)
            .filter(Product.supplier_id == supplier_id, Product.active.is_(True))
            .count()
        )

    def create_supplier(self, data: Dict[str, Any]) -> Supplier:
        return self._create_named(Supplier, data, "Supplier")

    def update_supplier(self, supplier_id: int, data: Dict[str, Any]) -> Supplier:
        return self._update_named(Supplier, supplier_id, data, "Supplier")

    def delete_supplier(self, supplier_id: int) -> Supplier:
        return self._delete_named(Supplier, Product.supplier_id, supplier_id, "Supplier")

    def list_brands(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Page[Brand]:
        return self._list_named(Brand, [Brand.name, Brand.description], page, limit, search)

    def get_brand(self, brand_id: int) -> Brand:
        return self._get_named(Brand, brand_id, "Brand")

    def create_brand(self, data: Dict[str, Any]) -> Brand:
        return self._create_named(Brand, data, "Brand")

    def update_brand(self, brand_id: int, data: Dict[str, Any]) -> Brand:
        return self._update_named(Brand, brand_id, data, "Brand")

    def delete_brand(self, brand_id: int) -> Brand:
        return self._delete_named(Brand, Product.brand_id, brand_id, "Brand")
