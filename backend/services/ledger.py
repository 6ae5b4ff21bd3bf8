# backend/services/ledger.py
"""Stock ledger engine.

This module is the only writer of ``Product.stock``. Every change of a product's
stock is made together with one append-only :class:`StockMovement` in a single
transaction, so that for every product::

    stock == sum(inbound quantities) - sum(outbound quantities)

Stock updates are conditional ``UPDATE`` statements evaluated by the database
(``stock >= q`` for outbound, ``stock == observed`` for adjustments), which makes
concurrent writers against the same product serialize on its row instead of both
passing a check made in Python.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Union

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session

from models.product import Product
from models.stock import LEGACY_KINDS, StockMovement, MovementKind
from services.ownership import owned, get_owned
from utils.errors import Conflict, InsufficientStock, NotFound, ValidationError

logger = logging.getLogger(__name__)

ADJUSTMENT_PREFIX = "Inventory adjustment: "
OPENING_STOCK_REASON = "Opening stock"
ADJUST_ATTEMPTS = 3
RECENT_LIMIT = 5


@dataclass
class MovementResult:
    movement: StockMovement
    previous_stock: int
    new_stock: int


@dataclass
class AdjustmentResult:
    product_id: int
    product_name: str
    previous_stock: int
    new_stock: int
    delta: int
    kind: Optional[MovementKind] = None
    movement: Optional[StockMovement] = None

    @property
    def changed(self) -> bool:
        return self.delta != 0


@dataclass
class LedgerTotals:
    inbound: int = 0
    outbound: int = 0

    @property
    def balance(self) -> int:
        return self.inbound - self.outbound


@dataclass
class LedgerPage:
    items: List[StockMovement]
    total: int
    page: int
    limit: int
    totals: LedgerTotals


class _StaleStock(Exception):
    """Stock changed between reading it and the conditional update."""


def coerce_kind(kind: Union[str, MovementKind]) -> MovementKind:
    if isinstance(kind, MovementKind):
        return kind
    value = (kind or "").strip().lower() if isinstance(kind, str) else ""
    if value in LEGACY_KINDS:
        return LEGACY_KINDS[value]
    try:
        return MovementKind(value)
    except ValueError:
        raise ValidationError('Movement type must be "inbound" or "outbound"')


def _whole_number(value, field: str) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a whole number")
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a whole number")
    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationError(f"{field} must be a whole number")
    return int(number)


def _positive_quantity(value) -> int:
    quantity = _whole_number(value, "quantity")
    if quantity <= 0:
        raise ValidationError("quantity must be greater than zero")
    return quantity


def _required_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    return text


def _optional_text(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


def _totals_columns():
    inbound = func.coalesce(func.sum(case(
        (StockMovement.kind == MovementKind.INBOUND, StockMovement.quantity), else_=0,
    )), 0)
    outbound = func.coalesce(func.sum(case(
        (StockMovement.kind == MovementKind.OUTBOUND, StockMovement.quantity), else_=0,
    )), 0)
    return inbound, outbound


class StockLedger:
    """Ledger operations on behalf of one acting user."""

    def __init__(self, db: Session, actor_id: int):
        self.db = db
        self.actor_id = actor_id

    @contextmanager
    def _atomic(self):
        # Commits whatever the session holds, including a caller's flushed product
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _product(self, product_id: int, *, active_only: bool = True, lock: bool = True) -> Product:
        product = get_owned(self.db, Product, self.actor_id, product_id, for_update=lock)
        if product is None or (active_only and not product.active):
            raise NotFound("Product not found")
        return product

    def _current_stock(self, product_id: int) -> int:
        return self.db.query(Product.stock).filter(Product.id == product_id).scalar()

    def _append(self, product: Product, kind: MovementKind, quantity: int, reason: str,
                reference: Optional[str], notes: Optional[str], is_adjustment: bool) -> StockMovement:
        movement = StockMovement(
            product_id=product.id,
            user_id=self.actor_id,
            kind=kind,
            quantity=quantity,
            reason=reason,
            reference=reference,
            notes=notes,
            is_adjustment=is_adjustment,
            occurred_at=datetime.now(timezone.utc),
        )
        self.db.add(movement)
        self.db.flush()
        return movement

    def _apply_delta(self, product: Product, kind: MovementKind, quantity: int) -> int:
        signed = quantity if kind == MovementKind.INBOUND else -quantity
        stmt = update(Product).where(Product.id == product.id).values(stock=Product.stock + signed)
        if kind == MovementKind.OUTBOUND:
            stmt = stmt.where(Product.stock >= quantity)
        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        if result.rowcount != 1:
            raise InsufficientStock(available=self._current_stock(product.id), requested=quantity)
        return self._current_stock(product.id)

    # ---- writes ----

    def record_movement(
        self,
        product_id: int,
        kind: Union[str, MovementKind],
        quantity,
        reason: str,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        *,
        is_adjustment: bool = False,
    ) -> MovementResult:
        """Append one movement and move the product's stock with it, atomically."""
        kind = coerce_kind(kind)
        quantity = _positive_quantity(quantity)
        reason = _required_text(reason, "reason")

        try:
            with self._atomic():
                product = self._product(product_id)
                new_stock = self._apply_delta(product, kind, quantity)
                movement = self._append(product, kind, quantity, reason,
                                        _optional_text(reference), _optional_text(notes), is_adjustment)
        except InsufficientStock as exc:
            logger.warning("Rejected outbound of %s on product %s: only %s available",
                           exc.requested, product_id, exc.available)
            raise

        logger.info("Movement %s: product %s %s %s -> stock %s",
                    movement.id, product_id, kind.value, quantity, new_stock)
        return MovementResult(movement=movement, previous_stock=new_stock - movement.signed_quantity,
                              new_stock=new_stock)

    def open_stock(self, product_id: int, quantity: int) -> MovementResult:
        """Record a newly created product's initial stock as an inbound adjustment."""
        return self.record_movement(product_id, MovementKind.INBOUND, quantity,
                                    OPENING_STOCK_REASON, is_adjustment=True)

    def adjust_stock_to(self, product_id: int, target, reason: str,
                        notes: Optional[str] = None) -> AdjustmentResult:
        """Bring stock to ``target`` (clamped at zero) through one adjustment movement."""
        target = max(0, _whole_number(target, "quantity"))
        reason = _required_text(reason, "reason")

        for attempt in range(ADJUST_ATTEMPTS):
            product = self._product(product_id)
            previous = product.stock
            delta = target - previous
            if delta == 0:
                self.db.rollback()
                return AdjustmentResult(product_id=product.id, product_name=product.name,
                                        previous_stock=previous, new_stock=previous, delta=0)

            kind = MovementKind.INBOUND if delta > 0 else MovementKind.OUTBOUND
            try:
                with self._atomic():
                    stmt = (
                        update(Product)
                        .where(Product.id == product.id, Product.stock == previous)
                        .values(stock=target)
                        .execution_options(synchronize_session=False)
                    )
                    if self.db.execute(stmt).rowcount != 1:
                        raise _StaleStock()
                    movement = self._append(product, kind, abs(delta), ADJUSTMENT_PREFIX + reason,
                                            None, _optional_text(notes), True)
            except _StaleStock:
                logger.info("Stock of product %s moved during adjustment, retrying (%s)", product_id, attempt + 1)
                continue

            logger.info("Adjusted product %s from %s to %s", product_id, previous, target)
            return AdjustmentResult(product_id=product.id, product_name=product.name,
                                    previous_stock=previous, new_stock=target, delta=delta,
                                    kind=kind, movement=movement)

        raise Conflict("Stock changed while adjusting, please retry")

    # ---- reads ----

    def get_ledger(
        self,
        product_id: int,
        kind: Optional[Union[str, MovementKind]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> LedgerPage:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must not be after endDate")

        product = self._product(product_id, active_only=False, lock=False)
        query = owned(self.db, StockMovement, self.actor_id).filter(StockMovement.product_id == product.id)
        if kind:
            query = query.filter(StockMovement.kind == coerce_kind(kind))
        if start_date:
            query = query.filter(StockMovement.occurred_at >= datetime.combine(start_date, time.min))
        if end_date:
            # Whole end day included
            query = query.filter(StockMovement.occurred_at < datetime.combine(end_date + timedelta(days=1), time.min))

        inbound, outbound = query.with_entities(*_totals_columns()).one()
        total = query.count()
        items = (
            query.order_by(StockMovement.occurred_at.desc(), StockMovement.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return LedgerPage(items=items, total=total, page=page, limit=limit,
                          totals=LedgerTotals(inbound=int(inbound), outbound=int(outbound)))

    def ledger_balance(self, product_id: int) -> int:
        """Net stock recomputed from the product's full movement history."""
        product = self._product(product_id, active_only=False, lock=False)
        inbound, outbound = (
            self.db.query(*_totals_columns())
            .filter(StockMovement.product_id == product.id)
            .one()
        )
        return int(inbound) - int(outbound)

    def recent_movements(self, limit: int = RECENT_LIMIT) -> List[StockMovement]:
        return (
            owned(self.db, StockMovement, self.actor_id)
            .order_by(StockMovement.occurred_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )
