from datetime import date, datetime, timedelta

import pytest

from models.product import Product
from models.stock import MovementKind, StockMovement
from services.ledger import StockLedger
from utils.errors import InsufficientStock, NotFound, ValidationError


@pytest.fixture
def ledger(db, user):
    return StockLedger(db, user.id)


@pytest.fixture
def product(catalog):
    return catalog.create_product({"code": "sku1", "name": "Widget", "stock": 10, "min_stock": 5})


def _stock(db, product_id):
    return db.query(Product.stock).filter(Product.id == product_id).scalar()


def test_opening_stock_is_a_ledger_entry(db, ledger, product):
    assert product.code == "SKU1"
    assert product.stock == 10
    movements = db.query(StockMovement).filter_by(product_id=product.id).all()
    assert len(movements) == 1
    assert movements[0].kind == MovementKind.INBOUND
    assert movements[0].quantity == 10
    assert movements[0].is_adjustment is True
    assert ledger.ledger_balance(product.id) == 10


def test_outbound_then_inbound_scenario(db, ledger, product):
    result = ledger.record_movement(product.id, "outbound", 4, "Sale")
    assert result.previous_stock == 10
    assert result.new_stock == 6
    assert _stock(db, product.id) == 6
    # 6 > min_stock 5: not low, 26 even less so
    result = ledger.record_movement(product.id, MovementKind.INBOUND, 20, "Delivery", reference="PO-7")
    assert result.new_stock == 26
    assert result.movement.reference == "PO-7"
    assert ledger.ledger_balance(product.id) == _stock(db, product.id) == 26


def test_outbound_exceeding_stock_is_rejected_entirely(db, ledger, product):
    with pytest.raises(InsufficientStock) as exc:
        ledger.record_movement(product.id, "outbound", 11, "Sale")
    assert exc.value.available == 10
    assert exc.value.requested == 11
    assert _stock(db, product.id) == 10
    assert db.query(StockMovement).filter_by(product_id=product.id).count() == 1


def test_outbound_of_exact_stock_reaches_zero(db, ledger, product):
    assert ledger.record_movement(product.id, "outbound", 10, "Clearance").new_stock == 0
    with pytest.raises(InsufficientStock):
        ledger.record_movement(product.id, "outbound", 1, "Sale")
    assert _stock(db, product.id) == 0


@pytest.mark.parametrize("kind,quantity,reason", [
    ("sideways", 1, "x"),
    ("inbound", 0, "x"),
    ("inbound", -3, "x"),
    ("inbound", 1.5, "x"),
    ("inbound", 1, "   "),
])
def test_invalid_movements(ledger, product, kind, quantity, reason):
    with pytest.raises(ValidationError):
        ledger.record_movement(product.id, kind, quantity, reason)


def test_legacy_kind_names(ledger, product):
    assert ledger.record_movement(product.id, "salida", 2, "Sale").movement.kind == MovementKind.OUTBOUND
    assert ledger.record_movement(product.id, "Entrada", 2, "Return").movement.kind == MovementKind.INBOUND


def test_movement_on_foreign_or_missing_product(db, product):
    from services import auth as auth_service
    other = auth_service.register(db, "mallory", "mallory@example.com", "secret123").user
    with pytest.raises(NotFound):
        StockLedger(db, other.id).record_movement(product.id, "inbound", 1, "Nope")
    with pytest.raises(NotFound):
        StockLedger(db, other.id).record_movement(9999, "inbound", 1, "Nope")


def test_adjust_down_creates_one_outbound_adjustment(db, ledger, product):
    result = ledger.adjust_stock_to(product.id, 3, "correction")
    assert result.previous_stock == 10
    assert result.new_stock == 3
    assert result.delta == -7
    assert result.kind == MovementKind.OUTBOUND
    movement = result.movement
    assert movement.quantity == 7
    assert movement.is_adjustment is True
    assert movement.reason == "Inventory adjustment: correction"
    assert _stock(db, product.id) == 3
    assert ledger.ledger_balance(product.id) == 3


def test_adjust_up_and_clamp_negative_target(db, ledger, product):
    up = ledger.adjust_stock_to(product.id, 15, "found more")
    assert up.kind == MovementKind.INBOUND and up.delta == 5
    clamped = ledger.adjust_stock_to(product.id, -4, "write-off")
    assert clamped.new_stock == 0
    assert clamped.delta == -15
    assert _stock(db, product.id) == 0


def test_adjust_to_current_stock_is_a_no_op(db, ledger, product):
    before = db.query(StockMovement).count()
    result = ledger.adjust_stock_to(product.id, 10, "recount")
    assert result.delta == 0
    assert result.changed is False
    assert result.kind is None and result.movement is None
    assert db.query(StockMovement).count() == before


def test_ledger_page_order_filters_and_totals(db, ledger, product):
    ledger.record_movement(product.id, "outbound", 4, "Sale")
    ledger.record_movement(product.id, "inbound", 20, "Delivery")
    ledger.record_movement(product.id, "outbound", 1, "Sale")

    page = ledger.get_ledger(product.id, page=1, limit=2)
    assert page.total == 4
    assert [m.quantity for m in page.items] == [1, 20]
    assert page.totals.inbound == 30
    assert page.totals.outbound == 5
    assert page.totals.balance == 25 == _stock(db, product.id)

    second = ledger.get_ledger(product.id, page=2, limit=2)
    assert [m.quantity for m in second.items] == [4, 10]

    outs = ledger.get_ledger(product.id, kind="outbound")
    assert outs.total == 2
    assert outs.totals.inbound == 0
    assert outs.totals.balance == -5


def test_ledger_date_range(db, ledger, product):
    today = date.today()
    old = ledger.record_movement(product.id, "outbound", 2, "Old sale").movement
    old.occurred_at = datetime.combine(today - timedelta(days=10), datetime.min.time())
    db.commit()

    recent = ledger.get_ledger(product.id, start_date=today - timedelta(days=1), end_date=today + timedelta(days=1))
    assert recent.total == 1
    assert recent.items[0].reason == "Opening stock"

    past = ledger.get_ledger(product.id, end_date=today - timedelta(days=10))
    assert past.total == 1
    assert past.totals.outbound == 2

    with pytest.raises(ValidationError):
        ledger.get_ledger(product.id, start_date=today, end_date=today - timedelta(days=1))


def test_stock_always_matches_ledger(db, ledger, product):
    steps = [("outbound", 3), ("inbound", 7), ("outbound", 14), ("inbound", 1), ("outbound", 1)]
    for kind, qty in steps:
        ledger.record_movement(product.id, kind, qty, "step")
        assert ledger.ledger_balance(product.id) == _stock(db, product.id)
    for target in (4, 4, 9, 0):
        ledger.adjust_stock_to(product.id, target, "recount")
        assert ledger.ledger_balance(product.id) == _stock(db, product.id) == target
