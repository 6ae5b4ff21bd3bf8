import pytest
from sqlalchemy import event

from models.product import Product
from models.stock import StockMovement
from services.ledger import StockLedger


@pytest.fixture
def product(catalog):
    return catalog.create_product({"code": "SKU1", "name": "Widget", "stock": 10})


def _state(session_factory, product_id):
    fresh = session_factory()
    try:
        stock = fresh.query(Product.stock).filter(Product.id == product_id).scalar()
        count = fresh.query(StockMovement).filter(StockMovement.product_id == product_id).count()
        return stock, count
    finally:
        fresh.close()


def test_failed_movement_insert_leaves_stock_untouched(db, user, product, session_factory):
    def boom(mapper, connection, target):
        raise RuntimeError("insert failed")

    event.listen(StockMovement, "before_insert", boom)
    try:
        with pytest.raises(RuntimeError):
            StockLedger(db, user.id).record_movement(product.id, "outbound", 4, "Sale")
    finally:
        event.remove(StockMovement, "before_insert", boom)

    assert _state(session_factory, product.id) == (10, 1)


def test_failed_stock_update_writes_no_movement(db, user, product, session_factory, engine):
    def boom(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("UPDATE products"):
            raise RuntimeError("update failed")

    event.listen(engine, "before_cursor_execute", boom)
    try:
        with pytest.raises(RuntimeError):
            StockLedger(db, user.id).record_movement(product.id, "inbound", 5, "Delivery")
        with pytest.raises(RuntimeError):
            StockLedger(db, user.id).adjust_stock_to(product.id, 2, "recount")
    finally:
        event.remove(engine, "before_cursor_execute", boom)

    assert _state(session_factory, product.id) == (10, 1)


def test_failed_commit_rolls_back_both_writes(db, user, product, session_factory, engine):
    def boom(conn):
        raise RuntimeError("commit failed")

    event.listen(engine, "commit", boom)
    try:
        with pytest.raises(RuntimeError):
            StockLedger(db, user.id).record_movement(product.id, "outbound", 3, "Sale")
    finally:
        event.remove(engine, "commit", boom)

    assert _state(session_factory, product.id) == (10, 1)
    # The session is usable again afterwards
    result = StockLedger(db, user.id).record_movement(product.id, "outbound", 3, "Sale")
    assert result.new_stock == 7
    assert _state(session_factory, product.id) == (7, 2)


def test_failed_opening_stock_discards_product(db, user, catalog, session_factory):
    def boom(mapper, connection, target):
        raise RuntimeError("insert failed")

    event.listen(StockMovement, "before_insert", boom)
    try:
        with pytest.raises(RuntimeError):
            catalog.create_product({"code": "SKU2", "name": "Gadget", "stock": 5})
    finally:
        event.remove(StockMovement, "before_insert", boom)

    fresh = session_factory()
    try:
        assert fresh.query(Product).filter(Product.code == "SKU2").count() == 0
    finally:
        fresh.close()
