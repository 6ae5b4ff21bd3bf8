# backend/services/ownership.py
"""Owner scoping.

Every catalog and ledger read goes through :func:`owned` so a user can only ever
see or touch rows they created. An id owned by someone else behaves exactly like
an id that does not exist.
"""
from sqlalchemy.orm import Session, Query

from models.stock import StockMovement


def owned(db: Session, model, owner_id: int) -> Query:
    """Query ``model`` restricted to rows belonging to ``owner_id``."""
    if model is StockMovement:
        return db.query(StockMovement).filter(StockMovement.user_id == owner_id)
    return db.query(model).filter(model.owner_id == owner_id)


def get_owned(db: Session, model, owner_id: int, entity_id: int, *, for_update: bool = False):
    query = owned(db, model, owner_id).filter(model.id == entity_id)
    if for_update:
        # Row lock on stores that support it (SQLite ignores FOR UPDATE); always re-read the row
        query = query.with_for_update().populate_existing()
    return query.first()
