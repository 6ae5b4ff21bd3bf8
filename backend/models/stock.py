# backend/models/stock.py
import enum
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Enum,
    ForeignKey, CheckConstraint, func,
)
from sqlalchemy.orm import relationship
from database import Base

# Direction of a ledger entry
class MovementKind(str, enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"

# Spanish movement types accepted from older clients
LEGACY_KINDS = {"entrada": MovementKind.INBOUND, "salida": MovementKind.OUTBOUND}

# Append-only ledger entry; created only by services.ledger, never updated or deleted
class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    kind = Column(Enum(MovementKind, values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)
    # Always positive; the sign comes from `kind`
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)

    reason = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    is_adjustment = Column(Boolean, nullable=False, default=False)

    occurred_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)

    product = relationship("Product", back_populates="movements")
    user = relationship("User")

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.kind == MovementKind.INBOUND else -self.quantity
