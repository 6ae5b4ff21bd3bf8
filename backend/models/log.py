# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of authentication, catalog and ledger events
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(50), index=True)     # e.g. LOGIN, STOCK_MOVEMENT
    resource = Column(String(50), index=True)   # e.g. auth, products, stock
    status = Column(String(20), index=True)     # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)

    # Free-form event context (ids, quantities, reasons)
    meta = Column(JSON, nullable=True)

    user = relationship("User", uselist=False)
