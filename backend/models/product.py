# backend/models/product.py
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Numeric, DateTime,
    ForeignKey, CheckConstraint, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from database import Base

# Model Product
# A catalog entry owned by one user. `stock` is a materialized cache of the
# product's movement ledger and is written only by services.ledger.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    code = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Stock data, both guarded by constraints.
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0, index=True)
    min_stock = Column(Integer, CheckConstraint("min_stock >= 0"), nullable=False, default=5)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False, default=0)
    image_url = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    owner = relationship("User", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")
    brand = relationship("Brand", back_populates="products")
    movements = relationship("StockMovement", back_populates="product")

    __table_args__ = (
        # Product codes are unique within one owner's catalog
        UniqueConstraint("owner_id", "code", name="uq_product_owner_code"),
    )
