"""
Product catalogue and stock history models.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Numeric,
    CheckConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from domain.models.database import Base
from domain.enums import ProductCategory, ProductStatus, StockChangeType


class Product(Base):
    """Tea product with its aggregate on-hand stock"""

    __tablename__ = "product"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    sku = Column(String(50), unique=True, nullable=False, index=True)
    category = Column(SQLEnum(ProductCategory), nullable=False)
    unit = Column(String(10), nullable=False, default="kg")
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    status = Column(
        SQLEnum(ProductStatus), nullable=False, default=ProductStatus.ACTIVE
    )
    image_url = Column(String(255))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    stock_history = relationship(
        "StockHistory",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    inventories = relationship(
        "Inventory",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock_nonneg"),
        CheckConstraint("price > 0", name="ck_product_price_positive"),
    )


class StockHistory(Base):
    """One change of a product's aggregate stock"""

    __tablename__ = "stock_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer,
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    change_amount = Column(Integer, nullable=False)
    type = Column(SQLEnum(StockChangeType), nullable=False)
    reason = Column(String(255))
    created_by = Column(String(50), nullable=False, default="system")
    created_at = Column(DateTime, server_default=func.now(), index=True)

    product = relationship("Product", back_populates="stock_history")
