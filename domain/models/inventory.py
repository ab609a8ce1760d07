"""
Per-location inventory and movement models.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from domain.models.database import Base
from domain.enums import InventoryStatus, MovementType


class Inventory(Base):
    """Quantity of a product held at one location"""

    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer,
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    status = Column(
        SQLEnum(InventoryStatus), nullable=False, default=InventoryStatus.AVAILABLE
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="inventories")

    __table_args__ = (
        UniqueConstraint("product_id", "location", name="uq_inventory_product_location"),
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_nonneg"),
    )


class InventoryMovement(Base):
    """Stock moved between locations"""

    __tablename__ = "inventory_movement"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer,
        ForeignKey("product.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_location = Column(String(100), nullable=False)
    to_location = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    movement_type = Column(SQLEnum(MovementType), nullable=False)
    movement_date = Column(DateTime, nullable=False)
    reference_number = Column(String(100))
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_movement_quantity_positive"),
    )
