"""
Shipping (outbound) and receiving (inbound) models.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from domain.models.database import Base
from domain.enums import ShipmentDirection, ShipmentStatus


class Shipment(Base):
    """Goods leaving (shipping) or arriving at (receiving) a warehouse"""

    __tablename__ = "shipment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    direction = Column(SQLEnum(ShipmentDirection), nullable=False, index=True)
    order_number = Column(String(50), nullable=False)
    partner_name = Column(String(100), nullable=False)
    address = Column(String(255))
    location = Column(String(100))
    status = Column(
        SQLEnum(ShipmentStatus), nullable=False, default=ShipmentStatus.PREPARING
    )
    scheduled_date = Column(DateTime)
    completed_date = Column(DateTime)
    note = Column(Text)
    created_by = Column(Integer, ForeignKey("app_user.id", ondelete="SET NULL"))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "ShipmentItem",
        back_populates="shipment",
        cascade="all, delete-orphan",
        order_by="ShipmentItem.id",
    )

    __table_args__ = (
        UniqueConstraint("direction", "order_number", name="uq_shipment_order_number"),
    )


class ShipmentItem(Base):
    """Line of a shipment"""

    __tablename__ = "shipment_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    shipment_id = Column(
        Integer,
        ForeignKey("shipment.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(Integer, ForeignKey("product.id", ondelete="SET NULL"))
    quantity = Column(Integer, nullable=False)
    unit = Column(String(10), nullable=False, default="kg")

    shipment = relationship("Shipment", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_shipment_item_quantity_positive"),
    )
