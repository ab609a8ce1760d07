"""
Delivery, tracking and transport-condition models.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Float,
    DateTime,
    ForeignKey,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from domain.models.database import Base
from domain.enums import DeliveryStatus


class Delivery(Base):
    """Customer delivery order"""

    __tablename__ = "delivery"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, nullable=False, index=True)
    customer_name = Column(String(100), nullable=False)
    customer_address = Column(String(255), nullable=False)
    customer_phone = Column(String(30), nullable=False)
    product_id = Column(
        Integer, ForeignKey("product.id", ondelete="SET NULL"), index=True
    )
    quantity = Column(Integer, nullable=False, default=0)
    from_location = Column(String(100))
    status = Column(
        SQLEnum(DeliveryStatus), nullable=False, default=DeliveryStatus.PENDING
    )
    estimated_delivery_date = Column(DateTime)
    actual_delivery_date = Column(DateTime)
    note = Column(Text)
    created_by = Column(Integer, ForeignKey("app_user.id", ondelete="SET NULL"))
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    product = relationship("Product")
    trackings = relationship(
        "DeliveryTracking",
        back_populates="delivery",
        cascade="all, delete-orphan",
        order_by="DeliveryTracking.id",
    )
    condition = relationship(
        "DeliveryCondition",
        back_populates="delivery",
        uselist=False,
        cascade="all, delete-orphan",
    )


class DeliveryTracking(Base):
    """Position / state report for a delivery in transit"""

    __tablename__ = "delivery_tracking"

    id = Column(Integer, primary_key=True, autoincrement=True)
    delivery_id = Column(
        Integer,
        ForeignKey("delivery.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location = Column(String(255), nullable=False)
    status = Column(String(50), nullable=False)
    notes = Column(Text)
    temperature = Column(Float)
    humidity = Column(Float)
    alert = Column(Boolean, nullable=False, default=False)
    alert_message = Column(String(255))
    created_at = Column(DateTime, server_default=func.now())

    delivery = relationship("Delivery", back_populates="trackings")


class DeliveryCondition(Base):
    """Temperature / humidity limits a delivery must stay within"""

    __tablename__ = "delivery_condition"

    delivery_id = Column(
        Integer,
        ForeignKey("delivery.id", ondelete="CASCADE"),
        primary_key=True,
    )
    min_temperature = Column(Float, nullable=False)
    max_temperature = Column(Float, nullable=False)
    min_humidity = Column(Float, nullable=False)
    max_humidity = Column(Float, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    delivery = relationship("Delivery", back_populates="condition")
