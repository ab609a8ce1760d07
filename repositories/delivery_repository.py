"""
Delivery Repository - Data access layer for deliveries, tracking and conditions
"""

from datetime import datetime
from typing import Optional, List, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from repositories.base import BaseRepository
from domain.models import Delivery, DeliveryTracking, DeliveryCondition
from domain.enums import DeliveryStatus


class DeliveryRepository(BaseRepository[Delivery]):
    """Repository for delivery data access"""

    def __init__(self, db: Session):
        super().__init__(db, Delivery)

    def search(
        self,
        page: int,
        limit: int,
        status: Optional[DeliveryStatus] = None,
        search: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Tuple[List[Delivery], int]:
        """Filtered list, newest first; ``end`` is exclusive"""
        query = self.db.query(Delivery)
        if status:
            query = query.filter(Delivery.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Delivery.customer_name.ilike(pattern),
                    Delivery.customer_address.ilike(pattern),
                    Delivery.customer_phone.ilike(pattern),
                )
            )
        if start:
            query = query.filter(Delivery.created_at >= start)
        if end:
            query = query.filter(Delivery.created_at < end)
        return self.paginate(query.order_by(Delivery.id.desc()), page, limit)

    def list_created_between(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Delivery]:
        query = self.db.query(Delivery).options(joinedload(Delivery.product))
        if start:
            query = query.filter(Delivery.created_at >= start)
        if end:
            query = query.filter(Delivery.created_at < end)
        return query.order_by(Delivery.id).all()

    def list_by_status(
        self, status: DeliveryStatus, due_before: Optional[datetime] = None
    ) -> List[Delivery]:
        """Deliveries in ``status``, optionally only those due on/before a date"""
        query = self.db.query(Delivery).filter(Delivery.status == status)
        if due_before:
            query = query.filter(Delivery.estimated_delivery_date <= due_before)
        return query.order_by(Delivery.id).all()

    def delivered_between(self, start: datetime, end: datetime) -> List[Delivery]:
        """Delivered deliveries whose actual date lies in [start, end)"""
        return (
            self.db.query(Delivery)
            .options(joinedload(Delivery.product))
            .filter(
                Delivery.status == DeliveryStatus.DELIVERED,
                Delivery.actual_delivery_date >= start,
                Delivery.actual_delivery_date < end,
            )
            .order_by(Delivery.actual_delivery_date)
            .all()
        )


class TrackingRepository(BaseRepository[DeliveryTracking]):
    def __init__(self, db: Session):
        super().__init__(db, DeliveryTracking)

    def list_for_delivery(self, delivery_id: int) -> List[DeliveryTracking]:
        """Oldest first"""
        return (
            self.db.query(DeliveryTracking)
            .filter(DeliveryTracking.delivery_id == delivery_id)
            .order_by(DeliveryTracking.id)
            .all()
        )


class ConditionRepository(BaseRepository[DeliveryCondition]):
    def __init__(self, db: Session):
        super().__init__(db, DeliveryCondition)

    def get_by_delivery_id(self, delivery_id: int) -> Optional[DeliveryCondition]:
        return self.db.get(DeliveryCondition, delivery_id)

    def upsert(self, delivery_id: int, **limits) -> DeliveryCondition:
        condition = self.get_by_delivery_id(delivery_id)
        if condition:
            for key, value in limits.items():
                setattr(condition, key, value)
        else:
            condition = DeliveryCondition(delivery_id=delivery_id, **limits)
            self.db.add(condition)
        self.db.flush()
        return condition
