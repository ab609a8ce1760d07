"""
Shipment Repository - Data access layer for shipping and receiving
"""

from typing import Optional, List, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from repositories.base import BaseRepository
from domain.models import Shipment
from domain.enums import ShipmentDirection, ShipmentStatus


class ShipmentRepository(BaseRepository[Shipment]):
    """Repository for shipments of either direction"""

    def __init__(self, db: Session):
        super().__init__(db, Shipment)

    def get_in_direction(
        self, direction: ShipmentDirection, shipment_id: int
    ) -> Optional[Shipment]:
        return (
            self.db.query(Shipment)
            .options(selectinload(Shipment.items))
            .filter(Shipment.id == shipment_id, Shipment.direction == direction)
            .first()
        )

    def get_by_order_number(
        self, direction: ShipmentDirection, order_number: str
    ) -> Optional[Shipment]:
        return (
            self.db.query(Shipment)
            .filter(
                Shipment.direction == direction,
                Shipment.order_number == order_number,
            )
            .first()
        )

    def search(
        self,
        direction: ShipmentDirection,
        page: int,
        limit: int,
        status: Optional[ShipmentStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Shipment], int]:
        query = (
            self.db.query(Shipment)
            .options(selectinload(Shipment.items))
            .filter(Shipment.direction == direction)
        )
        if status:
            query = query.filter(Shipment.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Shipment.order_number.ilike(pattern),
                    Shipment.partner_name.ilike(pattern),
                )
            )
        return self.paginate(query.order_by(Shipment.id.desc()), page, limit)
