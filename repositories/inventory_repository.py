"""
Inventory Repository - Data access layer for per-location stock and movements
"""

from datetime import datetime
from typing import Optional, List, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Inventory, InventoryMovement
from domain.enums import InventoryStatus


class InventoryRepository(BaseRepository[Inventory]):
    """Repository for inventory records"""

    def __init__(self, db: Session):
        super().__init__(db, Inventory)

    def get_by_product_location(
        self, product_id: int, location: str, lock: bool = False
    ) -> Optional[Inventory]:
        query = self.db.query(Inventory).filter(
            Inventory.product_id == product_id, Inventory.location == location
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    def search(
        self,
        page: int,
        limit: int,
        product_id: Optional[int] = None,
        location: Optional[str] = None,
        status: Optional[InventoryStatus] = None,
    ) -> Tuple[List[Inventory], int]:
        query = self.db.query(Inventory)
        if product_id:
            query = query.filter(Inventory.product_id == product_id)
        if location:
            query = query.filter(Inventory.location == location)
        if status:
            query = query.filter(Inventory.status == status)
        return self.paginate(query.order_by(Inventory.id), page, limit)

    def has_records(self, product_id: int) -> bool:
        """True when the product is stocked by location"""
        return (
            self.db.query(Inventory.id)
            .filter(Inventory.product_id == product_id)
            .first()
            is not None
        )

    def list_all(self) -> List[Inventory]:
        return self.db.query(Inventory).order_by(Inventory.id).all()

    def list_created_between(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Inventory]:
        query = self.db.query(Inventory)
        if start:
            query = query.filter(Inventory.created_at >= start)
        if end:
            query = query.filter(Inventory.created_at < end)
        return query.order_by(Inventory.id).all()

    def totals_by_product(self) -> dict:
        """Map product_id -> sum of location quantities"""
        rows = (
            self.db.query(Inventory.product_id, func.sum(Inventory.quantity))
            .group_by(Inventory.product_id)
            .all()
        )
        return {product_id: int(total or 0) for product_id, total in rows}


class MovementRepository(BaseRepository[InventoryMovement]):
    """Repository for inventory movements"""

    def __init__(self, db: Session):
        super().__init__(db, InventoryMovement)

    def list_movements(
        self, page: int, limit: int, product_id: Optional[int] = None
    ) -> Tuple[List[InventoryMovement], int]:
        """Newest first"""
        query = self.db.query(InventoryMovement)
        if product_id:
            query = query.filter(InventoryMovement.product_id == product_id)
        query = query.order_by(
            InventoryMovement.movement_date.desc(), InventoryMovement.id.desc()
        )
        return self.paginate(query, page, limit)
