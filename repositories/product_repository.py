"""
Product Repository - Data access layer for the catalogue and stock history
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Product, StockHistory, Delivery, Shipment, ShipmentItem
from domain.enums import (
    ProductCategory,
    ProductStatus,
    DeliveryStatus,
    ShipmentStatus,
)

SORTABLE_FIELDS = {
    "name": Product.name,
    "category": Product.category,
    "price": Product.price,
    "stock": Product.stock,
    "created_at": Product.created_at,
}


class ProductRepository(BaseRepository[Product]):
    """Repository for product data access"""

    def __init__(self, db: Session):
        super().__init__(db, Product)

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()

    def get_by_ids(self, ids: List[int]) -> List[Product]:
        if not ids:
            return []
        return self.db.query(Product).filter(Product.id.in_(ids)).all()

    def search(
        self,
        page: int,
        limit: int,
        category: Optional[ProductCategory] = None,
        status: Optional[ProductStatus] = None,
        search: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Product], int]:
        """Filtered, sorted and paginated product list"""
        query = self.db.query(Product)
        if category:
            query = query.filter(Product.category == category)
        if status:
            query = query.filter(Product.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.sku.ilike(pattern),
                )
            )
        if min_price is not None:
            query = query.filter(Product.price >= min_price)
        if max_price is not None:
            query = query.filter(Product.price <= max_price)

        column = SORTABLE_FIELDS.get(sort_by, Product.created_at)
        if sort_order == "asc":
            query = query.order_by(column.asc(), Product.id.asc())
        else:
            query = query.order_by(column.desc(), Product.id.desc())
        return self.paginate(query, page, limit)

    def list_created_between(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Product]:
        query = self.db.query(Product)
        if start:
            query = query.filter(Product.created_at >= start)
        if end:
            query = query.filter(Product.created_at < end)
        return query.order_by(Product.id).all()

    def has_open_deliveries(self, product_id: int) -> bool:
        """True when a pending or in-transit delivery references the product"""
        return (
            self.db.query(Delivery.id)
            .filter(
                Delivery.product_id == product_id,
                Delivery.status.in_(
                    [DeliveryStatus.PENDING, DeliveryStatus.IN_TRANSIT]
                ),
            )
            .first()
            is not None
        )

    def has_preparing_shipments(self, product_id: int) -> bool:
        return (
            self.db.query(ShipmentItem.id)
            .join(Shipment, Shipment.id == ShipmentItem.shipment_id)
            .filter(
                ShipmentItem.product_id == product_id,
                Shipment.status == ShipmentStatus.PREPARING,
            )
            .first()
            is not None
        )


class StockHistoryRepository(BaseRepository[StockHistory]):
    """Repository for stock history rows"""

    def __init__(self, db: Session):
        super().__init__(db, StockHistory)

    def list_for_product(
        self, product_id: int, page: int, limit: int
    ) -> Tuple[List[StockHistory], int]:
        """Newest first"""
        query = (
            self.db.query(StockHistory)
            .filter(StockHistory.product_id == product_id)
            .order_by(StockHistory.id.desc())
        )
        return self.paginate(query, page, limit)

    def changes_since(self, since: datetime) -> List[StockHistory]:
        """All history rows created at or after ``since``"""
        return (
            self.db.query(StockHistory)
            .filter(StockHistory.created_at >= since)
            .order_by(StockHistory.id)
            .all()
        )
