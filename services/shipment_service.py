from typing import Optional, List, Tuple, Dict
from datetime import datetime
from sqlalchemy.orm import Session
import logging

from domain.models import Shipment, ShipmentItem, Product
from domain.enums import ShipmentDirection, ShipmentStatus, StockChangeType
from domain.schemas.shipment_schemas import ShipmentCreate
from repositories import ShipmentRepository, ProductRepository
from services.stock_service import StockService
from services.inventory_service import InventoryService
from app.exceptions import (
    NotFoundError,
    ConflictError,
    ServiceValidationError,
    InsufficientStockError,
)

logger = logging.getLogger("tealogistics.shipments")

LABELS = {
    ShipmentDirection.OUTBOUND: "Shipment",
    ShipmentDirection.INBOUND: "Receipt",
}


class ShipmentService:
    @staticmethod
    def list_shipments(
        db: Session,
        direction: ShipmentDirection,
        page: int,
        limit: int,
        status: Optional[ShipmentStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Shipment], int]:
        return ShipmentRepository(db).search(
            direction, page, limit, status, search.strip() if search else None
        )

    @staticmethod
    def get_shipment(
        db: Session, direction: ShipmentDirection, shipment_id: int
    ) -> Shipment:
        shipment = ShipmentRepository(db).get_in_direction(direction, shipment_id)
        if not shipment:
            raise NotFoundError(f"{LABELS[direction]} {shipment_id} not found")
        return shipment

    @staticmethod
    def create_shipment(
        db: Session, direction: ShipmentDirection, payload: ShipmentCreate, actor=None
    ) -> Shipment:
        shipment_repo = ShipmentRepository(db)
        if shipment_repo.get_by_order_number(direction, payload.order_number):
            raise ConflictError(
                f"{LABELS[direction]} with order number {payload.order_number} already exists"
            )

        product_ids = {item.product_id for item in payload.items}
        found = {p.id for p in ProductRepository(db).get_by_ids(list(product_ids))}
        missing = sorted(product_ids - found)
        if missing:
            raise NotFoundError(
                "Unknown products in items", details={"product_ids": missing}
            )

        shipment = Shipment(
            direction=direction,
            status=ShipmentStatus.PREPARING,
            created_by=actor.id if actor else None,
            **payload.model_dump(exclude={"items"}),
        )
        shipment.items = [ShipmentItem(**item.model_dump()) for item in payload.items]
        shipment_repo.add(shipment)
        db.commit()
        db.refresh(shipment)
        logger.info(
            "Created %s %s (%s)",
            direction.value,
            shipment.id,
            shipment.order_number,
        )
        return shipment

    @staticmethod
    def _require_preparing(shipment: Shipment) -> None:
        if shipment.status != ShipmentStatus.PREPARING:
            raise ServiceValidationError(
                f"{LABELS[shipment.direction]} {shipment.id} is {shipment.status.value}"
            )

    @staticmethod
    def _lock_products(db: Session, shipment: Shipment) -> Dict[int, Product]:
        product_repo = ProductRepository(db)
        products = {}
        for item in shipment.items:
            if item.product_id is None:
                raise ServiceValidationError(
                    f"Item {item.id} refers to a product that no longer exists"
                )
            if item.product_id not in products:
                product = product_repo.get_for_update(item.product_id)
                if not product:
                    raise NotFoundError(f"Product {item.product_id} not found")
                products[item.product_id] = product
        return products

    @staticmethod
    def complete_shipment(
        db: Session, direction: ShipmentDirection, shipment_id: int, actor=None
    ) -> Shipment:
        """
        Complete a shipping or receiving record.

        Shipping takes every item out of stock, receiving puts every item in.
        For shipping, all items are checked first so that either every item
        ships or none does.
        """
        shipment = ShipmentService.get_shipment(db, direction, shipment_id)
        ShipmentService._require_preparing(shipment)

        try:
            products = ShipmentService._lock_products(db, shipment)
            if direction == ShipmentDirection.OUTBOUND:
                needed: Dict[int, int] = {}
                for item in shipment.items:
                    needed[item.product_id] = needed.get(item.product_id, 0) + item.quantity
                short = [
                    {
                        "product_id": pid,
                        "requested": qty,
                        "available": products[pid].stock,
                    }
                    for pid, qty in needed.items()
                    if products[pid].stock < qty
                ]
                if short:
                    raise InsufficientStockError(
                        f"Insufficient stock to ship {shipment.order_number}",
                        details={"items": short},
                    )
                change_type = StockChangeType.OUT
                reason = f"shipment {shipment.order_number}"
            else:
                change_type = StockChangeType.IN
                reason = f"receipt {shipment.order_number}"

            for item in shipment.items:
                StockService.adjust_stock(
                    db,
                    products[item.product_id],
                    change_type,
                    item.quantity,
                    reason,
                    actor,
                )
                if change_type == StockChangeType.OUT:
                    InventoryService.take_from_location(
                        db, item.product_id, shipment.location, item.quantity
                    )
                else:
                    InventoryService.put_to_location(
                        db, item.product_id, shipment.location, item.quantity
                    )
            shipment.status = ShipmentStatus.COMPLETED
            shipment.completed_date = datetime.utcnow()
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(shipment)
        logger.info("Completed %s %s", direction.value, shipment.id)
        return shipment

    @staticmethod
    def cancel_shipment(
        db: Session, direction: ShipmentDirection, shipment_id: int
    ) -> Shipment:
        shipment = ShipmentService.get_shipment(db, direction, shipment_id)
        ShipmentService._require_preparing(shipment)
        shipment.status = ShipmentStatus.CANCELLED
        db.commit()
        db.refresh(shipment)
        logger.info("Cancelled %s %s", direction.value, shipment.id)
        return shipment
