from typing import Optional, List, Tuple, Dict, Any
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging

from domain.models import Inventory, InventoryMovement, Product
from domain.enums import InventoryStatus, StockChangeType
from domain.schemas.inventory_schemas import (
    InventoryCreate,
    InventoryUpdate,
    TransferRequest,
)
from repositories import InventoryRepository, MovementRepository, ProductRepository
from services.stock_service import StockService
from app.exceptions import (
    NotFoundError,
    ConflictError,
    ServiceValidationError,
    InsufficientStockError,
)

logger = logging.getLogger("tealogistics.inventory")

# Statuses a user may pin regardless of quantity
MANUAL_STATUSES = (InventoryStatus.RESERVED, InventoryStatus.DISCONTINUED)


def derive_status(
    quantity: int, requested: Optional[InventoryStatus], current: Optional[InventoryStatus]
) -> InventoryStatus:
    """Status implied by a quantity, keeping reserved/discontinued when asked for"""
    status = requested or current
    if status in MANUAL_STATUSES:
        return status
    if quantity == 0:
        return InventoryStatus.OUT_OF_STOCK
    return InventoryStatus.AVAILABLE


class InventoryService:
    @staticmethod
    def list_inventory(
        db: Session,
        page: int,
        limit: int,
        product_id: Optional[int] = None,
        location: Optional[str] = None,
        status: Optional[InventoryStatus] = None,
    ) -> Tuple[List[Inventory], int]:
        return InventoryRepository(db).search(page, limit, product_id, location, status)

    @staticmethod
    def get_inventory(db: Session, inventory_id: int) -> Inventory:
        inventory = InventoryRepository(db).get_by_id(inventory_id)
        if not inventory:
            raise NotFoundError(f"Inventory {inventory_id} not found")
        return inventory

    @staticmethod
    def _get_product_locked(db: Session, product_id: int) -> Product:
        product = ProductRepository(db).get_for_update(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    @staticmethod
    def _mirror_delta(
        db: Session, product: Product, delta: int, reason: str, actor
    ) -> None:
        """Apply a location quantity change to the product's aggregate stock"""
        if delta > 0:
            StockService.adjust_stock(
                db, product, StockChangeType.IN, delta, reason, actor
            )
        elif delta < 0:
            # Clamp at zero: the aggregate may already be lower than the sum
            removable = min(-delta, product.stock or 0)
            if removable > 0:
                StockService.adjust_stock(
                    db, product, StockChangeType.OUT, removable, reason, actor
                )

    @staticmethod
    def take_from_location(
        db: Session, product_id: int, location: Optional[str], quantity: int
    ) -> Optional[Inventory]:
        """
        Remove goods leaving a location of a location-stocked product.

        Products without any location record are stocked in aggregate only
        and are left alone. Does not commit and does not touch product.stock;
        callers pair it with ``StockService.adjust_stock``.

        Raises:
            ServiceValidationError: no location given for a location-stocked product
            NotFoundError: the product has no record at ``location``
            InsufficientStockError: the location holds less than ``quantity``
        """
        inventory_repo = InventoryRepository(db)
        if not inventory_repo.has_records(product_id):
            return None
        if not location:
            raise ServiceValidationError(
                f"Product {product_id} is stocked by location; a source location is required",
                details={"product_id": product_id},
            )
        inventory = inventory_repo.get_by_product_location(
            product_id, location, lock=True
        )
        if inventory is None:
            raise NotFoundError(f"No inventory for product {product_id} at {location}")
        if inventory.quantity < quantity:
            raise InsufficientStockError(
                f"Only {inventory.quantity} available at {location}",
                details={
                    "product_id": product_id,
                    "location": location,
                    "requested": quantity,
                    "available": inventory.quantity,
                },
            )
        inventory.quantity -= quantity
        inventory.status = derive_status(inventory.quantity, None, inventory.status)
        return inventory

    @staticmethod
    def put_to_location(
        db: Session, product_id: int, location: Optional[str], quantity: int
    ) -> Optional[Inventory]:
        """
        Add goods arriving at a location of a location-stocked product,
        creating the record when the product has none there. Does not commit.

        Raises:
            ServiceValidationError: no location given for a location-stocked product
        """
        inventory_repo = InventoryRepository(db)
        if not inventory_repo.has_records(product_id):
            return None
        if not location:
            raise ServiceValidationError(
                f"Product {product_id} is stocked by location; a destination location is required",
                details={"product_id": product_id},
            )
        inventory = inventory_repo.get_by_product_location(
            product_id, location, lock=True
        )
        if inventory is None:
            inventory = inventory_repo.add(
                Inventory(
                    product_id=product_id,
                    location=location,
                    quantity=0,
                    status=InventoryStatus.OUT_OF_STOCK,
                )
            )
        inventory.quantity += quantity
        inventory.status = derive_status(inventory.quantity, None, inventory.status)
        return inventory

    @staticmethod
    def create_inventory(db: Session, payload: InventoryCreate, actor=None) -> Inventory:
        """
        Create a location record and add its quantity to the product stock.

        Raises:
            NotFoundError: unknown product
            ConflictError: the product already has a record at this location
        """
        inventory_repo = InventoryRepository(db)
        product = InventoryService._get_product_locked(db, payload.product_id)
        if inventory_repo.get_by_product_location(product.id, payload.location):
            raise ConflictError(
                f"Inventory for product {product.id} at {payload.location} already exists"
            )

        inventory = Inventory(
            product_id=product.id,
            location=payload.location,
            quantity=payload.quantity,
            status=derive_status(payload.quantity, payload.status, None),
        )
        try:
            inventory_repo.add(inventory)
            InventoryService._mirror_delta(
                db,
                product,
                payload.quantity,
                f"inventory {payload.location}",
                actor,
            )
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(
                f"Inventory for product {product.id} at {payload.location} already exists"
            )
        except Exception:
            db.rollback()
            raise
        db.refresh(inventory)
        logger.info(
            "Created inventory %s: product %s at %s",
            inventory.id,
            product.id,
            inventory.location,
        )
        return inventory

    @staticmethod
    def update_inventory(
        db: Session, inventory_id: int, payload: InventoryUpdate, actor=None
    ) -> Inventory:
        inventory_repo = InventoryRepository(db)
        inventory = inventory_repo.get_for_update(inventory_id)
        if not inventory:
            raise NotFoundError(f"Inventory {inventory_id} not found")

        data = payload.model_dump(exclude_unset=True, exclude_none=True)
        new_location = data.get("location")
        if new_location and new_location != inventory.location:
            if inventory_repo.get_by_product_location(inventory.product_id, new_location):
                raise ConflictError(
                    f"Inventory for product {inventory.product_id} at {new_location} already exists"
                )
            inventory.location = new_location

        try:
            if "quantity" in data:
                delta = data["quantity"] - inventory.quantity
                if delta:
                    product = InventoryService._get_product_locked(
                        db, inventory.product_id
                    )
                    InventoryService._mirror_delta(
                        db, product, delta, f"inventory {inventory.location}", actor
                    )
                inventory.quantity = data["quantity"]
            inventory.status = derive_status(
                inventory.quantity, data.get("status"), inventory.status
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(inventory)
        return inventory

    @staticmethod
    def delete_inventory(db: Session, inventory_id: int, actor=None) -> None:
        inventory_repo = InventoryRepository(db)
        inventory = inventory_repo.get_for_update(inventory_id)
        if not inventory:
            raise NotFoundError(f"Inventory {inventory_id} not found")
        try:
            if inventory.quantity:
                product = InventoryService._get_product_locked(db, inventory.product_id)
                InventoryService._mirror_delta(
                    db,
                    product,
                    -inventory.quantity,
                    f"inventory {inventory.location} removed",
                    actor,
                )
            inventory_repo.delete(inventory)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info("Deleted inventory %s", inventory_id)

    @staticmethod
    def check_stock(
        db: Session, product_id: int, location: str, quantity: int
    ) -> Dict[str, Any]:
        inventory = InventoryRepository(db).get_by_product_location(product_id, location)
        if not inventory:
            raise NotFoundError(
                f"No inventory for product {product_id} at {location}"
            )
        usable = inventory.status not in MANUAL_STATUSES
        return {
            "product_id": product_id,
            "location": location,
            "requested": quantity,
            "on_hand": inventory.quantity,
            "available": usable and inventory.quantity >= quantity,
        }

    @staticmethod
    def transfer(db: Session, payload: TransferRequest) -> InventoryMovement:
        """
        Move quantity between two locations of the same product.

        The aggregate product stock is unchanged. Either both records and the
        movement are written, or nothing is.
        """
        if payload.from_location == payload.to_location:
            raise ServiceValidationError("Source and destination must differ")

        inventory_repo = InventoryRepository(db)
        if not ProductRepository(db).exists(payload.product_id):
            raise NotFoundError(f"Product {payload.product_id} not found")

        source = inventory_repo.get_by_product_location(
            payload.product_id, payload.from_location, lock=True
        )
        if not source:
            raise NotFoundError(
                f"No inventory for product {payload.product_id} at {payload.from_location}"
            )
        if source.quantity < payload.quantity:
            raise InsufficientStockError(
                f"Only {source.quantity} available at {payload.from_location}",
                details={
                    "requested": payload.quantity,
                    "available": source.quantity,
                },
            )

        try:
            target = inventory_repo.get_by_product_location(
                payload.product_id, payload.to_location, lock=True
            )
            if not target:
                target = inventory_repo.add(
                    Inventory(
                        product_id=payload.product_id,
                        location=payload.to_location,
                        quantity=0,
                        status=InventoryStatus.OUT_OF_STOCK,
                    )
                )

            source.quantity -= payload.quantity
            target.quantity += payload.quantity
            source.status = derive_status(source.quantity, None, source.status)
            target.status = derive_status(target.quantity, None, target.status)

            movement = MovementRepository(db).add(
                InventoryMovement(
                    product_id=payload.product_id,
                    from_location=payload.from_location,
                    to_location=payload.to_location,
                    quantity=payload.quantity,
                    movement_type=payload.movement_type,
                    movement_date=payload.movement_date or datetime.utcnow(),
                    reference_number=payload.reference_number,
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Transfer of product %s failed", payload.product_id)
            raise
        db.refresh(movement)
        logger.info(
            "Transferred %d of product %s from %s to %s",
            payload.quantity,
            payload.product_id,
            payload.from_location,
            payload.to_location,
        )
        return movement

    @staticmethod
    def list_movements(
        db: Session, page: int, limit: int, product_id: Optional[int] = None
    ) -> Tuple[List[InventoryMovement], int]:
        return MovementRepository(db).list_movements(page, limit, product_id)
