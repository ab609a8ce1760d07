from typing import Optional, Tuple, List
from sqlalchemy.orm import Session
import logging

from domain.models import Product, StockHistory
from domain.enums import StockChangeType
from repositories import ProductRepository, StockHistoryRepository
from app.exceptions import (
    NotFoundError,
    ServiceValidationError,
    InsufficientStockError,
)

logger = logging.getLogger("tealogistics.stock")

SYSTEM_ACTOR = "system"


def actor_name(actor) -> str:
    """Username recorded in history rows for an acting user (or the system)"""
    return getattr(actor, "username", None) or SYSTEM_ACTOR


class StockService:
    @staticmethod
    def adjust_stock(
        db: Session,
        product: Product,
        change_type: StockChangeType,
        quantity: int,
        reason: Optional[str] = None,
        actor=None,
    ) -> StockHistory:
        """
        Change a product's aggregate stock and record the change.

        ``in`` adds ``quantity``, ``out`` removes it and ``adjustment`` sets the
        stock to ``quantity``. The product row and the history row are flushed
        together; committing is left to the caller.

        Raises:
            ServiceValidationError: non-positive in/out amount or negative level
            InsufficientStockError: ``out`` larger than the stock on hand
        """
        change_type = StockChangeType(change_type)
        previous = product.stock or 0

        if change_type == StockChangeType.IN:
            if quantity <= 0:
                raise ServiceValidationError("Quantity must be greater than 0")
            new_stock = previous + quantity
        elif change_type == StockChangeType.OUT:
            if quantity <= 0:
                raise ServiceValidationError("Quantity must be greater than 0")
            if quantity > previous:
                raise InsufficientStockError(
                    f"Insufficient stock for product {product.sku}",
                    details={
                        "product_id": product.id,
                        "requested": quantity,
                        "available": previous,
                    },
                )
            new_stock = previous - quantity
        else:
            if quantity < 0:
                raise ServiceValidationError("Stock level cannot be negative")
            new_stock = quantity

        entry = StockHistory(
            product_id=product.id,
            previous_stock=previous,
            new_stock=new_stock,
            change_amount=new_stock - previous,
            type=change_type,
            reason=reason,
            created_by=actor_name(actor),
        )
        product.stock = new_stock
        db.add(entry)
        db.flush()
        logger.debug(
            "Stock of product %s: %d -> %d (%s)",
            product.id,
            previous,
            new_stock,
            change_type.value,
        )
        return entry

    @staticmethod
    def record_change(
        db: Session,
        product_id: int,
        change_type: StockChangeType,
        quantity: int,
        reason: Optional[str],
        actor,
    ) -> StockHistory:
        """Manual stock change from the API; commits on success"""
        product = ProductRepository(db).get_for_update(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        try:
            entry = StockService.adjust_stock(
                db, product, change_type, quantity, reason, actor
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(entry)
        logger.info(
            "Recorded %s of %d for product %s", entry.type.value, quantity, product_id
        )
        return entry

    @staticmethod
    def get_history(
        db: Session, product_id: int, page: int, limit: int
    ) -> Tuple[List[StockHistory], int]:
        if not ProductRepository(db).exists(product_id):
            raise NotFoundError(f"Product {product_id} not found")
        return StockHistoryRepository(db).list_for_product(product_id, page, limit)
