from typing import Optional, List, Tuple, Dict, Any
from datetime import datetime, date
from sqlalchemy.orm import Session
import logging

from domain.models import Delivery, DeliveryTracking, DeliveryCondition
from domain.enums import (
    DeliveryStatus,
    DELIVERY_TRANSITIONS,
    NotificationType,
    StockChangeType,
)
from domain.schemas.delivery_schemas import (
    DeliveryCreate,
    DeliveryUpdate,
    TrackingCreate,
    ConditionUpdate,
)
from repositories import (
    DeliveryRepository,
    TrackingRepository,
    ConditionRepository,
    ProductRepository,
)
from services.stock_service import StockService
from services.inventory_service import InventoryService
from services.notification_service import NotificationService
from services.helpers import day_bounds
from app.exceptions import NotFoundError, ServiceValidationError

logger = logging.getLogger("tealogistics.deliveries")

TERMINAL_STATUSES = (DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED)


class DeliveryService:
    @staticmethod
    def list_deliveries(
        db: Session,
        page: int,
        limit: int,
        status: Optional[DeliveryStatus] = None,
        search: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[Delivery], int]:
        if start_date and end_date and start_date > end_date:
            raise ServiceValidationError("start_date must not be after end_date")
        start, end = day_bounds(start_date, end_date)
        return DeliveryRepository(db).search(
            page, limit, status, search.strip() if search else None, start, end
        )

    @staticmethod
    def get_delivery(db: Session, delivery_id: int) -> Delivery:
        delivery = DeliveryRepository(db).get_by_id(delivery_id)
        if not delivery:
            raise NotFoundError(f"Delivery {delivery_id} not found")
        return delivery

    @staticmethod
    def create_delivery(db: Session, payload: DeliveryCreate, actor) -> Delivery:
        """
        Create a pending delivery and reserve its product quantity.

        Raises:
            NotFoundError: unknown product, or no record at from_location
            InsufficientStockError: not enough stock to reserve
            ServiceValidationError: location-stocked product without from_location
        """
        product = None
        if payload.product_id is not None:
            product = ProductRepository(db).get_for_update(payload.product_id)
            if not product:
                raise NotFoundError(f"Product {payload.product_id} not found")

        delivery = Delivery(
            **payload.model_dump(),
            status=DeliveryStatus.PENDING,
            created_by=actor.id if actor else None,
        )
        try:
            DeliveryRepository(db).add(delivery)
            if product is not None:
                StockService.adjust_stock(
                    db,
                    product,
                    StockChangeType.OUT,
                    payload.quantity,
                    f"delivery #{delivery.id}",
                    actor,
                )
                InventoryService.take_from_location(
                    db, product.id, payload.from_location, payload.quantity
                )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(delivery)
        logger.info("Created delivery %s for order %s", delivery.id, delivery.order_id)

        NotificationService.notify(
            db,
            delivery.created_by,
            NotificationType.DELIVERY_STATUS,
            "Delivery created",
            f"Delivery #{delivery.id} for {delivery.customer_name} is pending",
            {"delivery_id": delivery.id, "status": delivery.status.value},
        )
        return delivery

    @staticmethod
    def update_delivery(
        db: Session, delivery_id: int, payload: DeliveryUpdate
    ) -> Delivery:
        delivery = DeliveryService.get_delivery(db, delivery_id)
        if delivery.status in TERMINAL_STATUSES:
            raise ServiceValidationError(
                f"Delivery {delivery_id} is {delivery.status.value} and cannot be edited"
            )
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(delivery, key, value)
        db.commit()
        db.refresh(delivery)
        return delivery

    @staticmethod
    def apply_transition(
        db: Session, delivery: Delivery, new_status: DeliveryStatus, actor=None
    ) -> List[Dict[str, Any]]:
        """
        Move a delivery to ``new_status`` without committing.

        Cancelling returns the reserved quantity to stock. Returns the
        notifications to send once the caller has committed.

        Raises:
            ServiceValidationError: transition not allowed from current status
        """
        new_status = DeliveryStatus(new_status)
        current = delivery.status
        if new_status not in DELIVERY_TRANSITIONS[current]:
            raise ServiceValidationError(
                f"Cannot change delivery status from {current.value} to {new_status.value}",
                details={"from": current.value, "to": new_status.value},
            )

        if new_status == DeliveryStatus.DELIVERED:
            delivery.actual_delivery_date = datetime.utcnow()
        elif new_status == DeliveryStatus.CANCELLED:
            DeliveryService._release_reservation(
                db, delivery, f"delivery #{delivery.id} cancelled", actor
            )
        delivery.status = new_status
        db.flush()

        if new_status == DeliveryStatus.DELIVERED:
            notification_type = NotificationType.DELIVERY_COMPLETE
            title = "Delivery completed"
        else:
            notification_type = NotificationType.DELIVERY_STATUS
            title = "Delivery status changed"
        return [
            {
                "user_id": delivery.created_by,
                "notification_type": notification_type,
                "title": title,
                "message": (
                    f"Delivery #{delivery.id}: {current.value} -> {new_status.value}"
                ),
                "data": {
                    "delivery_id": delivery.id,
                    "previous_status": current.value,
                    "status": new_status.value,
                },
            }
        ]

    @staticmethod
    def _release_reservation(db: Session, delivery: Delivery, reason: str, actor):
        if delivery.product_id is None or not delivery.quantity:
            return
        product = ProductRepository(db).get_for_update(delivery.product_id)
        if product is None:
            return
        StockService.adjust_stock(
            db, product, StockChangeType.IN, delivery.quantity, reason, actor
        )
        if delivery.from_location:
            InventoryService.put_to_location(
                db, product.id, delivery.from_location, delivery.quantity
            )

    @staticmethod
    def update_status(
        db: Session, delivery_id: int, new_status: DeliveryStatus, actor=None
    ) -> Delivery:
        delivery = DeliveryService.get_delivery(db, delivery_id)
        try:
            pending = DeliveryService.apply_transition(db, delivery, new_status, actor)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(delivery)
        logger.info("Delivery %s is now %s", delivery.id, delivery.status.value)
        NotificationService.notify_many(db, pending)
        return delivery

    @staticmethod
    def complete_delivery(db: Session, delivery_id: int, actor=None) -> Delivery:
        delivery = DeliveryService.get_delivery(db, delivery_id)
        if delivery.status != DeliveryStatus.IN_TRANSIT:
            raise ServiceValidationError(
                f"Only in-transit deliveries can be completed (current: {delivery.status.value})"
            )
        return DeliveryService.update_status(
            db, delivery_id, DeliveryStatus.DELIVERED, actor
        )

    @staticmethod
    def delete_delivery(db: Session, delivery_id: int, actor=None) -> None:
        delivery = DeliveryService.get_delivery(db, delivery_id)
        if delivery.status not in (DeliveryStatus.PENDING, DeliveryStatus.CANCELLED):
            raise ServiceValidationError(
                f"Cannot delete a delivery that is {delivery.status.value}"
            )
        try:
            if delivery.status == DeliveryStatus.PENDING:
                DeliveryService._release_reservation(
                    db, delivery, f"delivery #{delivery.id} deleted", actor
                )
            DeliveryRepository(db).delete(delivery)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info("Deleted delivery %s", delivery_id)

    # ------------------------------------------------------------------
    # Tracking and transport conditions
    # ------------------------------------------------------------------

    @staticmethod
    def check_conditions(
        condition: Optional[DeliveryCondition],
        temperature: Optional[float],
        humidity: Optional[float],
    ) -> List[str]:
        """Messages for each reading outside the stored limits"""
        if condition is None:
            return []
        problems = []
        if temperature is not None:
            if temperature < condition.min_temperature:
                problems.append(
                    f"temperature {temperature} below minimum {condition.min_temperature}"
                )
            elif temperature > condition.max_temperature:
                problems.append(
                    f"temperature {temperature} above maximum {condition.max_temperature}"
                )
        if humidity is not None:
            if humidity < condition.min_humidity:
                problems.append(
                    f"humidity {humidity} below minimum {condition.min_humidity}"
                )
            elif humidity > condition.max_humidity:
                problems.append(
                    f"humidity {humidity} above maximum {condition.max_humidity}"
                )
        return problems

    @staticmethod
    def add_tracking(
        db: Session, delivery_id: int, payload: TrackingCreate
    ) -> DeliveryTracking:
        delivery = DeliveryService.get_delivery(db, delivery_id)
        if delivery.status in TERMINAL_STATUSES:
            raise ServiceValidationError(
                f"Delivery {delivery_id} is {delivery.status.value}; tracking is closed"
            )

        condition = ConditionRepository(db).get_by_delivery_id(delivery_id)
        problems = DeliveryService.check_conditions(
            condition, payload.temperature, payload.humidity
        )
        tracking = TrackingRepository(db).add(
            DeliveryTracking(
                delivery_id=delivery_id,
                **payload.model_dump(),
                alert=bool(problems),
                alert_message="; ".join(problems) if problems else None,
            )
        )
        db.commit()
        db.refresh(tracking)

        NotificationService.notify(
            db,
            delivery.created_by,
            NotificationType.DELIVERY_TRACKING,
            "Delivery tracking updated",
            f"Delivery #{delivery_id} at {tracking.location}: {tracking.status}",
            {"delivery_id": delivery_id, "tracking_id": tracking.id},
        )
        if problems:
            logger.warning("Tracking alert for delivery %s: %s", delivery_id, problems)
            NotificationService.notify(
                db,
                delivery.created_by,
                NotificationType.TRACKING_ALERT,
                "Transport conditions out of range",
                f"Delivery #{delivery_id}: {tracking.alert_message}",
                {"delivery_id": delivery_id, "tracking_id": tracking.id},
            )
        return tracking

    @staticmethod
    def list_tracking(db: Session, delivery_id: int) -> List[DeliveryTracking]:
        DeliveryService.get_delivery(db, delivery_id)
        return TrackingRepository(db).list_for_delivery(delivery_id)

    @staticmethod
    def set_conditions(
        db: Session, delivery_id: int, payload: ConditionUpdate
    ) -> DeliveryCondition:
        DeliveryService.get_delivery(db, delivery_id)
        condition = ConditionRepository(db).upsert(delivery_id, **payload.model_dump())
        db.commit()
        db.refresh(condition)
        return condition

    @staticmethod
    def get_conditions(db: Session, delivery_id: int) -> DeliveryCondition:
        DeliveryService.get_delivery(db, delivery_id)
        condition = ConditionRepository(db).get_by_delivery_id(delivery_id)
        if not condition:
            raise NotFoundError(f"No conditions set for delivery {delivery_id}")
        return condition
