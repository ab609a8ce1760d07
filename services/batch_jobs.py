"""
Batch job implementations.

Each job receives the session, the batch record and a ``BatchRun`` that
collects per-item counts, errors, log lines and notifications. Jobs flush but
never commit; the batch service decides whether an attempt is kept.
"""

from typing import Optional, List, Dict, Any, Callable
from datetime import date, datetime, time, timedelta
from sqlalchemy.orm import Session
import logging

from domain.models import Batch, Product
from domain.enums import (
    BatchType,
    DeliveryStatus,
    InventoryStatus,
    NotificationType,
    ReportPeriodType,
)
from repositories import (
    InventoryRepository,
    DeliveryRepository,
    NotificationRepository,
    BatchRepository,
)
from services.delivery_service import DeliveryService
from services.report_service import ReportService
from app.config import settings
from app.exceptions import AppError, ServiceValidationError

logger = logging.getLogger("tealogistics.batch.jobs")


class BatchRun:
    """Outcome of a single attempt"""

    def __init__(self):
        self.logs: List[str] = []
        self.errors: List[Dict[str, Any]] = []
        self.processed = 0
        self.success = 0
        self.notifications: List[Dict[str, Any]] = []

    def log(self, message: str) -> None:
        stamp = datetime.utcnow().isoformat(timespec="seconds")
        self.logs.append(f"{stamp} {message}")

    def ok(self, count: int = 1) -> None:
        self.processed += count
        self.success += count

    def fail(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.processed += 1
        entry = {"message": message}
        if details:
            entry["details"] = details
        self.errors.append(entry)
        self.log(f"ERROR {message}")


def _param_enum(params: dict, key: str, enum_cls, default=None):
    value = params.get(key, default)
    if value is None:
        raise ServiceValidationError(f"params.{key} is required")
    try:
        return enum_cls(value)
    except ValueError:
        raise ServiceValidationError(f"params.{key} has invalid value '{value}'")


def _param_date(params: dict, key: str) -> Optional[date]:
    value = params.get(key)
    if value in (None, ""):
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ServiceValidationError(f"params.{key} must be an ISO date")


def _param_int(params: dict, key: str, default: int, minimum: int) -> int:
    value = params.get(key, default)
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ServiceValidationError(f"params.{key} must be an integer")
    if value < minimum:
        raise ServiceValidationError(f"params.{key} must be at least {minimum}")
    return value


def run_stock_check(db: Session, batch: Batch, run: BatchRun) -> Dict[str, Any]:
    """Reconcile location statuses and totals, and flag low stock"""
    threshold = _param_int(
        batch.params or {}, "threshold", settings.low_stock_threshold, 0
    )
    inventory_repo = InventoryRepository(db)

    corrected = 0
    for inventory in inventory_repo.list_all():
        if inventory.quantity < 0:
            run.fail(
                f"Inventory {inventory.id} has negative quantity",
                {"inventory_id": inventory.id, "quantity": inventory.quantity},
            )
            continue
        if inventory.quantity == 0 and inventory.status == InventoryStatus.AVAILABLE:
            inventory.status = InventoryStatus.OUT_OF_STOCK
            corrected += 1
            run.log(f"Inventory {inventory.id} marked out_of_stock")
        elif inventory.quantity > 0 and inventory.status == InventoryStatus.OUT_OF_STOCK:
            inventory.status = InventoryStatus.AVAILABLE
            corrected += 1
            run.log(f"Inventory {inventory.id} marked available")
        run.ok()

    totals = inventory_repo.totals_by_product()
    low_stock = []
    for product in db.query(Product).order_by(Product.id).all():
        if product.id in totals and totals[product.id] != product.stock:
            run.fail(
                f"Stock mismatch for product {product.sku}",
                {
                    "product_id": product.id,
                    "product_stock": product.stock,
                    "location_total": totals[product.id],
                },
            )
        else:
            run.ok()
        if product.stock < threshold:
            low_stock.append(product)

    db.flush()
    if low_stock:
        skus = ", ".join(p.sku for p in low_stock)
        run.log(f"{len(low_stock)} products below {threshold}: {skus}")
        run.notifications.append(
            {
                "user_id": batch.created_by,
                "notification_type": NotificationType.LOW_STOCK,
                "title": "Low stock",
                "message": f"{len(low_stock)} products are below {threshold}: {skus}",
                "data": {
                    "batch_id": batch.id,
                    "product_ids": [p.id for p in low_stock],
                },
            }
        )
    return {
        "threshold": threshold,
        "corrected_statuses": corrected,
        "low_stock_product_ids": [p.id for p in low_stock],
    }


def run_delivery_status_update(
    db: Session, batch: Batch, run: BatchRun
) -> Dict[str, Any]:
    """Move matching deliveries through the normal status transition"""
    params = batch.params or {}
    to_status = _param_enum(params, "to_status", DeliveryStatus)
    from_status = _param_enum(params, "from_status", DeliveryStatus, "pending")
    before = _param_date(params, "before")
    due_before = datetime.combine(before, time.max) if before else None

    deliveries = DeliveryRepository(db).list_by_status(from_status, due_before)
    run.log(
        f"{len(deliveries)} deliveries {from_status.value} -> {to_status.value}"
    )
    updated = []
    for delivery in deliveries:
        try:
            run.notifications.extend(
                DeliveryService.apply_transition(db, delivery, to_status)
            )
            updated.append(delivery.id)
            run.ok()
        except AppError as e:
            run.fail(f"Delivery {delivery.id}: {e.message}", {"delivery_id": delivery.id})
    return {"updated_delivery_ids": updated}


def run_data_cleanup(db: Session, batch: Batch, run: BatchRun) -> Dict[str, Any]:
    """Remove read notifications and finished batches past retention"""
    days = _param_int(
        batch.params or {}, "days", settings.cleanup_retention_days, 1
    )
    cutoff = datetime.utcnow() - timedelta(days=days)
    notifications = NotificationRepository(db).delete_read_before(cutoff)
    batches = BatchRepository(db).delete_finished_before(cutoff, exclude_id=batch.id)
    run.ok(notifications + batches)
    run.log(
        f"Deleted {notifications} notifications and {batches} batches older than {days} days"
    )
    return {
        "cutoff": cutoff.isoformat(timespec="seconds"),
        "deleted_notifications": notifications,
        "deleted_batches": batches,
    }


def run_report_generation(
    db: Session, batch: Batch, run: BatchRun
) -> Dict[str, Any]:
    """Build a report and keep it as the batch result"""
    params = batch.params or {}
    period_type = _param_enum(params, "period_type", ReportPeriodType, "monthly")
    end_date = _param_date(params, "end_date") or datetime.utcnow().date()
    start_date = _param_date(params, "start_date") or end_date - timedelta(days=30)

    report = ReportService.generate(db, period_type, start_date, end_date)
    run.ok(len(report["sales_report"]))
    run.log(
        f"Generated {period_type.value} report {start_date}..{end_date}"
    )
    return {
        **report,
        "period_type": period_type.value,
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
    }


JOBS: Dict[BatchType, Callable[[Session, Batch, BatchRun], Dict[str, Any]]] = {
    BatchType.STOCK_CHECK: run_stock_check,
    BatchType.DELIVERY_STATUS_UPDATE: run_delivery_status_update,
    BatchType.DATA_CLEANUP: run_data_cleanup,
    BatchType.REPORT_GENERATION: run_report_generation,
}
