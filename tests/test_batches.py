"""
Tests for batch jobs: configuration checks, execution with retries and
timeouts, and the four built-in job kinds.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import Session

import services.batch_service
from test_fixtures import (
    client,
    db_session,
    make_user,
    make_product,
    make_delivery,
    auth_headers,
    headers_for,
    assert_error,
)
from domain.enums import (
    UserRole,
    BatchType,
    BatchStatus,
    DeliveryStatus,
    InventoryStatus,
    NotificationType,
    NotificationStatus,
)
from domain.models import Batch, Delivery, Inventory, Notification, Product
from domain.schemas.batch_schemas import BatchCreate
from domain.schemas.inventory_schemas import InventoryCreate
from services.batch_service import BatchService
from services.inventory_service import InventoryService
from services.notification_service import NotificationService
from app.exceptions import ServiceValidationError, ConflictError


def _batch(db_session: Session, batch_type: BatchType, actor=None, **fields) -> Batch:
    return BatchService.create_batch(
        db_session, BatchCreate(type=batch_type, **fields), actor
    )


# =============================================================================
# CONFIGURATION
# =============================================================================


def test_validate_config_accepts_defaults():
    BatchService.validate_config("0 3 * * *", 3, 300)
    BatchService.validate_config(None, 0, 60)


def test_validate_config_reports_every_problem():
    with pytest.raises(ServiceValidationError) as exc_info:
        BatchService.validate_config("not a cron", 11, 30)
    assert set(exc_info.value.details) == {"schedule", "retry_count", "timeout"}


def test_validate_config_timeout_covers_retries():
    with pytest.raises(ServiceValidationError) as exc_info:
        BatchService.validate_config(None, 5, 120)
    assert "300 seconds" in exc_info.value.details["timeout"]


def test_validate_config_rejects_cron_that_never_fires():
    # February 30th parses but never occurs
    with pytest.raises(ServiceValidationError) as exc_info:
        BatchService.validate_config("0 0 30 2 *", 3, 300)
    assert set(exc_info.value.details) == {"schedule"}


def test_create_batch_api(db_session: Session):
    manager = make_user(db_session, role=UserRole.MANAGER)
    response = client.post(
        "/batches",
        json={"type": "stock_check", "schedule": " */15 * * * * ", "params": {"threshold": 5}},
        headers=auth_headers(manager),
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["status"] == "pending"
    assert body["schedule"] == "*/15 * * * *"
    assert body["retry_count"] == 3
    assert body["created_by"] == manager.id


def test_create_batch_invalid_config_api(db_session: Session):
    headers = headers_for(db_session, UserRole.MANAGER)
    response = client.post(
        "/batches",
        json={"type": "data_cleanup", "retry_count": -1, "timeout": 5000},
        headers=headers,
    )
    error = assert_error(response, 400)
    assert set(error["details"]) == {"retry_count", "timeout"}


def test_create_batch_requires_manager(db_session: Session):
    headers = headers_for(db_session, UserRole.OPERATOR)
    assert_error(client.post("/batches", json={"type": "stock_check"}, headers=headers), 403)


# =============================================================================
# EXECUTION
# =============================================================================


def test_execute_stock_check(db_session: Session):
    manager = make_user(db_session, role=UserRole.MANAGER)
    product = make_product(db_session, stock=0)
    record = InventoryService.create_inventory(
        db_session, InventoryCreate(product_id=product.id, location="Uji", quantity=30)
    )
    empty = InventoryService.create_inventory(
        db_session, InventoryCreate(product_id=product.id, location="Yame", quantity=0)
    )
    empty.status = InventoryStatus.AVAILABLE
    db_session.commit()

    batch = _batch(
        db_session, BatchType.STOCK_CHECK, manager, params={"threshold": 50}
    )
    response = client.post(
        f"/batches/{batch.id}/execute", headers=auth_headers(manager)
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["status"] == "completed"
    assert body["error_count"] == 0
    assert body["result"]["corrected_statuses"] == 1
    assert body["result"]["low_stock_product_ids"] == [product.id]
    assert body["start_time"] is not None and body["end_time"] is not None

    db_session.expire_all()
    assert db_session.get(Inventory, empty.id).status == InventoryStatus.OUT_OF_STOCK
    assert db_session.get(Inventory, record.id).quantity == 30
    low = (
        db_session.query(Notification)
        .filter_by(user_id=manager.id, type=NotificationType.LOW_STOCK)
        .all()
    )
    assert len(low) == 1


def test_stock_check_reports_mismatch(db_session: Session):
    product = make_product(db_session, stock=0)
    InventoryService.create_inventory(
        db_session, InventoryCreate(product_id=product.id, location="Uji", quantity=10)
    )
    product.stock = 7
    db_session.commit()

    batch = BatchService.execute_batch(
        db_session, _batch(db_session, BatchType.STOCK_CHECK).id
    )
    assert batch.status == BatchStatus.COMPLETED
    assert batch.error_count == 1
    assert batch.errors[0]["details"]["location_total"] == 10
    db_session.refresh(product)
    assert product.stock == 7


def test_stock_check_after_location_delivery(db_session: Session):
    manager = make_user(db_session, role=UserRole.MANAGER)
    product = make_product(db_session, stock=0)
    record = InventoryService.create_inventory(
        db_session, InventoryCreate(product_id=product.id, location="A", quantity=10)
    )
    make_delivery(
        db_session, manager, product=product, quantity=3, from_location="A"
    )

    batch = BatchService.execute_batch(
        db_session, _batch(db_session, BatchType.STOCK_CHECK).id
    )
    assert batch.status == BatchStatus.COMPLETED
    assert batch.error_count == 0
    db_session.expire_all()
    assert db_session.get(Inventory, record.id).quantity == 7
    assert db_session.get(Product, product.id).stock == 7


def test_execute_retries_then_succeeds(db_session: Session, monkeypatch):
    attempts = []

    def flaky(db, batch, run):
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("warehouse API unavailable")
        run.ok(2)
        return {"done": True}

    monkeypatch.setitem(services.batch_service.JOBS, BatchType.DATA_CLEANUP, flaky)
    batch = _batch(db_session, BatchType.DATA_CLEANUP, retry_count=2, timeout=300)

    batch = BatchService.execute_batch(db_session, batch.id)
    assert len(attempts) == 3
    assert batch.status == BatchStatus.COMPLETED
    assert batch.result == {"done": True}
    assert batch.processed_items == 2
    assert any("Attempt 1 failed" in line for line in batch.logs)


def test_execute_fails_after_retries(db_session: Session, monkeypatch):
    def broken(db, batch, run):
        raise RuntimeError("disk full")

    monkeypatch.setitem(services.batch_service.JOBS, BatchType.DATA_CLEANUP, broken)
    batch = _batch(db_session, BatchType.DATA_CLEANUP, retry_count=1, timeout=120)

    batch = BatchService.execute_batch(db_session, batch.id)
    assert batch.status == BatchStatus.FAILED
    assert batch.errors == [{"message": "disk full"}]
    assert batch.error_count == 1
    assert batch.result is None


def test_execute_timeout_discards_changes(db_session: Session, monkeypatch):
    product = make_product(db_session, stock=5)

    def slow(db, batch, run):
        db.get(type(product), product.id).stock = 99
        batch.timeout = -1
        run.ok()
        return {}

    monkeypatch.setitem(services.batch_service.JOBS, BatchType.DATA_CLEANUP, slow)
    batch = _batch(db_session, BatchType.DATA_CLEANUP, retry_count=0)

    batch = BatchService.execute_batch(db_session, batch.id)
    assert batch.status == BatchStatus.FAILED
    assert "Timed out" in batch.errors[-1]["message"]
    db_session.refresh(product)
    assert product.stock == 5


def test_execute_cancelled_while_running_discards_changes(
    db_session: Session, monkeypatch
):
    product = make_product(db_session, stock=5)

    def cancelled_midway(db, batch, run):
        db.query(Batch).filter(Batch.id == batch.id).update(
            {"status": BatchStatus.CANCELLED}
        )
        db.commit()
        db.get(Product, product.id).stock = 99
        run.ok()
        return {"done": True}

    monkeypatch.setitem(
        services.batch_service.JOBS, BatchType.DATA_CLEANUP, cancelled_midway
    )
    batch = _batch(db_session, BatchType.DATA_CLEANUP, retry_count=0)

    batch = BatchService.execute_batch(db_session, batch.id)
    assert batch.status == BatchStatus.CANCELLED
    assert batch.result is None
    assert batch.processed_items == 0
    assert any("Cancelled while running" in line for line in batch.logs)
    db_session.refresh(product)
    assert product.stock == 5


def test_execute_running_batch_conflicts(db_session: Session):
    batch = _batch(db_session, BatchType.STOCK_CHECK)
    batch.status = BatchStatus.RUNNING
    db_session.commit()
    with pytest.raises(ConflictError):
        BatchService.execute_batch(db_session, batch.id)
    headers = headers_for(db_session, UserRole.MANAGER)
    assert_error(client.delete(f"/batches/{batch.id}", headers=headers), 409)


def test_batch_logs_endpoint(db_session: Session):
    batch = BatchService.execute_batch(
        db_session, _batch(db_session, BatchType.STOCK_CHECK).id
    )
    headers = headers_for(db_session, UserRole.VIEWER)
    response = client.get(f"/batches/{batch.id}/logs", headers=headers)
    assert response.status_code == 200, response.text
    logs = response.json()["logs"]
    assert "Started stock_check" in logs[0]
    assert logs[-1].endswith("Finished: completed")


# =============================================================================
# CANCEL / DELETE / LIST
# =============================================================================


def test_cancel_and_delete(db_session: Session):
    headers = headers_for(db_session, UserRole.MANAGER)
    batch = _batch(db_session, BatchType.STOCK_CHECK)

    response = client.post(f"/batches/{batch.id}/cancel", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert_error(client.post(f"/batches/{batch.id}/cancel", headers=headers), 400)

    assert client.delete(f"/batches/{batch.id}", headers=headers).status_code == 204
    assert_error(client.get(f"/batches/{batch.id}", headers=headers), 404)


def test_list_batches_filters(db_session: Session):
    _batch(db_session, BatchType.STOCK_CHECK)
    cleanup = _batch(db_session, BatchType.DATA_CLEANUP)
    BatchService.cancel_batch(db_session, cleanup.id)
    headers = headers_for(db_session, UserRole.VIEWER)

    response = client.get("/batches", params={"type": "data_cleanup"}, headers=headers)
    assert [b["id"] for b in response.json()["items"]] == [cleanup.id]
    response = client.get("/batches", params={"status": "pending"}, headers=headers)
    assert response.json()["total"] == 1
    response = client.get(
        "/batches",
        params={"start_date": "2024-02-01", "end_date": "2024-01-01"},
        headers=headers,
    )
    assert_error(response, 400)


# =============================================================================
# JOB KINDS
# =============================================================================


def test_delivery_status_update_job(db_session: Session):
    manager = make_user(db_session, role=UserRole.MANAGER)
    due = make_delivery(
        db_session, manager, order_id=1, estimated=datetime(2024, 3, 1, 10, 0)
    )
    later = make_delivery(
        db_session, manager, order_id=2, estimated=datetime(2024, 3, 20, 10, 0)
    )
    batch = _batch(
        db_session,
        BatchType.DELIVERY_STATUS_UPDATE,
        manager,
        params={"to_status": "in_transit", "before": "2024-03-10"},
    )

    batch = BatchService.execute_batch(db_session, batch.id)
    assert batch.status == BatchStatus.COMPLETED
    assert batch.result == {"updated_delivery_ids": [due.id]}

    db_session.expire_all()
    assert db_session.get(Delivery, due.id).status == DeliveryStatus.IN_TRANSIT
    assert db_session.get(Delivery, later.id).status == DeliveryStatus.PENDING


def test_delivery_status_update_requires_target(db_session: Session):
    batch = _batch(db_session, BatchType.DELIVERY_STATUS_UPDATE, retry_count=0)
    batch = BatchService.execute_batch(db_session, batch.id)
    assert batch.status == BatchStatus.FAILED
    assert "to_status" in batch.errors[0]["message"]


def test_data_cleanup_job(db_session: Session):
    user = make_user(db_session)
    old_read = NotificationService.notify(
        db_session, user.id, NotificationType.SYSTEM, "old", "read"
    )
    old_unread = NotificationService.notify(
        db_session, user.id, NotificationType.SYSTEM, "old", "unread"
    )
    fresh_read = NotificationService.notify(
        db_session, user.id, NotificationType.SYSTEM, "new", "read"
    )
    long_ago = datetime.utcnow() - timedelta(days=90)
    old_read.status = NotificationStatus.READ
    old_read.created_at = long_ago
    old_unread.created_at = long_ago
    fresh_read.status = NotificationStatus.READ
    finished = _batch(db_session, BatchType.STOCK_CHECK)
    finished.status = BatchStatus.COMPLETED
    finished.created_at = long_ago
    db_session.commit()

    batch = _batch(db_session, BatchType.DATA_CLEANUP, params={"days": 30})
    batch = BatchService.execute_batch(db_session, batch.id)
    assert batch.status == BatchStatus.COMPLETED
    assert batch.result["deleted_notifications"] == 1
    assert batch.result["deleted_batches"] == 1

    db_session.expire_all()
    remaining = {n.id for n in db_session.query(Notification)}
    assert remaining == {old_unread.id, fresh_read.id}
    assert db_session.get(Batch, batch.id) is not None


def test_report_generation_job(db_session: Session):
    batch = _batch(
        db_session,
        BatchType.REPORT_GENERATION,
        params={
            "period_type": "weekly",
            "start_date": "2024-01-01",
            "end_date": "2024-01-14",
        },
    )
    batch = BatchService.execute_batch(db_session, batch.id)
    assert batch.status == BatchStatus.COMPLETED
    assert batch.result["period_type"] == "weekly"
    assert [row["period"] for row in batch.result["sales_report"]] == [
        "2024-W01",
        "2024-W02",
    ]
