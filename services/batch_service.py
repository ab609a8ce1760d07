from typing import Optional, List, Tuple
from datetime import date, datetime, timezone
from sqlalchemy.orm import Session
from apscheduler.triggers.cron import CronTrigger
import logging

from domain.models import Batch
from domain.enums import BatchType, BatchStatus
from domain.schemas.batch_schemas import BatchCreate
from repositories import BatchRepository
from services.batch_jobs import JOBS, BatchRun
from services.notification_service import NotificationService
from services.helpers import day_bounds
from services import scheduler
from app.exceptions import NotFoundError, ConflictError, ServiceValidationError

logger = logging.getLogger("tealogistics.batch")

MIN_RETRY, MAX_RETRY = 0, 10
MIN_TIMEOUT, MAX_TIMEOUT = 60, 3600
SECONDS_PER_RETRY = 60


class BatchService:
    @staticmethod
    def validate_config(
        schedule: Optional[str], retry_count: int, timeout: int
    ) -> None:
        """
        Check a batch configuration, reporting every problem at once.

        Raises:
            ServiceValidationError: details maps field name -> message
        """
        errors = {}

        if schedule:
            try:
                trigger = CronTrigger.from_crontab(schedule, timezone="UTC")
            except ValueError as e:
                errors["schedule"] = f"Invalid cron expression: {e}"
            else:
                now = datetime.now(timezone.utc)
                if trigger.get_next_fire_time(None, now) is None:
                    errors["schedule"] = "Cron expression never fires in the future"

        if not MIN_RETRY <= retry_count <= MAX_RETRY:
            errors["retry_count"] = (
                f"Retry count must be between {MIN_RETRY} and {MAX_RETRY}"
            )
        if not MIN_TIMEOUT <= timeout <= MAX_TIMEOUT:
            errors["timeout"] = (
                f"Timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} seconds"
            )
        elif timeout < retry_count * SECONDS_PER_RETRY:
            errors["timeout"] = (
                f"Timeout must be at least {retry_count * SECONDS_PER_RETRY} seconds "
                f"for {retry_count} retries"
            )

        if errors:
            raise ServiceValidationError(
                "Invalid batch configuration", details=errors
            )

    @staticmethod
    def create_batch(db: Session, payload: BatchCreate, actor=None) -> Batch:
        schedule = payload.schedule.strip() if payload.schedule else None
        BatchService.validate_config(schedule, payload.retry_count, payload.timeout)

        batch = BatchRepository(db).add(
            Batch(
                type=payload.type,
                status=BatchStatus.PENDING,
                schedule=schedule,
                retry_count=payload.retry_count,
                timeout=payload.timeout,
                params=dict(payload.params),
                errors=[],
                logs=[],
                created_by=actor.id if actor else None,
            )
        )
        db.commit()
        db.refresh(batch)
        if batch.schedule:
            scheduler.schedule_batch(batch)
        logger.info("Created %s batch %s", batch.type.value, batch.id)
        return batch

    @staticmethod
    def list_batches(
        db: Session,
        page: int,
        limit: int,
        batch_type: Optional[BatchType] = None,
        status: Optional[BatchStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[Batch], int]:
        if start_date and end_date and start_date > end_date:
            raise ServiceValidationError("start_date must not be after end_date")
        start, end = day_bounds(start_date, end_date)
        return BatchRepository(db).search(page, limit, batch_type, status, start, end)

    @staticmethod
    def get_batch(db: Session, batch_id: int) -> Batch:
        batch = BatchRepository(db).get_by_id(batch_id)
        if not batch:
            raise NotFoundError(f"Batch {batch_id} not found")
        return batch

    @staticmethod
    def execute_batch(db: Session, batch_id: int) -> Batch:
        """
        Run a batch now.

        A job that raises is retried up to ``retry_count`` more times; each
        failed attempt is rolled back. The batch fails when every attempt
        raised or when the run took longer than ``timeout`` seconds.
        """
        batch = BatchService.get_batch(db, batch_id)
        if batch.status == BatchStatus.RUNNING:
            raise ConflictError(f"Batch {batch_id} is already running")
        job = JOBS[batch.type]

        started = datetime.utcnow()
        batch.status = BatchStatus.RUNNING
        batch.start_time = started
        batch.end_time = None
        batch.duration = None
        batch.processed_items = 0
        batch.success_count = 0
        batch.error_count = 0
        batch.errors = []
        batch.logs = []
        batch.result = None
        db.commit()

        attempts = batch.retry_count + 1
        logs = [f"{started.isoformat(timespec='seconds')} Started {batch.type.value}"]
        run: Optional[BatchRun] = None
        result = None
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            current = BatchRun()
            current.log(f"Attempt {attempt}/{attempts}")
            try:
                result = job(db, batch, current)
                db.flush()
                run = current
                break
            except Exception as e:
                db.rollback()
                last_error = e
                logs.extend(current.logs)
                logs.append(f"Attempt {attempt} failed: {e}")
                logger.warning(
                    "Batch %s attempt %d/%d failed: %s",
                    batch_id,
                    attempt,
                    attempts,
                    e,
                    exc_info=True,
                )

        finished = datetime.utcnow()
        duration = (finished - started).total_seconds()
        stored_status = (
            db.query(Batch.status).filter(Batch.id == batch_id).scalar()
        )

        errors = []
        if run is not None:
            logs.extend(run.logs)
            errors = list(run.errors)

        if stored_status == BatchStatus.CANCELLED:
            db.rollback()
            status = BatchStatus.CANCELLED
            logs.append("Cancelled while running; changes discarded")
        elif run is None:
            status = BatchStatus.FAILED
            errors = [{"message": str(last_error) or type(last_error).__name__}]
        elif duration > batch.timeout:
            db.rollback()
            status = BatchStatus.FAILED
            errors.append(
                {
                    "message": f"Timed out after {duration:.1f}s (limit {batch.timeout}s)"
                }
            )
        else:
            status = BatchStatus.COMPLETED

        logs.append(
            f"{finished.isoformat(timespec='seconds')} Finished: {status.value}"
        )
        batch.status = status
        batch.end_time = finished
        batch.duration = duration
        if run is not None and status == BatchStatus.COMPLETED:
            batch.processed_items = run.processed
            batch.success_count = run.success
            batch.result = result
        batch.error_count = len(errors)
        batch.errors = errors
        batch.logs = logs
        db.commit()
        db.refresh(batch)
        logger.info(
            "Batch %s %s in %.2fs (%d processed, %d errors)",
            batch.id,
            status.value,
            duration,
            batch.processed_items,
            batch.error_count,
        )

        if run is not None and status == BatchStatus.COMPLETED:
            NotificationService.notify_many(db, run.notifications)
        return batch

    @staticmethod
    def cancel_batch(db: Session, batch_id: int) -> Batch:
        batch = BatchService.get_batch(db, batch_id)
        if batch.status not in (BatchStatus.PENDING, BatchStatus.RUNNING):
            raise ServiceValidationError(
                f"Only pending or running batches can be cancelled (current: {batch.status.value})"
            )
        batch.status = BatchStatus.CANCELLED
        db.commit()
        db.refresh(batch)
        scheduler.unschedule_batch(batch.id)
        logger.info("Cancelled batch %s", batch.id)
        return batch

    @staticmethod
    def delete_batch(db: Session, batch_id: int) -> None:
        batch = BatchService.get_batch(db, batch_id)
        if batch.status == BatchStatus.RUNNING:
            raise ConflictError(f"Batch {batch_id} is running and cannot be deleted")
        BatchRepository(db).delete(batch)
        db.commit()
        scheduler.unschedule_batch(batch_id)
        logger.info("Deleted batch %s", batch_id)
