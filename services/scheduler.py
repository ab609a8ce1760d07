"""
Background scheduler for batches that carry a cron schedule.
Uses APScheduler; each run opens its own database session.
"""

import logging
from typing import Optional
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.jobstores.base import JobLookupError

from app.config import settings
from app.exceptions import AppError
from domain.models import SessionLocal

logger = logging.getLogger("tealogistics.scheduler")

# Global scheduler instance
scheduler: Optional[BackgroundScheduler] = None


def _job_id(batch_id: int) -> str:
    return f"batch-{batch_id}"


def run_scheduled_batch(batch_id: int):
    """Execute a batch from the scheduler thread"""
    from services.batch_service import BatchService

    db = SessionLocal()
    try:
        batch = BatchService.execute_batch(db, batch_id)
        logger.info(
            "Scheduled batch %s finished: %s", batch_id, batch.status.value
        )
    except AppError as e:
        logger.warning("Scheduled batch %s skipped: %s", batch_id, e.message)
    finally:
        db.close()


def schedule_batch(batch) -> bool:
    """Register (or replace) the cron job of a batch; no-op when not running"""
    if scheduler is None or not batch.schedule:
        return False
    scheduler.add_job(
        run_scheduled_batch,
        trigger=CronTrigger.from_crontab(batch.schedule, timezone="UTC"),
        args=[batch.id],
        id=_job_id(batch.id),
        name=f"{batch.type.value} batch {batch.id}",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info("Scheduled batch %s with '%s'", batch.id, batch.schedule)
    return True


def unschedule_batch(batch_id: int) -> None:
    if scheduler is None:
        return
    try:
        scheduler.remove_job(_job_id(batch_id))
        logger.info("Unscheduled batch %s", batch_id)
    except JobLookupError:
        pass


def init_scheduler():
    """Start the scheduler and register every scheduled batch"""
    global scheduler

    if not settings.scheduler_enabled:
        logger.info("Batch scheduler disabled")
        return

    from repositories import BatchRepository

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.start()

    db = SessionLocal()
    try:
        for batch in BatchRepository(db).list_scheduled():
            try:
                schedule_batch(batch)
            except ValueError as e:
                logger.warning("Batch %s has an invalid schedule: %s", batch.id, e)
    finally:
        db.close()
    logger.info("Batch scheduler started with %d jobs", len(scheduler.get_jobs()))


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Batch scheduler stopped")


def get_scheduler_status() -> dict:
    if scheduler is None:
        return {"enabled": False, "running": False, "jobs": []}
    return {
        "enabled": True,
        "running": scheduler.running,
        "jobs": [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": (
                    job.next_run_time.isoformat() if job.next_run_time else None
                ),
            }
            for job in scheduler.get_jobs()
        ],
    }
