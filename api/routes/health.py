"""Health check routes"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db
from api.responses import HealthResponse
from app.config import settings
from services.scheduler import get_scheduler_status

router = APIRouter(tags=["Health"])
logger = logging.getLogger("tealogistics.api.health")


@router.get("/health-check", response_model=HealthResponse)
def health_check():
    """Basic health check endpoint"""
    return HealthResponse(
        status="ok", service=settings.app_name, version=settings.app_version
    )


@router.get("/health/db")
def database_health(db: Session = Depends(get_db)):
    """Run ``SELECT 1`` against the configured database."""
    try:
        db.execute(text("SELECT 1"))
        return {"database": "ok"}
    except SQLAlchemyError as e:
        logger.exception("Database health check failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"database": "error", "error": str(e)},
        )


@router.get("/health/scheduler")
def scheduler_status():
    """Background scheduler state and registered batch jobs"""
    return get_scheduler_status()
