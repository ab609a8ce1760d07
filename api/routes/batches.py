"""Batch job routes"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user, require_role, Pagination
from api.responses import PaginatedResponse, paginated_response
from domain.enums import UserRole, BatchType, BatchStatus
from domain.models import User
from domain.schemas.batch_schemas import (
    BatchCreate,
    BatchResponse,
    BatchLogsResponse,
)
from services.batch_service import BatchService

router = APIRouter(prefix="/batches", tags=["Batches"])
logger = logging.getLogger("tealogistics.api.batches")


@router.post("", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
def create_batch(
    payload: BatchCreate,
    user: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    """Create a pending batch; a cron ``schedule`` registers it with the scheduler"""
    batch = BatchService.create_batch(db, payload, user)
    return BatchResponse.model_validate(batch)


@router.get("", response_model=PaginatedResponse[BatchResponse])
def list_batches(
    batch_type: Optional[BatchType] = Query(None, alias="type"),
    batch_status: Optional[BatchStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    pagination: Pagination = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    batches, total = BatchService.list_batches(
        db,
        pagination.page,
        pagination.limit,
        batch_type=batch_type,
        status=batch_status,
        start_date=start_date,
        end_date=end_date,
    )
    return paginated_response(
        [BatchResponse.model_validate(b) for b in batches],
        total,
        pagination.page,
        pagination.limit,
    )


@router.get("/{batch_id}", response_model=BatchResponse)
def get_batch(
    batch_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BatchResponse.model_validate(BatchService.get_batch(db, batch_id))


@router.get("/{batch_id}/logs", response_model=BatchLogsResponse)
def get_batch_logs(
    batch_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BatchLogsResponse.model_validate(BatchService.get_batch(db, batch_id))


@router.post("/{batch_id}/execute", response_model=BatchResponse)
def execute_batch(
    batch_id: int,
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    """Run the batch now and return it in its final state"""
    return BatchResponse.model_validate(BatchService.execute_batch(db, batch_id))


@router.post("/{batch_id}/cancel", response_model=BatchResponse)
def cancel_batch(
    batch_id: int,
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    return BatchResponse.model_validate(BatchService.cancel_batch(db, batch_id))


@router.delete("/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_batch(
    batch_id: int,
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    BatchService.delete_batch(db, batch_id)
