"""Notification inbox routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user, require_role, Pagination
from api.responses import PaginatedResponse, paginated_response
from domain.enums import UserRole, NotificationStatus
from domain.models import User
from domain.schemas.notification_schemas import (
    NotificationCreate,
    NotificationResponse,
)
from services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])
logger = logging.getLogger("tealogistics.api.notifications")


@router.get("", response_model=PaginatedResponse[NotificationResponse])
def list_notifications(
    notification_status: Optional[NotificationStatus] = Query(None, alias="status"),
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's notifications, newest first"""
    items, total = NotificationService.list_for_user(
        db, user.id, pagination.page, pagination.limit, notification_status
    )
    return paginated_response(
        [NotificationResponse.model_validate(n) for n in items],
        total,
        pagination.page,
        pagination.limit,
    )


@router.post(
    "", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED
)
def create_notification(
    payload: NotificationCreate,
    _: User = Depends(require_role(UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    return NotificationResponse.model_validate(NotificationService.create(db, payload))


@router.put("/read-all")
def mark_all_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    count = NotificationService.mark_all_read(db, user.id)
    return {"status": "ok", "updated": count}


@router.get("/{notification_id}", response_model=NotificationResponse)
def get_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationResponse.model_validate(
        NotificationService.get_for_user(db, notification_id, user.id)
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationResponse.model_validate(
        NotificationService.mark_read(db, notification_id, user.id)
    )


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    NotificationService.delete(db, notification_id, user.id)
