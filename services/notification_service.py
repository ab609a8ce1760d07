from typing import Optional, Dict, Any, List, Tuple
from sqlalchemy.orm import Session
import logging

from domain.models import Notification
from domain.enums import NotificationType, NotificationStatus
from domain.schemas.notification_schemas import NotificationCreate
from repositories import NotificationRepository, UserRepository
from app.exceptions import NotFoundError

logger = logging.getLogger("tealogistics.notifications")


class NotificationService:
    @staticmethod
    def notify(
        db: Session,
        user_id: Optional[int],
        notification_type: NotificationType,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """
        Best-effort notification for a user.

        Called after the triggering operation has been committed. Any failure
        is logged and swallowed so that the caller's result is unaffected.
        """
        if user_id is None:
            return None
        try:
            notification = Notification(
                user_id=user_id,
                type=notification_type,
                status=NotificationStatus.UNREAD,
                title=title,
                message=message,
                data=data,
            )
            db.add(notification)
            db.commit()
            return notification
        except Exception:
            db.rollback()
            logger.exception(
                "Failed to send %s notification to user %s",
                notification_type.value,
                user_id,
            )
            return None

    @staticmethod
    def notify_many(db: Session, pending: List[Dict[str, Any]]) -> None:
        """Send notifications collected while a transaction was open"""
        for item in pending:
            NotificationService.notify(db, **item)

    @staticmethod
    def create(db: Session, payload: NotificationCreate) -> Notification:
        """Administrative create for any user"""
        if not UserRepository(db).exists(payload.user_id):
            raise NotFoundError(f"User {payload.user_id} not found")
        notification = Notification(
            user_id=payload.user_id,
            type=payload.type,
            status=NotificationStatus.UNREAD,
            title=payload.title,
            message=payload.message,
            data=payload.data,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def list_for_user(
        db: Session,
        user_id: int,
        page: int,
        limit: int,
        status: Optional[NotificationStatus] = None,
    ) -> Tuple[List[Notification], int]:
        return NotificationRepository(db).list_for_user(user_id, page, limit, status)

    @staticmethod
    def get_for_user(db: Session, notification_id: int, user_id: int) -> Notification:
        notification = NotificationRepository(db).get_for_user(notification_id, user_id)
        if not notification:
            raise NotFoundError(f"Notification {notification_id} not found")
        return notification

    @staticmethod
    def mark_read(db: Session, notification_id: int, user_id: int) -> Notification:
        notification = NotificationService.get_for_user(db, notification_id, user_id)
        notification.status = NotificationStatus.READ
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, user_id: int) -> int:
        count = NotificationRepository(db).mark_all_read(user_id)
        db.commit()
        return count

    @staticmethod
    def delete(db: Session, notification_id: int, user_id: int) -> None:
        notification = NotificationService.get_for_user(db, notification_id, user_id)
        NotificationRepository(db).delete(notification)
        db.commit()
