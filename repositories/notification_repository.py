"""
Notification Repository - Data access layer for user notifications
"""

from datetime import datetime
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Notification
from domain.enums import NotificationStatus


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)

    def get_for_user(self, notification_id: int, user_id: int) -> Optional[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )

    def list_for_user(
        self,
        user_id: int,
        page: int,
        limit: int,
        status: Optional[NotificationStatus] = None,
    ) -> Tuple[List[Notification], int]:
        """Newest first"""
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if status:
            query = query.filter(Notification.status == status)
        return self.paginate(query.order_by(Notification.id.desc()), page, limit)

    def mark_all_read(self, user_id: int) -> int:
        count = (
            self.db.query(Notification)
            .filter(
                Notification.user_id == user_id,
                Notification.status == NotificationStatus.UNREAD,
            )
            .update(
                {Notification.status: NotificationStatus.READ},
                synchronize_session=False,
            )
        )
        self.db.flush()
        return count

    def delete_read_before(self, cutoff: datetime) -> int:
        """Delete read notifications created before ``cutoff``"""
        count = (
            self.db.query(Notification)
            .filter(
                Notification.status == NotificationStatus.READ,
                Notification.created_at < cutoff,
            )
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return count
