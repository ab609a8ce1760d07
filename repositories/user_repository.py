"""
User Repository - Data access layer for user accounts and their settings
"""

from typing import Optional, List, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import User, UserSettings
from domain.enums import UserRole, UserStatus


class UserRepository(BaseRepository[User]):
    """Repository for user data access"""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)"""
        return (
            self.db.query(User).filter(User.email == email.strip().lower()).first()
        )

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def search(
        self,
        page: int,
        limit: int,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        """Filtered, paginated user list ordered by id"""
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        if status:
            query = query.filter(User.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    User.username.ilike(pattern),
                    User.email.ilike(pattern),
                    User.name.ilike(pattern),
                )
            )
        return self.paginate(query.order_by(User.id), page, limit)


class UserSettingsRepository(BaseRepository[UserSettings]):
    """Repository for per-user settings documents"""

    def __init__(self, db: Session):
        super().__init__(db, UserSettings)

    def get_by_user_id(self, user_id: int) -> Optional[UserSettings]:
        return self.db.get(UserSettings, user_id)

    def upsert(self, user_id: int, data: dict) -> UserSettings:
        """Create or replace the stored document"""
        row = self.get_by_user_id(user_id)
        if row:
            # Assign a new object so the JSON column is flagged dirty
            row.data = dict(data)
        else:
            row = UserSettings(user_id=user_id, data=dict(data))
            self.db.add(row)
        self.db.flush()
        return row
