from typing import Optional, List, Tuple
from sqlalchemy.orm import Session
import logging

from domain.models import User
from domain.enums import UserRole, UserStatus
from domain.schemas.user_schemas import UserAdminUpdate
from repositories import UserRepository
from app.exceptions import NotFoundError, ServiceValidationError

logger = logging.getLogger("tealogistics.users")


class UserService:
    @staticmethod
    def list_users(
        db: Session,
        page: int,
        limit: int,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        return UserRepository(db).search(page, limit, role, status, search)

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    def update_user(
        db: Session, actor: User, user_id: int, payload: UserAdminUpdate
    ) -> User:
        """
        Change another account's name, role or status.

        Raises:
            ServiceValidationError: an admin demoting or deactivating themselves
        """
        user = UserService.get_user(db, user_id)
        data = payload.model_dump(exclude_unset=True, exclude_none=True)

        if user.id == actor.id:
            if "role" in data and data["role"] != UserRole.ADMIN:
                raise ServiceValidationError("You cannot change your own role")
            if "status" in data and data["status"] != UserStatus.ACTIVE:
                raise ServiceValidationError("You cannot deactivate your own account")

        for key, value in data.items():
            setattr(user, key, value)
        db.commit()
        db.refresh(user)
        logger.info("User %s updated by %s: %s", user.id, actor.id, sorted(data))
        return user

    @staticmethod
    def delete_user(db: Session, actor: User, user_id: int) -> None:
        if user_id == actor.id:
            raise ServiceValidationError("You cannot delete your own account")
        user = UserService.get_user(db, user_id)
        UserRepository(db).delete(user)
        db.commit()
        logger.info("User %s deleted by %s", user_id, actor.id)
