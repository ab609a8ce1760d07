from typing import Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging

from domain.models import User
from domain.enums import UserRole, UserStatus
from domain.schemas.user_schemas import RegisterRequest, ProfileUpdate
from repositories import UserRepository
from app.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
)
from app.exceptions import (
    ConflictError,
    ForbiddenError,
    ServiceValidationError,
    UnauthorizedError,
)

logger = logging.getLogger("tealogistics.auth")

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    @staticmethod
    def register(db: Session, payload: RegisterRequest) -> User:
        """
        Create a viewer account.

        Raises:
            ConflictError: email or username already taken
        """
        user_repo = UserRepository(db)
        email = payload.email.strip().lower()
        if user_repo.get_by_email(email):
            raise ConflictError("Email is already registered")
        if user_repo.get_by_username(payload.username):
            raise ConflictError("Username is already taken")

        user = User(
            username=payload.username,
            email=email,
            password_hash=hash_password(payload.password),
            name=payload.name,
            role=UserRole.VIEWER,
            status=UserStatus.ACTIVE,
        )
        try:
            user_repo.add(user)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Email or username is already registered")
        db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    @staticmethod
    def login(db: Session, email: str, password: str) -> Dict[str, Any]:
        """Check credentials and issue an access token"""
        user = UserRepository(db).get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise UnauthorizedError(INVALID_CREDENTIALS, code="INVALID_CREDENTIALS")
        if user.status != UserStatus.ACTIVE:
            raise ForbiddenError(f"Account is {user.status.value}")

        token, expires_in = create_access_token(user)
        return {
            "token": token,
            "token_type": "bearer",
            "expires_in": expires_in,
            "user": user,
        }

    @staticmethod
    def get_user_from_token(db: Session, token: str) -> User:
        """Resolve the active user a bearer token belongs to"""
        payload = decode_access_token(token)
        user = UserRepository(db).get_by_id(int(payload["sub"]))
        if not user:
            raise UnauthorizedError("User no longer exists", code="INVALID_TOKEN")
        if user.status != UserStatus.ACTIVE:
            raise ForbiddenError(f"Account is {user.status.value}")
        return user

    @staticmethod
    def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
        data = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in data:
            email = data["email"].strip().lower()
            other = UserRepository(db).get_by_email(email)
            if other and other.id != user.id:
                raise ConflictError("Email is already registered")
            user.email = email
        if "name" in data:
            user.name = data["name"]
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def change_password(
        db: Session, user: User, current_password: str, new_password: str
    ) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ServiceValidationError("Current password is incorrect")
        if len(new_password) < 8:
            raise ServiceValidationError("Password must be at least 8 characters")
        user.password_hash = hash_password(new_password)
        db.commit()
        logger.info("Password changed for user %s", user.id)

    @staticmethod
    def create_admin(
        db: Session, email: str, password: str, username: Optional[str] = None
    ) -> Optional[User]:
        """Create an administrator unless the email is already registered"""
        user_repo = UserRepository(db)
        email = email.strip().lower()
        if user_repo.get_by_email(email):
            return None
        user = User(
            username=username or email.split("@")[0],
            email=email,
            password_hash=hash_password(password),
            name="Administrator",
            role=UserRole.ADMIN,
            status=UserStatus.ACTIVE,
        )
        user_repo.add(user)
        db.commit()
        db.refresh(user)
        return user
