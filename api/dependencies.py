"""
API dependencies for dependency injection
"""

from typing import Generator, Optional
from fastapi import Depends, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import UnauthorizedError, ForbiddenError
from domain.enums import UserRole, has_permission
from domain.models import get_db_session, User
from services.auth_service import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            # Use db session here
            pass
    """
    yield from get_db_session()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from an ``Authorization: Bearer <token>`` header"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Authentication required", code="MISSING_TOKEN")
    return AuthService.get_user_from_token(db, credentials.credentials)


def require_role(role: UserRole):
    """
    Build a dependency that admits users whose role grants ``role``.

    Usage:
        @router.post("", dependencies=[Depends(require_role(UserRole.MANAGER))])
    """

    def checker(user: User = Depends(get_current_user)) -> User:
        if not has_permission(user.role, role):
            raise ForbiddenError(
                f"Requires {role.value} role or higher",
                details={"required": role.value, "role": user.role.value},
            )
        return user

    return checker


class Pagination:
    """``page`` / ``limit`` query parameters"""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)"),
        limit: int = Query(
            settings.default_page_size,
            ge=1,
            le=settings.max_page_size,
            description="Items per page",
        ),
    ):
        self.page = page
        self.limit = limit
