"""User administration routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, require_role, Pagination
from api.responses import PaginatedResponse, paginated_response
from domain.enums import UserRole, UserStatus
from domain.models import User
from domain.schemas.user_schemas import UserResponse, UserAdminUpdate
from services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger("tealogistics.api.users")


@router.get("", response_model=PaginatedResponse[UserResponse])
def list_users(
    role: Optional[UserRole] = Query(None),
    user_status: Optional[UserStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(),
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    """List accounts with optional role / status / text filters"""
    users, total = UserService.list_users(
        db, pagination.page, pagination.limit, role, user_status, search
    )
    return paginated_response(
        [UserResponse.model_validate(u) for u in users],
        total,
        pagination.page,
        pagination.limit,
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    return UserResponse.model_validate(UserService.get_user(db, user_id))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserAdminUpdate,
    admin: User = Depends(require_role(UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    """Change another account's name, role or status"""
    user = UserService.update_user(db, admin, user_id, payload)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    admin: User = Depends(require_role(UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    UserService.delete_user(db, admin, user_id)
