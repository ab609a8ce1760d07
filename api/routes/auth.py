"""Authentication and own-profile routes"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user
from api.responses import MessageResponse
from domain.models import User
from domain.schemas.user_schemas import (
    RegisterRequest,
    LoginRequest,
    UserResponse,
    TokenResponse,
    ProfileUpdate,
    PasswordChange,
)
from services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("tealogistics.api.auth")


@router.post(
    "/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Create a viewer account"""
    user = AuthService.register(db, payload)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    result = AuthService.login(db, payload.email, payload.password)
    return TokenResponse(
        token=result["token"],
        token_type=result["token_type"],
        expires_in=result["expires_in"],
        user=UserResponse.model_validate(result["user"]),
    )


@router.get("/profile", response_model=UserResponse)
def get_profile(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.put("/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = AuthService.update_profile(db, user, payload)
    return UserResponse.model_validate(updated)


@router.put("/password", response_model=MessageResponse)
def change_password(
    payload: PasswordChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    AuthService.change_password(
        db, user, payload.current_password, payload.new_password
    )
    return MessageResponse(message="Password updated")
