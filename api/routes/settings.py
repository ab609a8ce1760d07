"""Per-user settings routes"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user
from domain.models import User
from domain.schemas.settings_schemas import UserSettingsDocument, UserSettingsUpdate
from services.settings_service import UserSettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])
logger = logging.getLogger("tealogistics.api.settings")


@router.get("", response_model=UserSettingsDocument)
def get_settings(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stored settings merged over the defaults"""
    return UserSettingsService.get_settings(db, user)


@router.put("", response_model=UserSettingsDocument)
def update_settings(
    payload: UserSettingsUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Merge a partial settings document and return the full result"""
    return UserSettingsService.update_settings(db, user, payload)


@router.post("/reset", response_model=UserSettingsDocument)
def reset_settings(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UserSettingsService.reset_settings(db, user)
