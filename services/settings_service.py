from typing import Dict, Any
from sqlalchemy.orm import Session
from pydantic import ValidationError
import logging

from domain.models import User
from domain.schemas.settings_schemas import UserSettingsDocument, UserSettingsUpdate
from repositories import UserSettingsRepository

logger = logging.getLogger("tealogistics.settings")


def deep_merge(base: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay ``patch`` on ``base`` without mutating either"""
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def default_settings() -> Dict[str, Any]:
    return UserSettingsDocument().model_dump()


class UserSettingsService:
    @staticmethod
    def get_settings(db: Session, user: User) -> Dict[str, Any]:
        """Stored values merged over the defaults"""
        row = UserSettingsRepository(db).get_by_user_id(user.id)
        merged = deep_merge(default_settings(), (row.data if row else None) or {})
        try:
            return UserSettingsDocument.model_validate(merged).model_dump()
        except ValidationError:
            logger.warning("Stored settings of user %s are invalid; using defaults", user.id)
            return default_settings()

    @staticmethod
    def update_settings(
        db: Session, user: User, payload: UserSettingsUpdate
    ) -> Dict[str, Any]:
        current = UserSettingsService.get_settings(db, user)
        merged = deep_merge(current, payload.model_dump(exclude_none=True))
        document = UserSettingsDocument.model_validate(merged).model_dump()
        UserSettingsRepository(db).upsert(user.id, document)
        db.commit()
        return document

    @staticmethod
    def reset_settings(db: Session, user: User) -> Dict[str, Any]:
        document = default_settings()
        UserSettingsRepository(db).upsert(user.id, document)
        db.commit()
        logger.info("Settings of user %s reset to defaults", user.id)
        return document
