from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime

from domain.enums import NotificationType, NotificationStatus


class NotificationCreate(BaseModel):
    user_id: int = Field(..., gt=0)
    type: NotificationType = NotificationType.SYSTEM
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    data: Optional[Dict[str, Any]] = None


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    status: NotificationStatus
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
