from pydantic import BaseModel, Field
from typing import Optional, Literal


class NotificationSettings(BaseModel):
    email_notifications: bool = True
    low_stock_alert: bool = True
    delivery_updates: bool = True
    order_updates: bool = True


class DisplaySettings(BaseModel):
    theme: Literal["light", "dark"] = "light"
    language: Literal["ja", "en"] = "ja"
    timezone: str = Field(default="Asia/Tokyo", min_length=1, max_length=64)
    date_format: str = Field(default="YYYY-MM-DD", min_length=1, max_length=32)


class SystemSettings(BaseModel):
    low_stock_threshold: int = Field(default=10, ge=0)
    default_page_size: int = Field(default=20, ge=1, le=100)
    auto_logout_minutes: int = Field(default=30, ge=5, le=1440)


class UserSettingsDocument(BaseModel):
    notification: NotificationSettings = Field(default_factory=NotificationSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    system: SystemSettings = Field(default_factory=SystemSettings)


class NotificationSettingsUpdate(BaseModel):
    email_notifications: Optional[bool] = None
    low_stock_alert: Optional[bool] = None
    delivery_updates: Optional[bool] = None
    order_updates: Optional[bool] = None


class DisplaySettingsUpdate(BaseModel):
    theme: Optional[Literal["light", "dark"]] = None
    language: Optional[Literal["ja", "en"]] = None
    timezone: Optional[str] = Field(None, min_length=1, max_length=64)
    date_format: Optional[str] = Field(None, min_length=1, max_length=32)


class SystemSettingsUpdate(BaseModel):
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    default_page_size: Optional[int] = Field(None, ge=1, le=100)
    auto_logout_minutes: Optional[int] = Field(None, ge=5, le=1440)


class UserSettingsUpdate(BaseModel):
    """Partial settings document; only the given fields change"""

    notification: Optional[NotificationSettingsUpdate] = None
    display: Optional[DisplaySettingsUpdate] = None
    system: Optional[SystemSettingsUpdate] = None
