from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime

from domain.enums import DeliveryStatus


class DeliveryCreate(BaseModel):
    """Schema for creating a delivery; a product line reserves stock"""

    order_id: int = Field(..., gt=0)
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_address: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=30)
    product_id: Optional[int] = Field(None, gt=0)
    quantity: int = Field(default=0, ge=0)
    from_location: Optional[str] = Field(None, max_length=100)
    estimated_delivery_date: Optional[datetime] = None
    note: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_quantity(self):
        if self.product_id is not None and self.quantity < 1:
            raise ValueError("quantity must be at least 1 when product_id is given")
        return self


class DeliveryUpdate(BaseModel):
    customer_name: Optional[str] = Field(None, min_length=1, max_length=100)
    customer_address: Optional[str] = Field(None, min_length=1, max_length=255)
    customer_phone: Optional[str] = Field(None, min_length=1, max_length=30)
    estimated_delivery_date: Optional[datetime] = None
    note: Optional[str] = Field(None, max_length=1000)


class DeliveryStatusUpdate(BaseModel):
    status: DeliveryStatus


class DeliveryResponse(BaseModel):
    id: int
    order_id: int
    customer_name: str
    customer_address: str
    customer_phone: str
    product_id: Optional[int] = None
    quantity: int
    from_location: Optional[str] = None
    status: DeliveryStatus
    estimated_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    note: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TrackingCreate(BaseModel):
    location: str = Field(..., min_length=1, max_length=255)
    status: str = Field(..., min_length=1, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)
    temperature: Optional[float] = Field(None, ge=-50, le=80)
    humidity: Optional[float] = Field(None, ge=0, le=100)


class TrackingResponse(BaseModel):
    id: int
    delivery_id: int
    location: str
    status: str
    notes: Optional[str] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    alert: bool
    alert_message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ConditionUpdate(BaseModel):
    """Environmental limits for a delivery"""

    min_temperature: float
    max_temperature: float
    min_humidity: float = Field(..., ge=0, le=100)
    max_humidity: float = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def check_ranges(self):
        if self.min_temperature > self.max_temperature:
            raise ValueError("min_temperature must not exceed max_temperature")
        if self.min_humidity > self.max_humidity:
            raise ValueError("min_humidity must not exceed max_humidity")
        return self


class ConditionResponse(BaseModel):
    delivery_id: int
    min_temperature: float
    max_temperature: float
    min_humidity: float
    max_humidity: float
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
