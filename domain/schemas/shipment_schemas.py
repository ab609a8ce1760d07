from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from domain.enums import ShipmentDirection, ShipmentStatus


class ShipmentItemCreate(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)
    unit: str = Field(default="kg", min_length=1, max_length=10)


class ShipmentCreate(BaseModel):
    """Shared by shipping (outbound) and receiving (inbound)"""

    order_number: str = Field(..., min_length=1, max_length=50)
    partner_name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=100)
    scheduled_date: Optional[datetime] = None
    note: Optional[str] = Field(None, max_length=1000)
    items: List[ShipmentItemCreate] = Field(..., min_length=1)


class ShipmentItemResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    quantity: int
    unit: str

    model_config = {"from_attributes": True}


class ShipmentResponse(BaseModel):
    id: int
    direction: ShipmentDirection
    order_number: str
    partner_name: str
    address: Optional[str] = None
    location: Optional[str] = None
    status: ShipmentStatus
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    note: Optional[str] = None
    created_by: Optional[int] = None
    items: List[ShipmentItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
