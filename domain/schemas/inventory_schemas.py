from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from domain.enums import InventoryStatus, MovementType


class InventoryCreate(BaseModel):
    product_id: int = Field(..., gt=0)
    location: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(default=0, ge=0)
    status: Optional[InventoryStatus] = None


class InventoryUpdate(BaseModel):
    location: Optional[str] = Field(None, min_length=1, max_length=100)
    quantity: Optional[int] = Field(None, ge=0)
    status: Optional[InventoryStatus] = None


class InventoryResponse(BaseModel):
    id: int
    product_id: int
    location: str
    quantity: int
    status: InventoryStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TransferRequest(BaseModel):
    """Move stock from one location to another"""

    product_id: int = Field(..., gt=0)
    from_location: str = Field(..., min_length=1, max_length=100)
    to_location: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., gt=0)
    movement_type: MovementType = MovementType.TRANSFER
    movement_date: Optional[datetime] = None
    reference_number: Optional[str] = Field(None, max_length=100)


class MovementResponse(BaseModel):
    id: int
    product_id: int
    from_location: str
    to_location: str
    quantity: int
    movement_type: MovementType
    movement_date: datetime
    reference_number: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StockCheckResponse(BaseModel):
    product_id: int
    location: str
    requested: int
    on_hand: int
    available: bool
