from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from domain.enums import ProductCategory, ProductStatus, StockChangeType

MAX_PRICE = Decimal("1000000")


class ProductCreate(BaseModel):
    """Schema for creating a product"""

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    sku: str = Field(..., min_length=1, max_length=50)
    category: ProductCategory
    unit: str = Field(default="kg", min_length=1, max_length=10)
    price: Decimal = Field(..., gt=0, le=MAX_PRICE, decimal_places=2)
    stock: int = Field(default=0, ge=0, description="Initial on-hand stock")
    status: ProductStatus = ProductStatus.ACTIVE


class ProductUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged"""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    sku: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[ProductCategory] = None
    unit: Optional[str] = Field(None, min_length=1, max_length=10)
    price: Optional[Decimal] = Field(None, gt=0, le=MAX_PRICE, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    sku: str
    category: ProductCategory
    unit: str
    price: float
    stock: int
    status: ProductStatus
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class BulkUpdateRequest(BaseModel):
    """Apply the same field values to several products"""

    ids: List[int] = Field(..., min_length=1)
    category: Optional[ProductCategory] = None
    price: Optional[Decimal] = Field(None, gt=0, le=MAX_PRICE, decimal_places=2)
    status: Optional[ProductStatus] = None


class BulkDeleteResponse(BaseModel):
    deleted: List[int]
    not_found: List[int]


class BulkUpdateResponse(BaseModel):
    updated: List[int]
    not_found: List[int]


class StockHistoryCreate(BaseModel):
    """Manual stock change; quantity is the amount for in/out, the new level for adjustment"""

    type: StockChangeType
    quantity: int = Field(..., ge=0)
    reason: Optional[str] = Field(None, max_length=255)


class StockHistoryResponse(BaseModel):
    id: int
    product_id: int
    previous_stock: int
    new_stock: int
    change_amount: int
    type: StockChangeType
    reason: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
