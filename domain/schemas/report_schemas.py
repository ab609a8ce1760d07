from pydantic import BaseModel
from typing import List
from datetime import date

from domain.enums import ReportPeriodType


class SalesPoint(BaseModel):
    period: str  # "2025-10-31", "2025-W44", "2025-10" or "2025"
    total_sales: float
    order_count: int


class InventoryPoint(BaseModel):
    period: str
    stock_quantity: int
    low_stock_items: int


class DeliveryPoint(BaseModel):
    period: str
    on_time_delivery_rate: float
    delivered_count: int


class ReportResponse(BaseModel):
    """Sales, inventory and delivery series over a common period axis"""

    period_type: ReportPeriodType
    start_date: date
    end_date: date
    sales_report: List[SalesPoint]
    inventory_report: List[InventoryPoint]
    delivery_report: List[DeliveryPoint]
