"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.user_schemas import (
    RegisterRequest,
    LoginRequest,
    UserResponse,
    TokenResponse,
    ProfileUpdate,
    PasswordChange,
    UserAdminUpdate,
)
from domain.schemas.product_schemas import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    BulkDeleteRequest,
    BulkUpdateRequest,
    BulkDeleteResponse,
    BulkUpdateResponse,
    StockHistoryCreate,
    StockHistoryResponse,
)
from domain.schemas.inventory_schemas import (
    InventoryCreate,
    InventoryUpdate,
    InventoryResponse,
    TransferRequest,
    MovementResponse,
    StockCheckResponse,
)
from domain.schemas.delivery_schemas import (
    DeliveryCreate,
    DeliveryUpdate,
    DeliveryStatusUpdate,
    DeliveryResponse,
    TrackingCreate,
    TrackingResponse,
    ConditionUpdate,
    ConditionResponse,
)
from domain.schemas.shipment_schemas import (
    ShipmentCreate,
    ShipmentItemCreate,
    ShipmentResponse,
)
from domain.schemas.notification_schemas import (
    NotificationCreate,
    NotificationResponse,
)
from domain.schemas.batch_schemas import (
    BatchCreate,
    BatchResponse,
    BatchLogsResponse,
)
from domain.schemas.report_schemas import ReportResponse
from domain.schemas.transfer_schemas import (
    ExportRequest,
    ImportOptions,
    ImportResult,
)
from domain.schemas.settings_schemas import (
    UserSettingsDocument,
    UserSettingsUpdate,
)

__all__ = [
    # Auth / users
    "RegisterRequest",
    "LoginRequest",
    "UserResponse",
    "TokenResponse",
    "ProfileUpdate",
    "PasswordChange",
    "UserAdminUpdate",
    # Products
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "BulkDeleteRequest",
    "BulkUpdateRequest",
    "BulkDeleteResponse",
    "BulkUpdateResponse",
    "StockHistoryCreate",
    "StockHistoryResponse",
    # Inventory
    "InventoryCreate",
    "InventoryUpdate",
    "InventoryResponse",
    "TransferRequest",
    "MovementResponse",
    "StockCheckResponse",
    # Deliveries
    "DeliveryCreate",
    "DeliveryUpdate",
    "DeliveryStatusUpdate",
    "DeliveryResponse",
    "TrackingCreate",
    "TrackingResponse",
    "ConditionUpdate",
    "ConditionResponse",
    # Shipping / receiving
    "ShipmentCreate",
    "ShipmentItemCreate",
    "ShipmentResponse",
    # Notifications
    "NotificationCreate",
    "NotificationResponse",
    # Batches and reports
    "BatchCreate",
    "BatchResponse",
    "BatchLogsResponse",
    "ReportResponse",
    # Export / import
    "ExportRequest",
    "ImportOptions",
    "ImportResult",
    # Settings
    "UserSettingsDocument",
    "UserSettingsUpdate",
]
