"""Services package - Business logic layer"""

from services.auth_service import AuthService
from services.user_service import UserService
from services.product_service import ProductService
from services.stock_service import StockService
from services.inventory_service import InventoryService
from services.delivery_service import DeliveryService
from services.shipment_service import ShipmentService
from services.notification_service import NotificationService
from services.batch_service import BatchService
from services.report_service import ReportService
from services.data_transfer_service import DataTransferService
from services.settings_service import UserSettingsService

# Note: batch_jobs and scheduler hold functions, not service classes

__all__ = [
    "AuthService",
    "UserService",
    "ProductService",
    "StockService",
    "InventoryService",
    "DeliveryService",
    "ShipmentService",
    "NotificationService",
    "BatchService",
    "ReportService",
    "DataTransferService",
    "UserSettingsService",
]
