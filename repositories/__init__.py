"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.user_repository import UserRepository, UserSettingsRepository
from repositories.product_repository import ProductRepository, StockHistoryRepository
from repositories.inventory_repository import InventoryRepository, MovementRepository
from repositories.delivery_repository import (
    DeliveryRepository,
    TrackingRepository,
    ConditionRepository,
)
from repositories.shipment_repository import ShipmentRepository
from repositories.notification_repository import NotificationRepository
from repositories.batch_repository import BatchRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "UserSettingsRepository",
    "ProductRepository",
    "StockHistoryRepository",
    "InventoryRepository",
    "MovementRepository",
    "DeliveryRepository",
    "TrackingRepository",
    "ConditionRepository",
    "ShipmentRepository",
    "NotificationRepository",
    "BatchRepository",
]
