"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    init_database,
    get_db_session,
)
from domain.models.user import User, UserSettings
from domain.models.product import Product, StockHistory
from domain.models.inventory import Inventory, InventoryMovement
from domain.models.delivery import Delivery, DeliveryTracking, DeliveryCondition
from domain.models.shipment import Shipment, ShipmentItem
from domain.models.notification import Notification
from domain.models.batch import Batch

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "init_database",
    "get_db_session",
    # User models
    "User",
    "UserSettings",
    # Catalogue
    "Product",
    "StockHistory",
    # Inventory
    "Inventory",
    "InventoryMovement",
    # Logistics
    "Delivery",
    "DeliveryTracking",
    "DeliveryCondition",
    "Shipment",
    "ShipmentItem",
    # Messaging and jobs
    "Notification",
    "Batch",
]
