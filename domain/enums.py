"""
Domain enums for the Tea Logistics application.
Contains all enumeration types used across the domain models.
"""

import enum


class UserRole(str, enum.Enum):
    """Account roles, highest privilege first"""

    ADMIN = "admin"
    MANAGER = "manager"
    OPERATOR = "operator"
    VIEWER = "viewer"


class UserStatus(str, enum.Enum):
    """Account status"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"


def has_permission(role: UserRole, required: UserRole) -> bool:
    """Return True when ``role`` grants at least the privileges of ``required``."""
    role = UserRole(role)
    required = UserRole(required)
    if role == UserRole.ADMIN:
        return True
    if role == UserRole.MANAGER:
        return required != UserRole.ADMIN
    if role == UserRole.OPERATOR:
        return required in (UserRole.OPERATOR, UserRole.VIEWER)
    return required == UserRole.VIEWER


class ProductCategory(str, enum.Enum):
    """Tea product categories"""

    GREEN_TEA = "green_tea"
    BLACK_TEA = "black_tea"
    OOLONG_TEA = "oolong_tea"
    PUERH_TEA = "puerh_tea"
    HERBAL_TEA = "herbal_tea"
    OTHER = "other"


class ProductStatus(str, enum.Enum):
    """Product lifecycle status"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


class StockChangeType(str, enum.Enum):
    """Kind of change recorded in stock history"""

    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class InventoryStatus(str, enum.Enum):
    """Status of a per-location inventory record"""

    AVAILABLE = "available"
    OUT_OF_STOCK = "out_of_stock"
    RESERVED = "reserved"
    DISCONTINUED = "discontinued"


class MovementType(str, enum.Enum):
    """Inventory movement kinds"""

    INBOUND = "inbound"
    OUTBOUND = "outbound"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"


class DeliveryStatus(str, enum.Enum):
    """Delivery lifecycle status"""

    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


DELIVERY_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.IN_TRANSIT, DeliveryStatus.CANCELLED},
    DeliveryStatus.IN_TRANSIT: {DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED},
    DeliveryStatus.DELIVERED: set(),
    DeliveryStatus.CANCELLED: set(),
}


class ShipmentDirection(str, enum.Enum):
    """Outbound shipments are shipping, inbound ones are receiving"""

    OUTBOUND = "outbound"
    INBOUND = "inbound"


class ShipmentStatus(str, enum.Enum):
    """Shipping / receiving status"""

    PREPARING = "preparing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class NotificationType(str, enum.Enum):
    """Notification categories"""

    DELIVERY_STATUS = "delivery_status"
    DELIVERY_COMPLETE = "delivery_complete"
    DELIVERY_TRACKING = "delivery_tracking"
    TRACKING_ALERT = "tracking_alert"
    LOW_STOCK = "low_stock"
    SYSTEM = "system"


class NotificationStatus(str, enum.Enum):
    """Read state of a notification"""

    UNREAD = "unread"
    READ = "read"


class BatchType(str, enum.Enum):
    """Background job kinds"""

    STOCK_CHECK = "stock_check"
    DELIVERY_STATUS_UPDATE = "delivery_status_update"
    DATA_CLEANUP = "data_cleanup"
    REPORT_GENERATION = "report_generation"


class BatchStatus(str, enum.Enum):
    """Background job status"""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ReportPeriodType(str, enum.Enum):
    """Report aggregation period"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class DataFormat(str, enum.Enum):
    """Export / import file formats"""

    CSV = "csv"
    JSON = "json"
    EXCEL = "excel"


class DataType(str, enum.Enum):
    """Export / import record types"""

    PRODUCT = "product"
    INVENTORY = "inventory"
    DELIVERY = "delivery"
