"""API routes package"""

from . import (
    auth,
    users,
    products,
    inventory,
    deliveries,
    shipments,
    notifications,
    batches,
    reports,
    data_transfer,
    settings,
    health,
)

__all__ = [
    "auth",
    "users",
    "products",
    "inventory",
    "deliveries",
    "shipments",
    "notifications",
    "batches",
    "reports",
    "data_transfer",
    "settings",
    "health",
]
