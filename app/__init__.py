"""
App package - Application configuration and core utilities.
Contains settings, exceptions, security helpers and foundational application code.
"""

from app.config import settings
from app.exceptions import (
    AppError,
    ServiceValidationError,
    InsufficientStockError,
    NotFoundError,
    ConflictError,
    UnauthorizedError,
    ForbiddenError,
)

__all__ = [
    "settings",
    "AppError",
    "ServiceValidationError",
    "InsufficientStockError",
    "NotFoundError",
    "ConflictError",
    "UnauthorizedError",
    "ForbiddenError",
]
