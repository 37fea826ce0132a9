from .base import (
    AppError,
    DomainError,
    InfrastructureError,
    NotificationDeliveryError,
    StoreUnavailableError,
    ValidationError,
)
from .http import handle_app_error, register_error_handler

__all__ = [
    "AppError",
    "DomainError",
    "InfrastructureError",
    "NotificationDeliveryError",
    "StoreUnavailableError",
    "ValidationError",
    "handle_app_error",
    "register_error_handler",
]
