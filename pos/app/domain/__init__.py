"""Domain models and helpers."""

from .errors import (
    InvalidTransition,
    OrderError,
    OrderNotFound,
    OrderNumberConflict,
    OrderValidationError,
)
from .order_status import ACTIVE_STATUSES, TRANSITIONS, OrderStatus, can_transition

__all__ = [
    "ACTIVE_STATUSES",
    "InvalidTransition",
    "OrderError",
    "OrderNotFound",
    "OrderNumberConflict",
    "OrderStatus",
    "OrderValidationError",
    "TRANSITIONS",
    "can_transition",
]
