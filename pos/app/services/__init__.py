"""Application services."""

from .orders import OrderLifecycle, generate_order_number

__all__ = ["OrderLifecycle", "generate_order_number"]
