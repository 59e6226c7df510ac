"""Exceptions raised by the order lifecycle and storage backends."""

from __future__ import annotations


class OrderError(Exception):
    """Base class for order related failures."""


class OrderValidationError(OrderError, ValueError):
    """A submitted order or status update is malformed.

    ``field`` names the offending input, e.g. ``items.0.quantity``.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class OrderNotFound(OrderError, LookupError):
    """No order exists with the requested id."""

    def __init__(self, order_id: int) -> None:
        super().__init__(f"order {order_id} not found")
        self.order_id = order_id


class InvalidTransition(OrderError):
    """The requested status change is not in the transition table."""

    def __init__(self, src: str, dst: str) -> None:
        super().__init__(f"cannot move order from {src!r} to {dst!r}")
        self.src = src
        self.dst = dst


class OrderNumberConflict(OrderError):
    """The generated order number is already taken."""

    def __init__(self, order_number: str) -> None:
        super().__init__(f"order number {order_number!r} already exists")
        self.order_number = order_number
