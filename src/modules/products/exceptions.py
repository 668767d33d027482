"""Inventory exceptions.

Raised by the inventory repository when a reservation cannot be honoured.
The order module re-exports them: they reach the order caller unchanged.
"""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound


class ProductNotFound(NotFound):
    """A product referenced by an order item does not exist."""

    code = "product_not_found"

    def __init__(self, product_id: str) -> None:
        super().__init__(
            f"Product not found: {product_id}",
            details={"product_id": str(product_id)},
        )
        self.product_id = str(product_id)


class InsufficientStock(Conflict):
    """Not enough stock to fulfil the requested quantity."""

    code = "insufficient_stock"

    def __init__(
        self,
        product_id: str,
        available: int,
        requested: int,
        product_name: str | None = None,
    ) -> None:
        label = product_name or product_id
        super().__init__(
            f"Insufficient stock for {label}. "
            f"Requested {requested}, but only {available} left.",
            details={
                "product_id": str(product_id),
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = str(product_id)
        self.available = available
        self.requested = requested
