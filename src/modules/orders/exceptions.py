"""Order domain exceptions.

Raised by the Service Layer and the order repository when business rules
are violated.  Each one belongs to a kind from ``modules.core.exceptions``;
the API layer maps kinds to HTTP status codes in a single place.
"""

from __future__ import annotations

from typing import Iterable

from modules.core.exceptions import BadRequest, Forbidden, NotFound
from modules.core.retry import TransactionRetryExhausted
from modules.products.exceptions import InsufficientStock, ProductNotFound

__all__ = [
    "IncompleteShippingAddress",
    "InsufficientStock",
    "InvalidOrderInput",
    "InvalidOrderStatus",
    "InvalidStatsWindow",
    "OrderAccessDenied",
    "OrderNotFound",
    "OrderNotModifiable",
    "OrderStoreUnavailable",
    "ProductNotFound",
    "RestrictedFieldUpdate",
]


class OrderNotFound(NotFound):
    """The requested order does not exist."""

    code = "order_not_found"

    def __init__(self, order_id: object) -> None:
        super().__init__(f"Order not found: {order_id}", details={"order_id": str(order_id)})


class InvalidOrderInput(BadRequest):
    """Order payload is malformed (no items, bad quantity, missing product id)."""

    code = "invalid_order"


class IncompleteShippingAddress(BadRequest):
    """One or more mandatory shipping address fields are blank."""

    code = "incomplete_shipping_address"

    def __init__(self, missing: Iterable[str]) -> None:
        fields = list(missing)
        super().__init__(
            "Incomplete shipping address provided.",
            details={"missing_fields": fields},
        )
        self.missing_fields = fields


class InvalidOrderStatus(BadRequest):
    """The requested status change is not in the transition table."""

    code = "invalid_status_transition"

    def __init__(self, current: str, target: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Invalid status transition from {current} to {target}.",
            details={"current_status": current, "requested_status": target},
        )
        self.current = current
        self.target = target


class OrderNotModifiable(BadRequest):
    """A customer tried to edit an order that is no longer pending."""

    code = "order_not_modifiable"


class InvalidStatsWindow(BadRequest):
    """The statistics window ends before it starts."""

    code = "invalid_stats_window"


class OrderAccessDenied(Forbidden):
    """The actor does not own the order and is not an admin."""

    code = "order_access_denied"


class RestrictedFieldUpdate(Forbidden):
    """A non-admin patch touched fields outside the customer allow-list."""

    code = "restricted_field_update"

    def __init__(self, fields: Iterable[str]) -> None:
        names = sorted(fields)
        super().__init__(
            f"Unauthorized field updates: {', '.join(names)}",
            details={"fields": names},
        )
        self.fields = names


class OrderStoreUnavailable(TransactionRetryExhausted):
    """The order store kept failing on concurrent writes."""

    code = "order_store_unavailable"
