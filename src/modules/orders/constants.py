"""Order domain constants.

Defines status/payment choices, the order state machine and the single
inventory-release decision shared by status updates and deletions.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    CREDIT_CARD = "credit_card", "Credit card"
    DEBIT_CARD = "debit_card", "Debit card"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"
    CASH_ON_DELIVERY = "cash_on_delivery", "Cash on delivery"


_PENDING = OrderStatus.PENDING.value
_CONFIRMED = OrderStatus.CONFIRMED.value
_PROCESSING = OrderStatus.PROCESSING.value
_SHIPPED = OrderStatus.SHIPPED.value
_DELIVERED = OrderStatus.DELIVERED.value
_CANCELLED = OrderStatus.CANCELLED.value
_REFUNDED = OrderStatus.REFUNDED.value

# Keyed by the stored string value, not the enum member.
VALID_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    _PENDING: frozenset({_CONFIRMED, _CANCELLED}),
    _CONFIRMED: frozenset({_PROCESSING, _CANCELLED}),
    _PROCESSING: frozenset({_SHIPPED, _CANCELLED}),
    _SHIPPED: frozenset({_DELIVERED}),
    _DELIVERED: frozenset({_REFUNDED}),
    _CANCELLED: frozenset({_REFUNDED}),
    _REFUNDED: frozenset(),
}

TERMINAL_STATES: FrozenSet[str] = frozenset(
    status for status, targets in VALID_TRANSITIONS.items() if not targets
)

CANCELLABLE_STATES: FrozenSet[str] = frozenset({_PENDING, _CONFIRMED})

# Entering one of these returns the reserved stock to the catalog.
INVENTORY_RELEASE_STATES: FrozenSet[str] = frozenset({_CANCELLED, _REFUNDED})

# Fields a customer may change on their own pending order.
USER_ALLOWED_UPDATE_FIELDS: FrozenSet[str] = frozenset({"notes", "shipping_address"})

SHIPPING_ADDRESS_REQUIRED_FIELDS = (
    "full_name",
    "street",
    "city",
    "state",
    "postal_code",
    "country",
)


def can_transition(current: str, target: str) -> bool:
    """Return ``True`` if ``current -> target`` is in the transition table."""
    return str(target) in VALID_TRANSITIONS.get(str(current), frozenset())


def should_release_inventory(
    previous_status: str,
    next_status: Optional[str],
    already_released: bool,
) -> bool:
    """Decide whether reserved stock must be returned to the catalog.

    ``next_status`` is ``None`` when the order is being deleted.  Stock is
    returned at most once per order: the first time it enters a release
    state, or on deletion if that never happened.
    """
    if already_released:
        return False
    if next_status is None:
        return True
    return (
        str(next_status) in INVENTORY_RELEASE_STATES
        and str(previous_status) not in INVENTORY_RELEASE_STATES
    )
