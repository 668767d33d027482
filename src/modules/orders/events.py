"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from shared.domain.events import DomainEvent

if TYPE_CHECKING:
    from modules.orders.models import Order


@dataclass(frozen=True, kw_only=True)
class OrderCreated(DomainEvent):
    """Raised after an order and its stock reservation are committed."""

    user_id: str
    total_amount: Decimal
    item_count: int


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised after a committed update that actually changed the status."""

    order: Optional[Order] = field(default=None, compare=False, repr=False)
    previous_status: str
    new_status: str
    actor_id: str


@dataclass(frozen=True, kw_only=True)
class OrderDeleted(DomainEvent):
    """Raised after an order has been removed by an admin."""

    actor_id: str
    inventory_released: bool
