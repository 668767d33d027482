"""Order repository interface.

Extends ``IRepository[Order]`` with the operations the Order aggregate
needs: atomic creation with stock reservation, guarded updates that
decide inventory release on the locked row, cursor-paginated listings
and server-side statistics.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO, OrderPage
    from modules.orders.models import Order


# Called with the locked order before any write; raising aborts the update.
UpdateGuard = Callable[["Order"], None]


@dataclass(frozen=True)
class OrderUpdateResult:
    order: Order
    previous_status: str
    inventory_released: bool

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.order.status


@dataclass(frozen=True)
class OrderDeletionResult:
    order_id: str
    user_id: str
    previous_status: str
    inventory_released: bool


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate is an Order with its OrderItem children.  Every mutation
    is a single transaction.
    """

    @abstractmethod
    def create(self, data: CreateOrderDTO, user_id: str, user_email: str) -> Order:
        """Reserve stock for every line and persist the priced order.

        Raises:
            ProductNotFound: a referenced product does not exist.
            InsufficientStock: the summed quantity of a product exceeds stock.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched items, ``None`` if absent."""

    @abstractmethod
    def is_owned_by_user(self, order_id: str, user_id: str) -> bool:
        """``True`` when the order exists and belongs to ``user_id``."""

    @abstractmethod
    def list_by_user(
        self,
        user_id: str,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> OrderPage:
        """Newest-first page of one user's orders."""

    @abstractmethod
    def list_all(
        self,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        status: Optional[str] = None,
    ) -> OrderPage:
        """Newest-first page of every order, optionally of one status."""

    @abstractmethod
    def update(
        self,
        order_id: str,
        changes: Dict[str, Any],
        guard: Optional[UpdateGuard] = None,
    ) -> OrderUpdateResult:
        """Apply ``changes`` to the locked order.

        ``guard`` sees the locked row first.  When the status change calls
        for it, reserved stock is returned in the same transaction.

        Raises:
            OrderNotFound: the order does not exist.
        """

    @abstractmethod
    def delete(self, order_id: str) -> OrderDeletionResult:
        """Return un-released stock, then remove the order.

        Raises:
            OrderNotFound: the order does not exist.
        """

    @abstractmethod
    def get_stats(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Counts and revenue of orders created inside the window."""
