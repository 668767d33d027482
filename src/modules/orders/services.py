"""Order service layer (Use Cases).

Orchestrates order creation, retrieval, role-aware updates, cancellation,
deletion and statistics.  Every write is delegated to a single repository
transaction; authorisation and transition checks run as a *guard* on the
order row locked inside that transaction, so a rejected request never
mutates state.

Business rules enforced:
- An order has at least one item, positive quantities and a complete
  shipping address.
- Stock is reserved atomically; see ``OrderDjangoRepository.create``.
- Status changes follow ``VALID_TRANSITIONS``; same-state changes are
  rejected.
- Customers may only edit ``notes`` / ``shipping_address`` of their own
  pending orders; admins may also set status, payment status and tracking.
- Stock is returned at most once, on entering cancelled/refunded or on
  deletion (``should_release_inventory``).

Side effects (customer notification, domain events) are registered with
``transaction.on_commit`` and never roll back or fail the operation.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional
from uuid import UUID

import structlog
from django.db import transaction

from modules.orders.constants import (
    CANCELLABLE_STATES,
    SHIPPING_ADDRESS_REQUIRED_FIELDS,
    USER_ALLOWED_UPDATE_FIELDS,
    OrderStatus,
    can_transition,
)
from modules.orders.events import OrderCreated, OrderDeleted, OrderStatusChanged
from modules.orders.exceptions import (
    IncompleteShippingAddress,
    InvalidOrderInput,
    InvalidOrderStatus,
    InvalidStatsWindow,
    OrderAccessDenied,
    OrderNotFound,
    OrderNotModifiable,
    RestrictedFieldUpdate,
)
from modules.orders.dtos import OrderStatsDTO
from modules.orders.pricing import to_money

if TYPE_CHECKING:
    from modules.orders.dtos import (
        CreateOrderDTO,
        OrderPage,
        ShippingAddressDTO,
        UpdateOrderDTO,
    )
    from modules.orders.models import Order
    from modules.orders.notifications import IOrderNotifier
    from modules.orders.repositories.interfaces import (
        IOrderRepository,
        OrderUpdateResult,
    )
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


def ensure_transition(current: str, target: str) -> None:
    """Raise ``InvalidOrderStatus`` unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidOrderStatus(current, target)


def ensure_complete_address(address: Optional[ShippingAddressDTO]) -> None:
    if address is None:
        raise IncompleteShippingAddress(SHIPPING_ADDRESS_REQUIRED_FIELDS)
    missing = address.missing_fields()
    if missing:
        raise IncompleteShippingAddress(missing)


class OrderService:
    """Application service for Order use-cases.

    Receives the repository, the notifier and the event bus via
    constructor injection (DIP).  ``notifier`` and ``event_bus`` are
    optional; without them the matching side effect is skipped.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        notifier: Optional[IOrderNotifier] = None,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._notifier = notifier
        self._event_bus = event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO, user_id: str, user_email: str) -> Order:
        """Create a new order with atomic stock reservation.

        Raises:
            InvalidOrderInput: no items, a blank product id or a
                non-positive quantity.
            IncompleteShippingAddress: missing or incomplete address.
            ProductNotFound: a product does not exist.
            InsufficientStock: not enough stock for a product.
        """
        log = logger.bind(user_id=str(user_id))
        log.info("order.creation_started", item_count=len(dto.items))

        if not dto.items:
            raise InvalidOrderInput("Order must contain at least one item.")
        ensure_complete_address(dto.shipping_address)
        for item in dto.items:
            if not (item.product_id or "").strip():
                raise InvalidOrderInput("Each item must reference a product.")
            if isinstance(item.quantity, bool) or item.quantity <= 0:
                raise InvalidOrderInput(
                    f"Invalid quantity for product {item.product_id}: must be a positive integer.",
                    details={"product_id": item.product_id, "quantity": item.quantity},
                )

        order = self._order_repo.create(dto, str(user_id), user_email)

        self._after_commit(
            "order.side_effect_failed",
            lambda: self._publish(
                OrderCreated(
                    aggregate_id=order.id,
                    user_id=order.user_id,
                    total_amount=order.total_amount,
                    item_count=len(dto.items),
                )
            ),
            order_id=str(order.id),
            side_effect="event",
        )
        return order

    def update_order(
        self,
        order_id: str,
        patch: UpdateOrderDTO,
        user_id: str,
        is_admin: bool = False,
    ) -> Order:
        """Apply a partial update according to the actor's rights.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAccessDenied: a customer targets someone else's order.
            OrderNotModifiable: a customer edits a non-pending order.
            RestrictedFieldUpdate: a customer touches admin-only fields.
            InvalidOrderStatus: the status change is not allowed.
            IncompleteShippingAddress: a supplied address is incomplete.
        """
        supplied = patch.supplied_fields
        changes = patch.to_changes()

        def guard(order: Order) -> None:
            if not is_admin:
                self._ensure_owner(order, user_id)
                if order.status != OrderStatus.PENDING:
                    raise OrderNotModifiable(
                        f"Order in status {order.status} can no longer be modified.",
                        details={"status": order.status},
                    )
                restricted = supplied - USER_ALLOWED_UPDATE_FIELDS
                if restricted:
                    logger.warning(
                        "order.restricted_update_rejected",
                        order_id=str(order.id),
                        user_id=str(user_id),
                        fields=sorted(restricted),
                    )
                    raise RestrictedFieldUpdate(restricted)
            if "status" in supplied:
                if "status" not in changes:
                    raise InvalidOrderInput("Status cannot be null.")
                ensure_transition(order.status, changes["status"])
            if "shipping_address" in supplied:
                ensure_complete_address(patch.shipping_address)

        result = self._order_repo.update(order_id, changes, guard=guard)
        self._on_status_change(result, actor_id=str(user_id))
        return result.order

    def cancel_order(self, order_id: str, user_id: str, is_admin: bool = False) -> Order:
        """Cancel a pending or confirmed order and return its stock.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAccessDenied: a customer targets someone else's order.
            InvalidOrderStatus: the order is past the cancellable states.
        """

        def guard(order: Order) -> None:
            if not is_admin:
                self._ensure_owner(order, user_id)
            if order.status not in CANCELLABLE_STATES:
                raise InvalidOrderStatus(
                    order.status,
                    OrderStatus.CANCELLED.value,
                    f"Order cannot be cancelled in status {order.status}.",
                )

        result = self._order_repo.update(
            order_id, {"status": OrderStatus.CANCELLED.value}, guard=guard
        )
        self._on_status_change(result, actor_id=str(user_id))
        return result.order

    def delete_order(self, order_id: str, actor_id: Optional[str] = None) -> None:
        """Remove an order, returning stock that was never released.

        Raises:
            OrderNotFound: the order does not exist.
        """
        result = self._order_repo.delete(order_id)
        logger.info(
            "order.delete_completed",
            order_id=result.order_id,
            actor_id=actor_id,
            inventory_released=result.inventory_released,
        )
        self._after_commit(
            "order.side_effect_failed",
            lambda: self._publish(
                OrderDeleted(
                    aggregate_id=UUID(result.order_id),
                    actor_id=str(actor_id or ""),
                    inventory_released=result.inventory_released,
                )
            ),
            order_id=result.order_id,
            side_effect="event",
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, user_id: str, is_admin: bool = False) -> Order:
        """Retrieve a single order visible to the actor.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAccessDenied: a customer asks for someone else's order.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        if not is_admin:
            self._ensure_owner(order, user_id)
        return order

    def get_user_orders(
        self,
        user_id: str,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> OrderPage:
        _ensure_limit(limit)
        return self._order_repo.list_by_user(str(user_id), limit=limit, cursor=cursor)

    def get_all_orders(
        self,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        status: Optional[str] = None,
    ) -> OrderPage:
        _ensure_limit(limit)
        if status is not None and status not in OrderStatus.values:
            raise InvalidOrderInput(
                f"Unknown order status: {status}",
                details={"status": status},
            )
        return self._order_repo.list_all(limit=limit, cursor=cursor, status=status)

    def get_order_stats(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> OrderStatsDTO:
        """Totals, average order value and a zero-filled status breakdown.

        Raises:
            InvalidStatsWindow: ``end_date`` precedes ``start_date``.
        """
        if start_date is not None and end_date is not None and end_date < start_date:
            raise InvalidStatsWindow(
                "end_date must not be earlier than start_date.",
                details={
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                },
            )

        stats = self._order_repo.get_stats(start_date, end_date)
        total_orders = stats["total_orders"]
        total_revenue = to_money(stats["total_revenue"])
        average = to_money(total_revenue / total_orders) if total_orders else to_money(0)
        breakdown = {status: 0 for status in OrderStatus.values}
        breakdown.update(stats["status_breakdown"])

        return OrderStatsDTO(
            total_orders=total_orders,
            total_revenue=total_revenue,
            average_order_value=average,
            pending_orders=breakdown[OrderStatus.PENDING.value],
            status_breakdown=breakdown,
        )

    def does_user_own_order(self, order_id: str, user_id: str) -> bool:
        return self._order_repo.is_owned_by_user(order_id, str(user_id))

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_owner(order: Order, user_id: str) -> None:
        if not order.is_owned_by(user_id):
            logger.warning(
                "order.access_denied",
                order_id=str(order.id),
                user_id=str(user_id),
            )
            raise OrderAccessDenied("You do not have access to this order.")

    def _on_status_change(self, result: OrderUpdateResult, actor_id: str) -> None:
        """Register notification and event for a realised status change."""
        if not result.status_changed:
            return

        order = result.order
        previous_status = result.previous_status
        new_status = order.status
        logger.info(
            "order.status_changed",
            order_id=str(order.id),
            previous_status=previous_status,
            new_status=new_status,
            actor_id=actor_id,
            inventory_released=result.inventory_released,
        )

        if self._notifier is not None:
            notifier = self._notifier
            self._after_commit(
                "order.notification_failed",
                lambda: notifier.send_order_status_update(
                    order.user_email, str(order.id), previous_status, new_status
                ),
                order_id=str(order.id),
                new_status=new_status,
            )

        self._after_commit(
            "order.side_effect_failed",
            lambda: self._publish(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    order=order,
                    previous_status=previous_status,
                    new_status=new_status,
                    actor_id=actor_id,
                )
            ),
            order_id=str(order.id),
            side_effect="event",
        )

    def _publish(self, event: Any) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)

    @staticmethod
    def _after_commit(failure_event: str, hook: Callable[[], None], **context: Any) -> None:
        """Run ``hook`` once the current transaction commits; log failures."""

        def run() -> None:
            try:
                hook()
            except Exception:
                logger.exception(failure_event, **context)

        transaction.on_commit(run)


def _ensure_limit(limit: Optional[int]) -> None:
    if limit is None:
        return
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidOrderInput(
            "limit must be a positive integer.",
            details={"limit": limit},
        )
