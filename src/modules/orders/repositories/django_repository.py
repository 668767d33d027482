"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Every write is one ``transaction.atomic()`` block: product rows are locked
(ascending id) and read before any stock is written, and order rows are
locked with ``select_for_update()`` before a guard or a status change is
evaluated.  ``retry_on_conflict`` re-runs a transaction that lost a
deadlock or serialization race.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import Count, Q, QuerySet, Sum

from modules.core.retry import retry_on_conflict
from modules.orders.constants import OrderStatus, should_release_inventory
from modules.orders.dtos import CreateOrderDTO, OrderPage
from modules.orders.exceptions import (
    InsufficientStock,
    OrderNotFound,
    OrderStoreUnavailable,
    ProductNotFound,
)
from modules.orders.models import Order, OrderItem
from modules.orders.pricing import PricingPolicy
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    OrderDeletionResult,
    OrderUpdateResult,
    UpdateGuard,
)
from modules.products.repositories import IInventoryRepository, ProductInventoryRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def __init__(
        self,
        inventory_repository: Optional[IInventoryRepository] = None,
        pricing: Optional[PricingPolicy] = None,
    ) -> None:
        self._inventory = inventory_repository or ProductInventoryRepository()
        self._pricing = pricing

    @property
    def pricing(self) -> PricingPolicy:
        return self._pricing or PricingPolicy.from_settings()

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @retry_on_conflict(error_class=OrderStoreUnavailable)
    @transaction.atomic
    def create(self, data: CreateOrderDTO, user_id: str, user_email: str) -> Order:
        """Create an order and reserve its stock in one transaction.

        1. Lock every referenced product (ascending id).
        2. Check existence and the *summed* quantity per product.
        3. Decrement stock, then persist order and items.
        """
        lines = [(_canonical_id(item.product_id), item.quantity) for item in data.items]
        requested: Dict[str, int] = defaultdict(int)
        for product_id, quantity in lines:
            requested[product_id] += quantity

        products = self._inventory.get_for_update(requested.keys())

        for product_id in sorted(requested):
            product = products.get(product_id)
            if product is None:
                raise ProductNotFound(product_id)
            if product.stock < requested[product_id]:
                logger.warning(
                    "order.insufficient_stock",
                    product_id=product_id,
                    available=product.stock,
                    requested=requested[product_id],
                )
                raise InsufficientStock(
                    product_id,
                    product.stock,
                    requested[product_id],
                    product_name=product.name,
                )

        for product_id in sorted(requested):
            self._inventory.reserve(product_id, requested[product_id])

        subtotal = sum(
            (products[product_id].price * quantity for product_id, quantity in lines),
            Decimal("0.00"),
        )
        prices = self.pricing.price(subtotal)

        order = Order.objects.create(
            user_id=str(user_id),
            user_email=user_email,
            subtotal=prices.subtotal,
            tax_amount=prices.tax_amount,
            shipping_cost=prices.shipping_cost,
            total_amount=prices.total_amount,
            status=OrderStatus.PENDING.value,
            payment_method=data.payment_method.value,
            shipping_address=data.shipping_address.to_document(),
            notes=data.notes or "",
        )

        for position, (product_id, quantity) in enumerate(lines):
            product = products[product_id]
            OrderItem(
                order=order,
                position=position,
                product_id=product.id,
                product_name=product.name,
                product_image=product.primary_image or "",
                unit_price=product.price,
                quantity=quantity,
            ).save()

        logger.info(
            "order.created",
            order_id=str(order.id),
            user_id=str(user_id),
            item_count=len(lines),
            total_amount=str(prices.total_amount),
        )
        return self._with_items().get(pk=order.pk)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its items.

        Returns ``None`` for non-existent or malformed IDs.
        """
        pk = _parse_id(id)
        if pk is None:
            return None
        return self._with_items().filter(id=pk).first()

    def is_owned_by_user(self, order_id: str, user_id: str) -> bool:
        pk = _parse_id(order_id)
        if pk is None:
            return False
        return Order.objects.filter(id=pk, user_id=str(user_id)).exists()

    def list_by_user(
        self,
        user_id: str,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> OrderPage:
        queryset = Order.objects.filter(user_id=str(user_id))
        return self._paginate(queryset, limit, cursor)

    def list_all(
        self,
        limit: Optional[int] = None,
        cursor: Optional[str] = None,
        status: Optional[str] = None,
    ) -> OrderPage:
        queryset = Order.objects.all()
        if status:
            queryset = queryset.filter(status=status)
        return self._paginate(queryset, limit, cursor)

    # ------------------------------------------------------------------
    # Update / Delete
    # ------------------------------------------------------------------

    @retry_on_conflict(error_class=OrderStoreUnavailable)
    @transaction.atomic
    def update(
        self,
        order_id: str,
        changes: Dict[str, Any],
        guard: Optional[UpdateGuard] = None,
    ) -> OrderUpdateResult:
        order = self._lock(order_id)
        if guard is not None:
            guard(order)

        previous_status = order.status
        next_status = changes.get("status", previous_status)
        released = False
        if next_status != previous_status and should_release_inventory(
            previous_status, next_status, order.inventory_released
        ):
            self._release_items(order)
            order.inventory_released = True
            released = True

        for field, value in changes.items():
            setattr(order, field, value)

        update_fields = list(changes)
        if released:
            update_fields.append("inventory_released")
        order.save(update_fields=update_fields)

        logger.info(
            "order.updated",
            order_id=str(order.id),
            fields=sorted(changes),
            previous_status=previous_status,
            new_status=order.status,
        )
        return OrderUpdateResult(
            order=self._with_items().get(pk=order.pk),
            previous_status=previous_status,
            inventory_released=released,
        )

    @retry_on_conflict(error_class=OrderStoreUnavailable)
    @transaction.atomic
    def delete(self, order_id: str) -> OrderDeletionResult:
        order = self._lock(order_id)
        released = False
        if should_release_inventory(order.status, None, order.inventory_released):
            self._release_items(order)
            released = True

        result = OrderDeletionResult(
            order_id=str(order.id),
            user_id=order.user_id,
            previous_status=order.status,
            inventory_released=released,
        )
        order.delete()
        logger.info(
            "order.deleted",
            order_id=result.order_id,
            inventory_released=released,
        )
        return result

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_stats(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Aggregate in the database; no order rows are loaded."""
        queryset = Order.objects.all()
        if start_date is not None:
            queryset = queryset.filter(created_at__gte=start_date)
        if end_date is not None:
            queryset = queryset.filter(created_at__lte=end_date)

        totals = queryset.aggregate(
            total_orders=Count("id"),
            total_revenue=Sum("total_amount"),
        )
        status_breakdown = {status: 0 for status in OrderStatus.values}
        for row in queryset.order_by().values("status").annotate(count=Count("id")):
            status_breakdown[row["status"]] = row["count"]

        return {
            "total_orders": totals["total_orders"] or 0,
            "total_revenue": totals["total_revenue"] or Decimal("0.00"),
            "status_breakdown": status_breakdown,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _with_items() -> QuerySet[Order]:
        return Order.objects.prefetch_related("items")

    def _lock(self, order_id: str) -> Order:
        pk = _parse_id(order_id)
        order = None
        if pk is not None:
            order = Order.objects.select_for_update().filter(id=pk).first()
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _release_items(self, order: Order) -> None:
        """Return every line's quantity to stock, products in ascending id."""
        quantities: Dict[str, int] = defaultdict(int)
        for product_id, quantity in OrderItem.objects.filter(order=order).values_list(
            "product_id", "quantity"
        ):
            quantities[str(product_id)] += quantity

        missing: List[str] = []
        for product_id in sorted(quantities):
            if not self._inventory.release(product_id, quantities[product_id]):
                missing.append(product_id)

        logger.info(
            "order.inventory_released",
            order_id=str(order.id),
            products=len(quantities),
            missing_products=missing,
        )

    def _paginate(
        self,
        queryset: QuerySet[Order],
        limit: Optional[int],
        cursor: Optional[str],
    ) -> OrderPage:
        """Keyset pagination on (``created_at`` desc, ``id`` desc).

        The cursor is the id of the last order of the previous page.  It is
        looked up inside the same filtered queryset, so an unknown cursor or
        one from another listing falls back to the first page.
        """
        cursor_pk = _parse_id(cursor) if cursor else None
        if cursor_pk is not None:
            anchor = queryset.filter(id=cursor_pk).values("created_at", "id").first()
            if anchor is not None:
                queryset = queryset.filter(
                    Q(created_at__lt=anchor["created_at"])
                    | Q(created_at=anchor["created_at"], id__lt=anchor["id"])
                )
            else:
                logger.info("order.cursor_ignored", cursor=cursor)

        queryset = queryset.order_by("-created_at", "-id").prefetch_related("items")
        if limit is None:
            return OrderPage(items=list(queryset))

        rows = list(queryset[: limit + 1])
        has_more = len(rows) > limit
        rows = rows[:limit]
        return OrderPage(
            items=rows,
            has_more=has_more,
            next_cursor=str(rows[-1].id) if has_more and rows else None,
        )


def _parse_id(value: object) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _canonical_id(product_id: str) -> str:
    pk = _parse_id(product_id)
    return str(pk) if pk is not None else str(product_id)
