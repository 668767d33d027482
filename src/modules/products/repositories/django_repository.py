"""Django ORM implementation of the inventory repository.

Stock changes are single conditional ``UPDATE`` statements using ``F()``
expressions, so the read-check-write happens inside the database:

    UPDATE products SET stock = stock - q WHERE id = ? AND stock >= q

Two concurrent reservations of the last unit cannot both match the
``WHERE`` clause, regardless of isolation level or whether the backend
honours ``SELECT ... FOR UPDATE``.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.dtos import ProductForOrderDTO
from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.models import Product
from modules.products.repositories.interfaces import IInventoryRepository

logger = structlog.get_logger(__name__)


class ProductInventoryRepository(IInventoryRepository):
    """Concrete inventory repository backed by the ``products`` table."""

    def get_by_id(self, id: str) -> Optional[ProductForOrderDTO]:
        """Retrieve a product snapshot.

        Returns ``None`` for non-existent or malformed IDs.
        """
        pk = _parse_id(id)
        if pk is None:
            return None
        product = Product.objects.filter(id=pk).first()
        if product is None:
            return None
        return ProductForOrderDTO.from_entity(product)

    def get_for_update(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        pks: List[UUID] = sorted(
            {pk for pk in (_parse_id(pid) for pid in product_ids) if pk is not None}
        )
        if not pks:
            return {}
        products = Product.objects.select_for_update().filter(id__in=pks).order_by("id")
        return {str(product.id): product for product in products}

    @transaction.atomic
    def reserve(self, product_id: str, quantity: int) -> None:
        _validate_quantity(quantity)
        pk = _parse_id(product_id)
        if pk is None:
            raise ProductNotFound(product_id)

        updated = Product.objects.filter(id=pk, stock__gte=quantity).update(
            stock=F("stock") - quantity,
            updated_at=timezone.now(),
        )
        if updated:
            logger.info(
                "inventory.stock_reserved",
                product_id=str(pk),
                quantity=quantity,
            )
            return

        row = Product.objects.filter(id=pk).values_list("stock", "name").first()
        if row is None:
            raise ProductNotFound(product_id)
        available, name = row
        logger.warning(
            "inventory.insufficient_stock",
            product_id=str(pk),
            available=available,
            requested=quantity,
        )
        raise InsufficientStock(str(pk), available, quantity, product_name=name)

    @transaction.atomic
    def release(self, product_id: str, quantity: int) -> bool:
        _validate_quantity(quantity)
        pk = _parse_id(product_id)
        updated = 0
        if pk is not None:
            updated = Product.objects.filter(id=pk).update(
                stock=F("stock") + quantity,
                updated_at=timezone.now(),
            )
        if not updated:
            logger.warning(
                "inventory.release_skipped",
                product_id=str(product_id),
                quantity=quantity,
                reason="product_missing",
            )
            return False

        logger.info("inventory.stock_released", product_id=str(pk), quantity=quantity)
        return True


def _parse_id(product_id: object) -> Optional[UUID]:
    if isinstance(product_id, UUID):
        return product_id
    try:
        return UUID(str(product_id))
    except (TypeError, ValueError, AttributeError):
        return None


def _validate_quantity(quantity: object) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError(f"Quantity must be a positive integer, got {quantity!r}.")
