"""Inventory repository interface.

The order subsystem's only window into the catalog: read a product
snapshot, lock product rows for the duration of an order transaction,
and atomically reserve (decrement) or release (increment) stock.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from modules.core.repositories.interfaces import IRepository
from modules.products.dtos import ProductForOrderDTO

if TYPE_CHECKING:
    from modules.products.models import Product


class IInventoryRepository(IRepository[ProductForOrderDTO]):
    """Repository contract for product stock.

    ``quantity`` arguments must be positive ``int`` values; anything else
    is a programming error in the caller and raises ``ValueError``.
    """

    def find_by_id(self, product_id: str) -> Optional[ProductForOrderDTO]:
        """Alias of ``get_by_id`` matching the catalog lookup capability."""
        return self.get_by_id(product_id)

    @abstractmethod
    def get_for_update(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Lock and return the given products keyed by ``str(id)``.

        Rows are locked in ascending id order.  Unknown or malformed ids are
        simply absent from the result.  Must run inside a transaction.
        """

    @abstractmethod
    def reserve(self, product_id: str, quantity: int) -> None:
        """Atomically decrement stock.

        Raises:
            ProductNotFound: the product does not exist.
            InsufficientStock: fewer than ``quantity`` units are available.
        """

    @abstractmethod
    def release(self, product_id: str, quantity: int) -> bool:
        """Atomically increment stock.

        Returns ``False`` (and does nothing) when the product no longer
        exists.
        """
