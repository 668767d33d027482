"""Product model: the catalog fields the order subsystem depends on.

Catalog management (descriptions, categories, uploads) lives outside this
service.  Orders read ``name``, ``price`` and ``image_urls`` as a snapshot
and mutate ``stock`` only, through ``IInventoryRepository``.

Database guarantees:
- ``stock`` can never go negative (check constraint), so a buggy caller
  fails loudly instead of overselling.
- ``price`` cannot be negative (check constraint).
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Product(BaseModel):
    """Catalog product as seen by the order subsystem."""

    name = models.CharField(max_length=255)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    stock = models.IntegerField(default=0)
    image_urls = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    @property
    def primary_image(self) -> str | None:
        """First catalog image URL, used as the order line snapshot."""
        for url in self.image_urls or []:
            if isinstance(url, str) and url:
                return url
        return None

    def __str__(self) -> str:
        return f"{self.name} (stock={self.stock})"
