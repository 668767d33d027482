"""Order and OrderItem models.

- Money is stored as ``Decimal`` with two places; totals are computed once
  at creation and never recomputed from the catalog.
- ``OrderItem`` snapshots product name, price and image at order time and
  keeps ``product_id`` as a plain UUID (no foreign key) so the line
  survives later catalog changes or product removal.
- ``inventory_released`` records that reserved stock has already been
  returned, so it is never returned twice.
- ``shipping_address`` and ``tracking`` are small JSON documents validated
  by the DTO layer before they reach the model.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    TERMINAL_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    can_transition,
)


_MONEY = {
    "max_digits": 12,
    "decimal_places": 2,
    "default": Decimal("0.00"),
    "validators": [MinValueValidator(Decimal("0.00"))],
}


class Order(BaseModel):
    """Order aggregate root."""

    user_id = models.CharField(max_length=128, db_index=True)
    user_email = models.EmailField(max_length=254)
    subtotal = models.DecimalField(**_MONEY)
    tax_amount = models.DecimalField(**_MONEY)
    shipping_cost = models.DecimalField(**_MONEY)
    total_amount = models.DecimalField(**_MONEY)
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_method = models.CharField(max_length=32, choices=PaymentMethod.choices)
    shipping_address = models.JSONField()
    tracking = models.JSONField(null=True, blank=True, default=None)
    notes = models.TextField(blank=True, default="")
    inventory_released = models.BooleanField(default=False)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "-created_at"], name="orders_status_created_idx"),
            models.Index(fields=["user_id", "-created_at"], name="orders_user_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return str(self.status) in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        return can_transition(self.status, new_status)

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == str(user_id)

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"


class OrderItem(BaseModel):
    """Line item with an immutable product snapshot.

    ``line_total`` is always ``quantity * unit_price``, recalculated on
    every save.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    position = models.PositiveSmallIntegerField(default=0)
    product_id = models.UUIDField()
    product_name = models.CharField(max_length=255)
    product_image = models.CharField(max_length=1024, blank=True, default="")
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    line_total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.line_total = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (${self.line_total})"
