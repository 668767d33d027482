"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  These are the
contracts between the API layer (DRF serializers) and the Service Layer.
DTOs are immutable (``frozen=True``).

The DTOs only check *shape* (types, enum members).  Business preconditions
such as "at least one item", "positive quantity" or "complete address" are
enforced by ``OrderService`` so that they surface as ``BadRequest`` domain
errors no matter who builds the DTO.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import (
    SHIPPING_ADDRESS_REQUIRED_FIELDS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


class ShippingAddressDTO(BaseModel):
    """Delivery address; every field but ``phone`` is mandatory."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    full_name: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    phone: Optional[str] = None

    def missing_fields(self) -> List[str]:
        """Names of mandatory fields that are blank."""
        return [
            name
            for name in SHIPPING_ADDRESS_REQUIRED_FIELDS
            if not (getattr(self, name) or "").strip()
        ]

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class TrackingDTO(BaseModel):
    """Carrier tracking details set by an admin."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    carrier: Optional[str] = None
    tracking_number: Optional[str] = None
    shipped_at: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """A single requested line: product reference and quantity.

    Name and price are resolved from the catalog inside the order
    transaction, never taken from the client.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    quantity: int

    @field_validator("product_id", mode="before")
    @classmethod
    def product_id_as_string(cls, v: Any) -> Any:
        if isinstance(v, UUID):
            return str(v)
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests."""

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO] = Field(default_factory=list)
    payment_method: PaymentMethod
    shipping_address: Optional[ShippingAddressDTO] = None
    notes: Optional[str] = ""


class UpdateOrderDTO(BaseModel):
    """Partial update of an order.

    Only the fields explicitly supplied by the caller are applied
    (``model_fields_set``); omitted fields are left untouched.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    tracking: Optional[TrackingDTO] = None
    notes: Optional[str] = None
    shipping_address: Optional[ShippingAddressDTO] = None

    @property
    def supplied_fields(self) -> FrozenSet[str]:
        return frozenset(self.model_fields_set)

    def to_changes(self) -> Dict[str, Any]:
        """Translate supplied fields into model column values."""
        supplied = self.model_fields_set
        changes: Dict[str, Any] = {}
        if "status" in supplied and self.status is not None:
            changes["status"] = str(self.status.value)
        if "payment_status" in supplied and self.payment_status is not None:
            changes["payment_status"] = str(self.payment_status.value)
        if "notes" in supplied:
            changes["notes"] = self.notes or ""
        if "shipping_address" in supplied and self.shipping_address is not None:
            changes["shipping_address"] = self.shipping_address.to_document()
        if "tracking" in supplied:
            changes["tracking"] = (
                self.tracking.to_document() if self.tracking is not None else None
            )
        return changes


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderPage(BaseModel):
    """One page of a cursor-paginated order listing."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    items: List[Any]
    has_more: bool = False
    next_cursor: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.items)


class OrderStatsDTO(BaseModel):
    """Aggregated order figures for the admin dashboard."""

    model_config = ConfigDict(frozen=True)

    total_orders: int
    total_revenue: Decimal
    average_order_value: Decimal
    pending_orders: int
    status_breakdown: Dict[str, int]
