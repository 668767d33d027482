"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).  Input
serializers only check transport shape; business preconditions (at least
one item, positive quantities, complete address) are enforced by the
Service Layer, which receives Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from modules.orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from modules.orders.models import Order, OrderItem

NOTES_MAX_LENGTH = 500

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ShippingAddressSerializer(serializers.Serializer):
    full_name = serializers.CharField(required=False, allow_blank=True, default="")
    street = serializers.CharField(required=False, allow_blank=True, default="")
    city = serializers.CharField(required=False, allow_blank=True, default="")
    state = serializers.CharField(required=False, allow_blank=True, default="")
    postal_code = serializers.CharField(required=False, allow_blank=True, default="")
    country = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class TrackingSerializer(serializers.Serializer):
    carrier = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    tracking_number = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    shipped_at = serializers.DateTimeField(required=False, allow_null=True)
    estimated_delivery = serializers.DateTimeField(required=False, allow_null=True)


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.CharField(allow_blank=True)
    quantity = serializers.IntegerField()


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    items = CreateOrderItemSerializer(many=True, allow_empty=True)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    shipping_address = ShippingAddressSerializer(required=False, allow_null=True)
    notes = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=NOTES_MAX_LENGTH
    )


class UpdateOrderSerializer(serializers.Serializer):
    """Validates a partial update; only supplied keys reach ``validated_data``."""

    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False, allow_null=True)
    payment_status = serializers.ChoiceField(
        choices=PaymentStatus.choices, required=False, allow_null=True
    )
    tracking = TrackingSerializer(required=False, allow_null=True)
    notes = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=NOTES_MAX_LENGTH
    )
    shipping_address = ShippingAddressSerializer(required=False, allow_null=True)

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError(
                {name: "This field cannot be updated." for name in unknown}
            )
        return attrs


class OrderListQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, min_value=1)
    cursor = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)

    def validate_limit(self, value: int) -> int:
        max_limit = getattr(settings, "ORDER_PAGE_MAX_LIMIT", 100)
        if value > max_limit:
            raise serializers.ValidationError(
                f"Ensure this value is less than or equal to {max_limit}."
            )
        return value


class OrderStatsQuerySerializer(serializers.Serializer):
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product snapshot."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_image",
            "unit_price",
            "quantity",
            "line_total",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "user_email",
            "items",
            "subtotal",
            "tax_amount",
            "shipping_cost",
            "total_amount",
            "status",
            "payment_status",
            "payment_method",
            "shipping_address",
            "tracking",
            "notes",
            "inventory_released",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderStatsSerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    pending_orders = serializers.IntegerField()
    status_breakdown = serializers.DictField(child=serializers.IntegerField())
