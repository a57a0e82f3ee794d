"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import AddressType, OrderStatus, PaymentStatus
from modules.orders.models import Order, OrderAddress, OrderLine, OrderPayment

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class OrderLineInputSerializer(serializers.Serializer):
    """Validates a single line in an order creation or add-line request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class OrderAddressInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=AddressType.choices)
    full_name = serializers.CharField(max_length=255)
    address_line1 = serializers.CharField(max_length=255)
    address_line2 = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(
        max_length=120, required=False, allow_blank=True, default=""
    )
    postal_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=80)
    phone = serializers.CharField(
        max_length=40, required=False, allow_blank=True, default=""
    )


class OrderPaymentInputSerializer(serializers.Serializer):
    payment_method = serializers.CharField(max_length=50)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, required=False
    )
    transaction_id = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    metadata = serializers.DictField(required=False, default=dict)
    status = serializers.ChoiceField(
        choices=PaymentStatus.choices, required=False, default=PaymentStatus.PENDING
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload.

    Prices are never accepted from the client.
    """

    lines = OrderLineInputSerializer(many=True, allow_empty=False)
    addresses = OrderAddressInputSerializer(many=True, required=False, default=list)
    payments = OrderPaymentInputSerializer(many=True, required=False, default=list)
    currency = serializers.CharField(min_length=3, max_length=3, required=False)
    points_earned = serializers.IntegerField(min_value=0, required=False, default=0)


class UpdateOrderLineSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)


class UpdateOrderSerializer(serializers.Serializer):
    """Admin status / metadata patch; only supplied keys are applied."""

    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    delivery_date = serializers.DateTimeField(required=False, allow_null=True)
    cancellation_reason = serializers.CharField(
        required=False, allow_blank=True, allow_null=True
    )
    cancellation_date = serializers.DateTimeField(required=False, allow_null=True)
    currency = serializers.CharField(min_length=3, max_length=3, required=False)
    invoice_file_url = serializers.URLField(
        max_length=500, required=False, allow_blank=True, allow_null=True
    )


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=False, trim_whitespace=True)


class AdminOrderQuerySerializer(serializers.Serializer):
    """Query string of ``GET /orders/admin/all/``.

    ``sortField`` outside the whitelist falls back to newest first.
    """

    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, required=False, default=20)
    sortField = serializers.CharField(required=False)
    sortDirection = serializers.ChoiceField(
        choices=["asc", "desc", "ASC", "DESC"], required=False
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderLineSerializer(serializers.ModelSerializer):
    """Read serializer for order lines with the product snapshot."""

    class Meta:
        model = OrderLine
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "total_price",
        ]
        read_only_fields = fields


class OrderAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderAddress
        fields = [
            "id",
            "type",
            "full_name",
            "address_line1",
            "address_line2",
            "city",
            "state",
            "postal_code",
            "country",
            "phone",
        ]
        read_only_fields = fields


class OrderPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderPayment
        fields = [
            "id",
            "payment_method",
            "amount",
            "transaction_id",
            "status",
            "paid_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested lines, addresses and payments."""

    user_name = serializers.CharField(
        source="user.username", read_only=True, default=None
    )
    lines = OrderLineSerializer(many=True, read_only=True)
    addresses = OrderAddressSerializer(many=True, read_only=True)
    payments = OrderPaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "user_name",
            "status",
            "total_amount",
            "currency",
            "earned_points",
            "delivery_date",
            "cancellation_reason",
            "cancellation_date",
            "invoice_file_url",
            "created_at",
            "updated_at",
            "lines",
            "addresses",
            "payments",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested relations)."""

    user_name = serializers.CharField(
        source="user.username", read_only=True, default=None
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "user_id",
            "user_name",
            "status",
            "total_amount",
            "currency",
            "created_at",
        ]
        read_only_fields = fields
