"""Order aggregate: Order, OrderLine, OrderAddress, OrderPayment, OrderCounter.

- ``order_number`` is allocated by ``modules.orders.counter`` inside the
  creation transaction (``YYYYMMDDHHMM`` bucket + 3-digit sequence).
- The user FK uses PROTECT to preserve financial history.
- OrderLine snapshots product name and unit price at order time; later
  catalog changes never touch historical orders.
- OrderLine ``total_price`` is always ``quantity * unit_price``
  (recalculated on save).
- Lines, addresses and payments cascade with their order.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.orders.constants import (
    EDITABLE_STATUSES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    AddressType,
    OrderStatus,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin


def default_currency() -> str:
    return settings.DEFAULT_CURRENCY


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    The UUIDv7 ``id`` is used for internal references and API look-ups;
    ``order_number`` is the human-readable identifier shown to buyers.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    currency: models.CharField = models.CharField(
        max_length=3, default=default_currency
    )
    earned_points: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    delivery_date: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    cancellation_reason: models.TextField = models.TextField(blank=True, default="")
    cancellation_date: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    invoice_file_url: models.URLField = models.URLField(
        max_length=500, blank=True, default=""
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["user", "-created_at"], name="orders_user_created_idx"
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_editable(self) -> bool:
        """Lines may only change while the order is pending or accepted."""
        return self.status in EDITABLE_STATUSES

    def can_transition_to(self, new_status: str) -> bool:
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderLine(BaseModel):
    """One product in an order, priced at order time."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_lines",
    )
    product_name: models.CharField = models.CharField(max_length=255)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    total_price: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_lines"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_lines_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.total_price = (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_price" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["total_price"]
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.total_price})"


class OrderAddress(BaseModel):
    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    type: models.CharField = models.CharField(
        max_length=20, choices=AddressType.choices
    )
    full_name: models.CharField = models.CharField(max_length=255)
    address_line1: models.CharField = models.CharField(max_length=255)
    address_line2: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    city: models.CharField = models.CharField(max_length=120)
    state: models.CharField = models.CharField(max_length=120, blank=True, default="")
    postal_code: models.CharField = models.CharField(max_length=20)
    country: models.CharField = models.CharField(max_length=80)
    phone: models.CharField = models.CharField(max_length=40, blank=True, default="")

    class Meta:
        db_table = "order_addresses"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.type}: {self.full_name}, {self.city}"


class OrderPayment(BaseModel):
    """Payment recorded against an order. Gateways are not integrated."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    payment_method: models.CharField = models.CharField(max_length=50)
    amount: models.DecimalField = models.DecimalField(max_digits=12, decimal_places=2)
    transaction_id: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    metadata: models.JSONField = models.JSONField(default=dict, blank=True)
    status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    paid_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "order_payments"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.payment_method} {self.amount} [{self.status}]"


class OrderCounter(models.Model):
    """Per-minute sequence backing ``order_number``.

    Rows are created on first use and never deleted.
    """

    date_key: models.CharField = models.CharField(max_length=12, primary_key=True)
    last_value: models.PositiveIntegerField = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "order_counters"

    def __str__(self) -> str:
        return f"{self.date_key}: {self.last_value}"
