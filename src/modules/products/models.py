"""Catalog models: products, stock rows, images and per-user special prices.

Rules kept at the model level:
- SKU is unique and normalised to uppercase.
- Prices are never negative; stock quantities never drop below zero
  (DB check constraints back the atomic stock updates).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel) plus the
  ``deleted`` status so the catalog query needs a single filter.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

DEFAULT_STOCK_UNIT = "unit"


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    DRAFT = "draft", "Draft"
    PAUSED = "paused", "Paused"
    DELETED = "deleted", "Deleted"


class Product(SoftDeleteModel):
    """Product aggregate root.

    ``iva`` is stored as entered by the back office: either a fraction
    (``0.21``) or a percentage (``21``).  ``modules.products.pricing``
    normalises it.  ``wholesale_price`` is optional; business buyers fall
    back to ``list_price`` when it is missing.
    """

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.SlugField(max_length=100, blank=True, default="")
    list_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    wholesale_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
    )
    iva = models.DecimalField(max_digits=7, decimal_places=4, null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(list_price__gte=0),
                name="products_list_price_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.list_price is not None and self.list_price < 0:
            raise ValidationError({"list_price": "Price cannot be negative."})

    def save(self, *args, **kwargs) -> None:
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_sellable(self) -> bool:
        return self.status == ProductStatus.ACTIVE and not self.is_deleted

    @property
    def available_stock(self) -> int:
        """Default-unit quantity; served from ``prefetch_related("stock_rows")``."""
        for row in self.stock_rows.all():
            if row.unit == DEFAULT_STOCK_UNIT:
                return row.quantity
        return 0

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"


class ProductStock(BaseModel):
    """Available quantity of a product for one unit of measure."""

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="stock_rows",
    )
    unit = models.CharField(max_length=20, default=DEFAULT_STOCK_UNIT)
    quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "products_stock"
        constraints = [
            models.UniqueConstraint(
                fields=["product", "unit"],
                name="products_stock_product_unit_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name="products_stock_quantity_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} [{self.unit}]: {self.quantity}"


class ProductImage(BaseModel):
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="images",
    )
    url = models.URLField(max_length=500)
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        db_table = "product_images"
        ordering = ["position", "created_at"]


class ProductDiscount(BaseModel):
    """Special price of a product for one user.

    ``valid_from`` / ``valid_to`` bound the window; a null bound is open.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="product_discounts",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="discounts",
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    valid_from = models.DateTimeField(null=True, blank=True)
    valid_to = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products_discounts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["user", "product", "is_active"],
                name="discounts_user_product_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "product"],
                condition=models.Q(is_active=True),
                name="discounts_one_active_per_user_product",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValidationError({"valid_to": "valid_to must be after valid_from."})

    def __str__(self) -> str:
        return f"{self.product_id} @ {self.price} for user {self.user_id}"
