"""Catalog DRF serializers for API input/output.

Input serializers validate the request shape; the views turn the
validated data into Pydantic DTOs from ``dtos.py`` for the services.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product, ProductDiscount, ProductStatus

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CatalogQuerySerializer(serializers.Serializer):
    """Public catalog query string (camelCase, as the storefront sends it)."""

    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(
        min_value=1, max_value=100, required=False, default=20
    )
    searchName = serializers.CharField(required=False, allow_blank=True)
    categoryFilters = serializers.CharField(required=False, allow_blank=True)
    sortByPrice = serializers.ChoiceField(choices=["asc", "desc"], required=False)


class ProductWriteSerializer(serializers.Serializer):
    sku = serializers.CharField(max_length=64)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.SlugField(required=False, allow_blank=True, default="")
    list_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    wholesale_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    iva = serializers.DecimalField(
        max_digits=7, decimal_places=4, min_value=0, required=False, allow_null=True
    )
    status = serializers.ChoiceField(
        choices=[s for s in ProductStatus.values if s != ProductStatus.DELETED],
        required=False,
        default=ProductStatus.ACTIVE,
    )
    stock_quantity = serializers.IntegerField(min_value=0, required=False, default=0)
    images = serializers.ListField(
        child=serializers.URLField(max_length=500), required=False, max_length=20
    )


class StockSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)


class SpecialPriceWriteSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    valid_from = serializers.DateTimeField(required=False, allow_null=True)
    valid_to = serializers.DateTimeField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False, default=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class ProductSerializer(serializers.ModelSerializer):
    """Back-office view of a product (raw prices, stock, images)."""

    stock_quantity = serializers.IntegerField(source="available_stock", read_only=True)
    images = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "category",
            "list_price",
            "wholesale_price",
            "iva",
            "status",
            "stock_quantity",
            "images",
            "created_at",
            "updated_at",
            "deleted_at",
        ]
        read_only_fields = fields

    def get_images(self, obj: Product) -> list[str]:
        return [image.url for image in obj.images.all()]


class SpecialPriceSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = ProductDiscount
        fields = [
            "id",
            "user_id",
            "product_id",
            "product_sku",
            "product_name",
            "price",
            "valid_from",
            "valid_to",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
