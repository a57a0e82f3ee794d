"""Favorites DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.favorites.models import Favorite
from modules.products.models import Product


class AddFavoriteSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()


class FavoriteProductSerializer(serializers.ModelSerializer):
    images = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ["id", "sku", "name", "description", "category", "status", "images"]
        read_only_fields = fields

    def get_images(self, obj: Product) -> list[str]:
        return [image.url for image in obj.images.all()]


class FavoriteSerializer(serializers.ModelSerializer):
    product = FavoriteProductSerializer(read_only=True)

    class Meta:
        model = Favorite
        fields = ["product_id", "created_at", "product"]
        read_only_fields = fields


class FavoritesListSerializer(serializers.Serializer):
    favorites = FavoriteSerializer(many=True)
    total = serializers.IntegerField()
