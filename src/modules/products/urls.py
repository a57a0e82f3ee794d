"""Catalog URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.products.views import ProductViewSet, SpecialPriceViewSet

router = DefaultRouter(trailing_slash=True)
router.register("products", ProductViewSet, basename="product")

special_prices = SpecialPriceViewSet.as_view({"get": "list", "post": "create"})
special_price_detail = SpecialPriceViewSet.as_view(
    {"put": "update", "patch": "update", "delete": "destroy"}
)

urlpatterns = router.urls + [
    path(
        "users/<int:user_id>/special-prices/",
        special_prices,
        name="special-price-list",
    ),
    path(
        "users/<int:user_id>/special-prices/<uuid:pk>/",
        special_price_detail,
        name="special-price-detail",
    ),
]
