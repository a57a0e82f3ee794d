"""Favorites URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.favorites.views import FavoriteViewSet

router = DefaultRouter(trailing_slash=True)
router.register("favorites", FavoriteViewSet, basename="favorite")

urlpatterns = router.urls
