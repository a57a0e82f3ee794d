"""Points URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.points.views import MyPointsViewSet

router = DefaultRouter(trailing_slash=True)
router.register("points/me", MyPointsViewSet, basename="my-points")

urlpatterns = router.urls
