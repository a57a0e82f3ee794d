"""Favorites API: the authenticated user's bookmarked products."""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.favorites.dtos import AddFavoriteDTO
from modules.favorites.repositories import FavoriteDjangoRepository
from modules.favorites.serializers import (
    AddFavoriteSerializer,
    FavoriteSerializer,
    FavoritesListSerializer,
)
from modules.favorites.services import FavoriteService
from modules.products.repositories import ProductDjangoRepository


class FavoriteViewSet(ViewSet):
    """``/api/v1/favorites/``; ``pk`` is the product id."""

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = FavoriteService(
            repository=FavoriteDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/favorites/"""
        return Response(
            FavoritesListSerializer(self._service.get_favorites(request.user.id)).data
        )

    def create(self, request: Request) -> Response:
        """POST /api/v1/favorites/  ``{"product_id": ...}``"""
        serializer = AddFavoriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        favorite = self._service.add_favorite(
            request.user.id, AddFavoriteDTO(**serializer.validated_data)
        )
        return Response(
            FavoriteSerializer(favorite).data, status=status.HTTP_201_CREATED
        )

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/favorites/{product_id}/"""
        self._service.remove_favorite(request.user.id, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def check(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/favorites/{product_id}/check/"""
        return Response({"is_favorite": self._service.is_favorite(request.user.id, pk)})
