"""Favorites use cases: bookmark, unbookmark, list and check products."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from django.db import transaction

from modules.favorites.exceptions import FavoriteAlreadyExists, FavoriteNotFound
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.favorites.dtos import AddFavoriteDTO
    from modules.favorites.models import Favorite
    from modules.favorites.repositories.interfaces import IFavoriteRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class FavoriteService:
    def __init__(
        self,
        repository: IFavoriteRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._repo = repository
        self._products = product_repository

    @transaction.atomic
    def add_favorite(self, user_id: int, dto: AddFavoriteDTO) -> Favorite:
        """Bookmark a product.

        Raises:
            ProductNotFound: unknown or deleted product.
            FavoriteAlreadyExists: the product is already a favorite.
        """
        product = self._products.get_by_id(str(dto.product_id))
        if not product:
            raise ProductNotFound(f"Product {dto.product_id} not found.")
        if self._repo.get(user_id, product.id):
            raise FavoriteAlreadyExists("Product is already in favorites.")

        favorite = self._repo.add(user_id, product.id)
        logger.info("favorite.added", user_id=user_id, product_id=str(product.id))
        return favorite

    @transaction.atomic
    def remove_favorite(self, user_id: int, product_id: Any) -> None:
        favorite = self._repo.get(user_id, product_id)
        if not favorite:
            raise FavoriteNotFound("Favorite not found.")
        self._repo.remove(favorite)
        logger.info("favorite.removed", user_id=user_id, product_id=str(product_id))

    def get_favorites(self, user_id: int) -> dict:
        favorites = self._repo.list_for_user(user_id)
        return {"favorites": favorites, "total": len(favorites)}

    def is_favorite(self, user_id: int, product_id: Any) -> bool:
        return self._repo.get(user_id, product_id) is not None
