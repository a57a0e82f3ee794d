"""Django ORM implementation of the favorites repository."""

from __future__ import annotations

from typing import Any, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from modules.favorites.exceptions import FavoriteAlreadyExists
from modules.favorites.models import Favorite
from modules.favorites.repositories.interfaces import IFavoriteRepository

logger = structlog.get_logger(__name__)


class FavoriteDjangoRepository(IFavoriteRepository):
    def add(self, user_id: int, product_id: Any) -> Favorite:
        try:
            with transaction.atomic():
                return Favorite.objects.create(user_id=user_id, product_id=product_id)
        except IntegrityError as exc:
            logger.warning(
                "favorite.duplicate", user_id=user_id, product_id=str(product_id)
            )
            raise FavoriteAlreadyExists("Product is already in favorites.") from exc

    def get(self, user_id: int, product_id: Any) -> Optional[Favorite]:
        try:
            return Favorite.objects.filter(
                user_id=user_id, product_id=product_id
            ).first()
        except (ValueError, ValidationError):
            return None

    def remove(self, favorite: Favorite) -> None:
        favorite.delete()

    def list_for_user(self, user_id: int) -> List[Favorite]:
        queryset = Favorite.objects.filter(
            user_id=user_id, product__deleted_at__isnull=True
        )
        return list(
            queryset.select_related("product").prefetch_related("product__images")
        )
