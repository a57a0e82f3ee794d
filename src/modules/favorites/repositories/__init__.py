"""Favorites repositories package."""

from modules.favorites.repositories.django_repository import FavoriteDjangoRepository
from modules.favorites.repositories.interfaces import IFavoriteRepository

__all__ = ["FavoriteDjangoRepository", "IFavoriteRepository"]
