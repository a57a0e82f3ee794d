"""Favorites repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from modules.favorites.models import Favorite


class IFavoriteRepository(ABC):
    @abstractmethod
    def add(self, user_id: int, product_id: Any) -> Favorite:
        """Insert the pair.

        Raises:
            FavoriteAlreadyExists: the pair is already stored.
        """

    @abstractmethod
    def get(self, user_id: int, product_id: Any) -> Optional[Favorite]:
        """The stored pair, ``None`` when missing or for an invalid id."""

    @abstractmethod
    def remove(self, favorite: Favorite) -> None:
        """Delete a favorite."""

    @abstractmethod
    def list_for_user(self, user_id: int) -> List[Favorite]:
        """Favorites of non-deleted products, newest first."""
