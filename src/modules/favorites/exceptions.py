"""Favorites domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound


class FavoriteNotFound(NotFound):
    """The product is not in the user's favorites."""


class FavoriteAlreadyExists(Conflict):
    """The product is already in the user's favorites."""
