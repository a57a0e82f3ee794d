"""Catalog repository interfaces.

``IProductRepository`` extends ``IRepository[Product]`` with the stock
operations orders rely on.  Stock changes are single conditional
``UPDATE`` statements so concurrent reservations can never oversell.

``IDiscountRepository`` hands the pricing engine explicit
``DiscountRecord`` values instead of ORM rows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.dtos import CatalogQueryDTO
    from modules.products.models import Product, ProductDiscount


@dataclass(frozen=True)
class DiscountRecord:
    """A special price applicable to one product for one user."""

    id: UUID
    product_id: UUID
    price: Decimal
    valid_from: Optional[datetime]
    valid_to: Optional[datetime]
    created_at: datetime

    @property
    def is_bounded(self) -> bool:
        return self.valid_from is not None or self.valid_to is not None

    @property
    def specificity(self) -> tuple:
        """Sort key: bounded windows first, then latest start, then newest."""
        start = self.valid_from or _EPOCH
        return (self.is_bounded, start, self.created_at)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_many(self, ids: Iterable[Any]) -> Dict[UUID, "Product"]:
        """Fetch non-deleted products by id, keyed by id."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional["Product"]:
        """Retrieve a product by SKU, deleted ones included."""

    @abstractmethod
    def soft_delete(self, product: "Product") -> bool:
        """Mark the product deleted. ``False`` if it already was."""

    @abstractmethod
    def list_catalog(self, query: "CatalogQueryDTO") -> Tuple[List["Product"], int]:
        """Active, non-deleted products for one catalog page plus the total."""

    @abstractmethod
    def list_admin(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """Every non-deleted product regardless of status, newest first."""

    @abstractmethod
    def replace_images(self, product_id: Any, urls: Iterable[str]) -> List[str]:
        """Replace the product's gallery; list order becomes display order."""

    # ---- Stock ----

    @abstractmethod
    def get_stock(self, product_id: Any) -> int:
        """Available quantity on the default unit row (0 when missing)."""

    @abstractmethod
    def set_stock(self, product_id: Any, quantity: int) -> int:
        """Overwrite the available quantity of the default unit row."""

    @abstractmethod
    def reserve_stock(self, product_id: Any, quantity: int) -> bool:
        """Atomically decrement stock when enough is available.

        Returns ``False`` (and changes nothing) on shortage.
        """

    @abstractmethod
    def release_stock(self, product_id: Any, quantity: int) -> None:
        """Give back previously reserved quantity."""


class IDiscountRepository(ABC):
    """Repository contract for per-user special prices."""

    @abstractmethod
    def applicable_for(
        self,
        user_id: Optional[int],
        product_ids: Iterable[Any],
        now: datetime,
    ) -> Dict[UUID, DiscountRecord]:
        """The single most specific applicable discount per product."""

    @abstractmethod
    def list_for_user(
        self, user_id: int, product_id: Optional[Any] = None
    ) -> List["ProductDiscount"]:
        """Special prices of a user, newest first."""

    @abstractmethod
    def get_for_user(
        self, user_id: int, discount_id: Any
    ) -> Optional["ProductDiscount"]:
        """Fetch one special price owned by ``user_id``."""

    @abstractmethod
    def has_active(
        self,
        user_id: int,
        product_id: Any,
        exclude_id: Optional[Any] = None,
    ) -> bool:
        """Whether an active special price exists for the pair."""

    @abstractmethod
    def save(self, discount: "ProductDiscount") -> "ProductDiscount":
        """Persist a special price."""

    @abstractmethod
    def delete(self, discount: "ProductDiscount") -> None:
        """Remove a special price."""
