"""Ownership, editability and stock checks shared by every line mutation.

Stock is checked and reserved in the same conditional ``UPDATE``; a
separate read-then-write would let two buyers take the last unit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Optional, Tuple

import structlog

from modules.orders.exceptions import OrderAccessDenied, OrderNotEditable
from modules.products.exceptions import (
    InsufficientStock,
    ProductNotFound,
    ProductUnavailable,
)

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


def ensure_can_modify(
    order: Order, acting_user_id: Optional[int], is_admin: bool
) -> None:
    """Owner-or-admin, then editability.

    Raises:
        OrderAccessDenied: not the owner and not an admin.
        OrderNotEditable: the order is delivered or cancelled.
    """
    if not is_admin and (acting_user_id is None or order.user_id != acting_user_id):
        logger.warning(
            "order.access_denied",
            order_id=str(order.id),
            acting_user_id=acting_user_id,
        )
        raise OrderAccessDenied(f"Not allowed to modify order {order.order_number}.")
    if not order.is_editable:
        raise OrderNotEditable(
            f"Order {order.order_number} is {order.status} and can no longer be edited."
        )


def ensure_sellable(product: Optional[Product], product_id: Any) -> Product:
    if product is None:
        raise ProductNotFound(f"Product {product_id} not found.")
    if not product.is_sellable:
        raise ProductUnavailable(f"Product {product.sku} is not available.")
    return product


class StockGuard:
    """Reserves and releases stock through the product repository."""

    def __init__(self, product_repository: IProductRepository) -> None:
        self._products = product_repository

    def reserve(self, product_id: Any, quantity: int) -> None:
        if quantity <= 0:
            return
        if not self._products.reserve_stock(product_id, quantity):
            logger.warning(
                "order.stock_insufficient",
                product_id=str(product_id),
                requested=quantity,
            )
            raise InsufficientStock(product_id, quantity)

    def release(self, product_id: Any, quantity: int) -> None:
        if quantity > 0:
            self._products.release_stock(product_id, quantity)

    def reserve_all(self, requests: Iterable[Tuple[Any, int]]) -> None:
        """Reserve several products in id order so concurrent orders lock alike."""
        for product_id, quantity in sorted(requests, key=lambda r: str(r[0])):
            self.reserve(product_id, quantity)

    def release_all(self, releases: Iterable[Tuple[Any, int]]) -> None:
        for product_id, quantity in sorted(releases, key=lambda r: str(r[0])):
            self.release(product_id, quantity)
