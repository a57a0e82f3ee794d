"""Catalog domain exceptions.

Raised by the Service Layer and rendered by
``modules.core.exceptions.api_exception_handler``.
"""

from __future__ import annotations

from modules.core.exceptions import BadRequest, Conflict, NotFound


class ProductNotFound(NotFound):
    """The requested product does not exist or has been soft-deleted."""


class ProductAlreadyExists(Conflict):
    """A product with the same SKU already exists."""


class ProductUnavailable(BadRequest):
    """The product exists but is not ``active`` and cannot be ordered."""


class InsufficientStock(BadRequest):
    """Requested quantity exceeds the available stock."""

    def __init__(self, product_id, requested: int) -> None:
        self.product_id = product_id
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product {product_id} (requested {requested})."
        )


class DiscountNotFound(NotFound):
    """The special price does not exist for that user."""


class DiscountAlreadyExists(Conflict):
    """An active special price already exists for the user/product pair."""
