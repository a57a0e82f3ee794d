"""Catalog repositories package."""

from modules.products.repositories.django_repository import (
    DiscountDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.repositories.interfaces import (
    DiscountRecord,
    IDiscountRepository,
    IProductRepository,
)

__all__ = [
    "DiscountDjangoRepository",
    "DiscountRecord",
    "IDiscountRepository",
    "IProductRepository",
    "ProductDjangoRepository",
]
