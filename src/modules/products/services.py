"""Catalog service layer (Use Cases).

- ``ProductService``: back-office product administration and stock.
- ``CatalogService``: priced, cached public catalog reads.
- ``DiscountService``: per-user special prices.

Every write that can change what a buyer sees invalidates the catalog
cache after its transaction commits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.core.exceptions import BadRequest
from modules.core.pagination import page_envelope
from modules.products.dtos import PricedProductDTO
from modules.products.exceptions import (
    DiscountAlreadyExists,
    DiscountNotFound,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.products.models import Product, ProductDiscount, ProductStatus

if TYPE_CHECKING:
    from modules.products.cache import CatalogCache
    from modules.products.dtos import (
        CatalogQueryDTO,
        CreateDiscountDTO,
        CreateProductDTO,
        UpdateDiscountDTO,
        UpdateProductDTO,
    )
    from modules.products.pricing import PricingEngine
    from modules.products.repositories.interfaces import (
        IDiscountRepository,
        IProductRepository,
    )
    from modules.users.repositories.interfaces import IRoleRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for product administration.

    Receives an ``IProductRepository`` and the ``CatalogCache`` via
    constructor injection.
    """

    def __init__(self, repository: IProductRepository, cache: CatalogCache) -> None:
        self._repo = repository
        self._cache = cache

    def _get_or_raise(self, id: str) -> Product:
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a product and its default stock row.

        Raises:
            ProductAlreadyExists: the SKU is taken, deleted products included.
        """
        log = logger.bind(sku=dto.sku)

        if self._repo.get_by_sku(dto.sku):
            log.warning("product.duplicate_sku")
            raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

        product = Product(
            sku=dto.sku,
            name=dto.name,
            description=dto.description,
            category=dto.category,
            list_price=dto.list_price,
            wholesale_price=dto.wholesale_price,
            iva=dto.iva,
            status=dto.status,
        )
        product = self._repo.save(product)
        self._repo.set_stock(product.id, dto.stock_quantity)
        if dto.images:
            self._repo.replace_images(product.id, dto.images)
        transaction.on_commit(self._cache.invalidate_all)
        log.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        product = self._get_or_raise(id)

        changes = dto.model_dump(exclude_unset=True)
        images = changes.pop("images", None)
        if "category" in changes and changes["category"] is not None:
            changes["category"] = changes["category"].strip().lower()
        for field, value in changes.items():
            if value is None and field not in ("wholesale_price", "iva"):
                continue
            setattr(product, field, value)

        product = self._repo.save(product)
        if images is not None:
            self._repo.replace_images(product.id, images)
        transaction.on_commit(self._cache.invalidate_all)
        logger.info("product.updated", product_id=str(id), fields=sorted(changes))
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        product = self._get_or_raise(id)
        self._repo.soft_delete(product)
        transaction.on_commit(self._cache.invalidate_all)

    @transaction.atomic
    def set_stock(self, id: str, quantity: int) -> int:
        """Overwrite the available quantity of a product.

        Raises:
            ProductNotFound: unknown or deleted product.
            BadRequest: negative quantity.
        """
        if quantity < 0:
            raise BadRequest("Stock quantity cannot be negative.")
        product = self._get_or_raise(id)
        self._repo.set_stock(product.id, quantity)
        transaction.on_commit(self._cache.invalidate_all)
        return quantity

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_product(self, id: str) -> Product:
        return self._get_or_raise(id)

    def get_stock(self, id: str) -> int:
        return self._repo.get_stock(self._get_or_raise(id).id)

    def list_products(self, filters: Optional[Dict[str, Any]] = None):
        return self._repo.list_admin(filters)


class CatalogService:
    """Public catalog reads, priced for the viewer and cached per viewer."""

    def __init__(
        self,
        repository: IProductRepository,
        pricing: PricingEngine,
        cache: CatalogCache,
    ) -> None:
        self._repo = repository
        self._pricing = pricing
        self._cache = cache

    def list_public(
        self, query: CatalogQueryDTO, user_id: Optional[int] = None
    ) -> dict:
        """One page of active products as ``{data, total, page, limit, lastPage}``."""
        key = self._cache.key_for(query.cache_params(), user_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        products, total = self._repo.list_catalog(query)
        quotes = self._pricing.price_many(products, user_id=user_id)
        data = [
            PricedProductDTO.from_entity(
                product, quotes[product.id], product.available_stock
            ).model_dump(mode="json")
            for product in products
        ]
        result = page_envelope(data, total, query.page, query.limit)
        self._cache.set(key, result)
        logger.info(
            "catalog.page_built",
            page=query.page,
            limit=query.limit,
            total=total,
            user_id=user_id,
        )
        return result

    def get_product(self, id: str, user_id: Optional[int] = None) -> dict:
        product = self._repo.get_by_id(id)
        if not product or product.status != ProductStatus.ACTIVE:
            raise ProductNotFound(f"Product {id} not found.")
        quote = self._pricing.price_for(product, user_id=user_id)
        stock = self._repo.get_stock(product.id)
        return PricedProductDTO.from_entity(product, quote, stock).model_dump(
            mode="json"
        )


class DiscountService:
    """Per-user special prices, administered from the back office."""

    def __init__(
        self,
        repository: IDiscountRepository,
        product_repository: IProductRepository,
        role_repository: IRoleRepository,
        cache: CatalogCache,
    ) -> None:
        self._repo = repository
        self._products = product_repository
        self._roles = role_repository
        self._cache = cache

    def _ensure_user(self, user_id: int) -> None:
        if not self._roles.user_exists(user_id):
            raise BadRequest(f"User {user_id} does not exist.")

    def _get_or_raise(self, user_id: int, discount_id: str) -> ProductDiscount:
        discount = self._repo.get_for_user(user_id, discount_id)
        if not discount:
            raise DiscountNotFound(f"Special price {discount_id} not found.")
        return discount

    def list_for_user(
        self, user_id: int, product_id: Optional[str] = None
    ) -> List[ProductDiscount]:
        self._ensure_user(user_id)
        return self._repo.list_for_user(user_id, product_id)

    @transaction.atomic
    def create(self, user_id: int, dto: CreateDiscountDTO) -> ProductDiscount:
        """Create a special price.

        Raises:
            BadRequest: unknown user.
            ProductNotFound: unknown or deleted product.
            DiscountAlreadyExists: an active special price exists for the pair.
        """
        self._ensure_user(user_id)
        product = self._products.get_by_id(str(dto.product_id))
        if not product:
            raise ProductNotFound(f"Product {dto.product_id} not found.")
        if dto.is_active and self._repo.has_active(user_id, product.id):
            raise DiscountAlreadyExists(
                f"User {user_id} already has an active special price for {product.sku}."
            )

        discount = self._repo.save(
            ProductDiscount(
                user_id=user_id,
                product=product,
                price=dto.price,
                valid_from=dto.valid_from,
                valid_to=dto.valid_to,
                is_active=dto.is_active,
            )
        )
        transaction.on_commit(self._cache.invalidate_all)
        logger.info(
            "discount.created",
            discount_id=str(discount.id),
            user_id=user_id,
            product_id=str(product.id),
        )
        return discount

    @transaction.atomic
    def update(
        self, user_id: int, discount_id: str, dto: UpdateDiscountDTO
    ) -> ProductDiscount:
        discount = self._get_or_raise(user_id, discount_id)
        changes = dto.model_dump(exclude_unset=True)
        if changes.get("price", 0) is None or changes.get("is_active", True) is None:
            raise BadRequest("price and is_active cannot be null.")

        for field, value in changes.items():
            setattr(discount, field, value)
        if (
            discount.valid_from
            and discount.valid_to
            and discount.valid_from > discount.valid_to
        ):
            raise BadRequest("valid_to must be after valid_from.")
        if discount.is_active and self._repo.has_active(
            user_id, discount.product_id, exclude_id=discount.id
        ):
            raise DiscountAlreadyExists(
                f"User {user_id} already has an active special price for this product."
            )

        discount = self._repo.save(discount)
        transaction.on_commit(self._cache.invalidate_all)
        logger.info(
            "discount.updated", discount_id=str(discount.id), fields=sorted(changes)
        )
        return discount

    @transaction.atomic
    def delete(self, user_id: int, discount_id: str) -> None:
        discount = self._get_or_raise(user_id, discount_id)
        self._repo.delete(discount)
        transaction.on_commit(self._cache.invalidate_all)
        logger.info("discount.deleted", discount_id=str(discount_id), user_id=user_id)
