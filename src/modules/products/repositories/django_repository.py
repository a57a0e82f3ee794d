"""Django ORM implementation of the catalog repositories.

Methods return ``None`` instead of raising for missing rows; the Service
Layer decides how a missing entity becomes an API error.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, models, transaction
from django.db.models import F, Q
from django.utils import timezone

from modules.products.dtos import CatalogQueryDTO
from modules.products.exceptions import DiscountAlreadyExists
from modules.products.models import (
    DEFAULT_STOCK_UNIT,
    Product,
    ProductDiscount,
    ProductImage,
    ProductStatus,
    ProductStock,
)
from modules.products.repositories.interfaces import (
    DiscountRecord,
    IDiscountRepository,
    IProductRepository,
)

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Non-deleted product by primary key; ``None`` for unknown or invalid ids."""
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_many(self, ids: Iterable[Any]) -> Dict[UUID, Product]:
        try:
            rows = Product.objects.alive().filter(id__in=list(ids))
            return {product.id: product for product in rows}
        except (ValueError, ValidationError):
            return {}

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return Product.objects.filter(sku=sku.strip().upper()).first()

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    @transaction.atomic
    def soft_delete(self, product: Product) -> bool:
        product.status = ProductStatus.DELETED
        deleted = product.soft_delete(extra_fields=["status"])
        if deleted:
            logger.info("product.soft_deleted", product_id=str(product.id))
        return deleted

    def list_catalog(self, query: CatalogQueryDTO) -> Tuple[List[Product], int]:
        queryset = Product.objects.alive().filter(status=ProductStatus.ACTIVE)
        if query.search_name:
            queryset = queryset.filter(name__icontains=query.search_name)
        if query.categories:
            queryset = queryset.filter(category__in=query.categories)

        if query.sort_by_price == "asc":
            queryset = queryset.order_by("list_price", "id")
        elif query.sort_by_price == "desc":
            queryset = queryset.order_by("-list_price", "id")
        else:
            queryset = queryset.order_by("name", "id")

        total = queryset.count()
        offset = (query.page - 1) * query.limit
        rows = list(
            queryset.prefetch_related("images", "stock_rows")[
                offset : offset + query.limit
            ]
        )
        return rows, total

    def list_admin(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        queryset = Product.objects.alive().prefetch_related("images", "stock_rows")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset.order_by("-created_at", "id")

    @transaction.atomic
    def replace_images(self, product_id: Any, urls: Iterable[str]) -> List[str]:
        urls = list(urls)
        ProductImage.objects.filter(product_id=product_id).delete()
        ProductImage.objects.bulk_create(
            ProductImage(product_id=product_id, url=url, position=position)
            for position, url in enumerate(urls)
        )
        logger.info(
            "product.images_replaced", product_id=str(product_id), count=len(urls)
        )
        return urls

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    def get_stock(self, product_id: Any) -> int:
        value = (
            ProductStock.objects.filter(product_id=product_id, unit=DEFAULT_STOCK_UNIT)
            .values_list("quantity", flat=True)
            .first()
        )
        return value or 0

    @transaction.atomic
    def set_stock(self, product_id: Any, quantity: int) -> int:
        ProductStock.objects.update_or_create(
            product_id=product_id,
            unit=DEFAULT_STOCK_UNIT,
            defaults={"quantity": quantity},
        )
        logger.info("product.stock_set", product_id=str(product_id), quantity=quantity)
        return quantity

    def reserve_stock(self, product_id: Any, quantity: int) -> bool:
        updated = ProductStock.objects.filter(
            product_id=product_id,
            unit=DEFAULT_STOCK_UNIT,
            quantity__gte=quantity,
        ).update(quantity=F("quantity") - quantity, updated_at=timezone.now())
        if updated:
            logger.debug(
                "product.stock_reserved", product_id=str(product_id), quantity=quantity
            )
        return updated == 1

    def release_stock(self, product_id: Any, quantity: int) -> None:
        updated = ProductStock.objects.filter(
            product_id=product_id,
            unit=DEFAULT_STOCK_UNIT,
        ).update(quantity=F("quantity") + quantity, updated_at=timezone.now())
        if not updated:
            ProductStock.objects.create(
                product_id=product_id, unit=DEFAULT_STOCK_UNIT, quantity=quantity
            )
            logger.warning("product.stock_row_recreated", product_id=str(product_id))
        logger.debug(
            "product.stock_released", product_id=str(product_id), quantity=quantity
        )


class DiscountDjangoRepository(IDiscountRepository):
    """Special prices backed by ``ProductDiscount``."""

    def applicable_for(
        self,
        user_id: Optional[int],
        product_ids: Iterable[Any],
        now: datetime,
    ) -> Dict[UUID, DiscountRecord]:
        ids = list(product_ids)
        if user_id is None or not ids:
            return {}

        rows = (
            ProductDiscount.objects.filter(
                user_id=user_id,
                product_id__in=ids,
                is_active=True,
            )
            .filter(Q(valid_from__isnull=True) | Q(valid_from__lte=now))
            .filter(Q(valid_to__isnull=True) | Q(valid_to__gte=now))
        )

        best: Dict[UUID, DiscountRecord] = {}
        for row in rows:
            record = DiscountRecord(
                id=row.id,
                product_id=row.product_id,
                price=row.price,
                valid_from=row.valid_from,
                valid_to=row.valid_to,
                created_at=row.created_at,
            )
            current = best.get(record.product_id)
            if current is None or record.specificity > current.specificity:
                best[record.product_id] = record
        return best

    def list_for_user(
        self, user_id: int, product_id: Optional[Any] = None
    ) -> List[ProductDiscount]:
        queryset = ProductDiscount.objects.filter(user_id=user_id).select_related(
            "product"
        )
        if product_id is not None:
            queryset = queryset.filter(product_id=product_id)
        try:
            return list(queryset.order_by("-created_at", "id"))
        except (ValueError, ValidationError):
            return []

    def get_for_user(self, user_id: int, discount_id: Any) -> Optional[ProductDiscount]:
        try:
            return (
                ProductDiscount.objects.select_related("product")
                .filter(user_id=user_id, id=discount_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def has_active(
        self,
        user_id: int,
        product_id: Any,
        exclude_id: Optional[Any] = None,
    ) -> bool:
        queryset = ProductDiscount.objects.filter(
            user_id=user_id, product_id=product_id, is_active=True
        )
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.exists()

    @transaction.atomic
    def save(self, discount: ProductDiscount) -> ProductDiscount:
        """Persist a special price.

        Raises:
            DiscountAlreadyExists: a concurrent write already holds the
                active special price for the user/product pair.
        """
        try:
            with transaction.atomic():
                discount.save()
        except IntegrityError as exc:
            logger.warning(
                "discount.active_conflict",
                user_id=discount.user_id,
                product_id=str(discount.product_id),
            )
            raise DiscountAlreadyExists(
                "An active special price already exists for this product."
            ) from exc
        return discount

    @transaction.atomic
    def delete(self, discount: ProductDiscount) -> None:
        discount.delete()
