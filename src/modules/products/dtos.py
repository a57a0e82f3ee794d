"""Catalog DTOs for the Service Layer.

Framework-agnostic, immutable Pydantic v2 models: the contracts between
the API layer (DRF serializers / query params) and the services.

- ``CreateProductDTO`` / ``UpdateProductDTO``: product administration.
- ``CatalogQueryDTO``: public catalog listing parameters.
- ``PricedProductDTO``: a product as a given user sees it.
- ``CreateDiscountDTO`` / ``UpdateDiscountDTO``: per-user special prices.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.products.models import ProductStatus

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.pricing import PriceQuote


# ---------------------------------------------------------------------------
# Product administration
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests."""

    model_config = ConfigDict(frozen=True)

    sku: str
    name: str
    list_price: Decimal = Field(ge=0)
    wholesale_price: Optional[Decimal] = Field(default=None, ge=0)
    iva: Optional[Decimal] = Field(default=None, ge=0)
    description: str = ""
    category: str = ""
    status: ProductStatus = ProductStatus.ACTIVE
    stock_quantity: int = Field(default=0, ge=0)
    images: tuple[str, ...] = ()

    @field_validator("sku")
    @classmethod
    def sku_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SKU must not be empty.")
        return v.strip().upper()

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()

    @field_validator("category")
    @classmethod
    def normalise_category(cls, v: str) -> str:
        return v.strip().lower()


class UpdateProductDTO(BaseModel):
    """Partial product update; only supplied fields are written."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    list_price: Optional[Decimal] = Field(default=None, ge=0)
    wholesale_price: Optional[Decimal] = Field(default=None, ge=0)
    iva: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[ProductStatus] = None
    images: Optional[tuple[str, ...]] = None

    @field_validator("status")
    @classmethod
    def deleted_is_not_a_manual_status(
        cls, v: Optional[ProductStatus]
    ) -> Optional[ProductStatus]:
        if v == ProductStatus.DELETED:
            raise ValueError("Use DELETE to remove a product.")
        return v


# ---------------------------------------------------------------------------
# Public catalog
# ---------------------------------------------------------------------------


class CatalogQueryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    search_name: Optional[str] = None
    categories: tuple[str, ...] = ()
    sort_by_price: Optional[Literal["asc", "desc"]] = None

    @field_validator("search_name")
    @classmethod
    def blank_search_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("categories", mode="before")
    @classmethod
    def split_categories(cls, v):
        if v is None:
            return ()
        if isinstance(v, str):
            v = v.split(",")
        return tuple(sorted({c.strip().lower() for c in v if c and c.strip()}))

    def cache_params(self) -> dict:
        """Canonical, order-independent view of the query for cache keys."""
        return self.model_dump(mode="json")


class PricedProductDTO(BaseModel):
    """Immutable, JSON-ready view of a product priced for one user."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    sku: str
    name: str
    description: str
    category: str
    status: str
    price: Decimal
    original_price: Optional[Decimal] = None
    discount_percent: int = 0
    stock: int = 0
    images: list[str] = []

    @classmethod
    def from_entity(
        cls, product: Product, quote: PriceQuote, stock: int = 0
    ) -> PricedProductDTO:
        return cls(
            id=product.id,
            sku=product.sku,
            name=product.name,
            description=product.description,
            category=product.category,
            status=product.status,
            price=quote.price,
            original_price=quote.original_price,
            discount_percent=quote.discount_percent,
            stock=stock,
            images=[image.url for image in product.images.all()],
        )


# ---------------------------------------------------------------------------
# Special prices
# ---------------------------------------------------------------------------


class CreateDiscountDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    price: Decimal = Field(ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    is_active: bool = True

    @model_validator(mode="after")
    def window_must_be_ordered(self) -> CreateDiscountDTO:
        if self.valid_from and self.valid_to and self.valid_from > self.valid_to:
            raise ValueError("valid_to must be after valid_from.")
        return self


class UpdateDiscountDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: Optional[Decimal] = Field(default=None, ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    is_active: Optional[bool] = None
