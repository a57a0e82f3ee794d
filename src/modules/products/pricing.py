"""Per-user price computation.

Rules, applied in order:

1. Base price: ``business`` buyers pay ``wholesale_price`` (falling back
   to ``list_price`` when it is missing); everybody else pays
   ``list_price``.
2. Special price: the most specific active ``ProductDiscount`` of the
   user whose window contains ``now``.  It only applies when it is
   strictly below a positive base price.
3. VAT: ``iva`` is normalised to a percentage and added for non-business
   buyers.  Business prices are VAT exclusive.
4. Money is rounded to 2 decimals, ``ROUND_HALF_UP``.

``normalize_iva`` treats any value in (0, 1) as a fraction, so a real
0.5 % rate stored as ``0.5`` would read as 50 %; rates below 1 % must be
entered as fractions (``0.005`` for 0.5 %).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from modules.users.models import Role

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import (
        DiscountRecord,
        IDiscountRepository,
    )
    from modules.users.repositories.interfaces import IRoleRepository

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PriceQuote:
    """Price of one product for one buyer.

    ``original_price`` is set only when a special price applied; it holds
    the undiscounted price on the same VAT basis as ``price``.
    """

    price: Decimal
    original_price: Optional[Decimal] = None
    discount_percent: int = 0


def round_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def normalize_iva(iva: Any) -> Decimal:
    """VAT as a percentage: fractions are scaled, missing or zero means default."""
    if iva is None:
        return Decimal(settings.DEFAULT_IVA_PERCENT)
    value = Decimal(str(iva))
    if value <= 0:
        return Decimal(settings.DEFAULT_IVA_PERCENT)
    if value < 1:
        return value * HUNDRED
    return value


def with_iva(amount: Decimal, iva: Any) -> Decimal:
    return amount * (1 + normalize_iva(iva) / HUNDRED)


class PricingEngine:
    """Computes catalog and order-line prices for a given user.

    Role and discount look-ups go through injected repositories; a batch
    call costs one role query and one discount query regardless of the
    number of products.
    """

    def __init__(
        self,
        role_repository: IRoleRepository,
        discount_repository: IDiscountRepository,
    ) -> None:
        self._roles = role_repository
        self._discounts = discount_repository

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def price_for(
        self,
        product: Product,
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> PriceQuote:
        return self.price_many([product], user_id=user_id, now=now)[product.id]

    def price_many(
        self,
        products: Iterable[Product],
        user_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Dict[UUID, PriceQuote]:
        products = list(products)
        if not products:
            return {}
        now = now or timezone.now()
        role = self._roles.get_role(user_id)
        discounts = self._discounts.applicable_for(
            user_id, [p.id for p in products], now
        )
        return {
            product.id: self._quote(product, role, discounts.get(product.id))
            for product in products
        }

    def unit_price_for(
        self,
        product: Product,
        user_id: Optional[int],
        now: Optional[datetime] = None,
    ) -> Decimal:
        """VAT-exclusive net unit price snapshotted onto order lines."""
        return self.unit_prices([product], user_id, now=now)[product.id]

    def unit_prices(
        self,
        products: Iterable[Product],
        user_id: Optional[int],
        now: Optional[datetime] = None,
    ) -> Dict[UUID, Decimal]:
        """Batch form of ``unit_price_for``."""
        products = list(products)
        if not products:
            return {}
        now = now or timezone.now()
        role = self._roles.get_role(user_id)
        discounts = self._discounts.applicable_for(
            user_id, [p.id for p in products], now
        )
        prices = {}
        for product in products:
            base = self.base_price(product, role)
            discount = discounts.get(product.id)
            if self._discount_applies(base, discount):
                prices[product.id] = round_money(discount.price)
            else:
                prices[product.id] = round_money(base)
        return prices

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    @staticmethod
    def base_price(product: Product, role: Role) -> Decimal:
        if role == Role.BUSINESS and product.wholesale_price is not None:
            return Decimal(product.wholesale_price)
        return Decimal(product.list_price)

    @staticmethod
    def _discount_applies(
        base: Decimal, discount: Optional[DiscountRecord]
    ) -> bool:
        return discount is not None and base > 0 and discount.price < base

    def _quote(
        self,
        product: Product,
        role: Role,
        discount: Optional[DiscountRecord],
    ) -> PriceQuote:
        base = self.base_price(product, role)
        vat_inclusive = role != Role.BUSINESS

        if not self._discount_applies(base, discount):
            price = with_iva(base, product.iva) if vat_inclusive else base
            return PriceQuote(price=round_money(price))

        percent = ((base - discount.price) / base * HUNDRED).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        price, original = Decimal(discount.price), base
        if vat_inclusive:
            price = with_iva(price, product.iva)
            original = with_iva(original, product.iva)
        return PriceQuote(
            price=round_money(price),
            original_price=round_money(original),
            discount_percent=int(percent),
        )
