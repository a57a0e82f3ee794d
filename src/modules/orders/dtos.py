"""Order DTOs for the Service Layer.

Framework-agnostic, immutable Pydantic v2 models: the contracts between
the API layer (DRF serializers) and ``OrderService``.

Prices never come from the client: line unit prices are resolved by the
pricing engine and ``total_amount`` is always recomputed server side.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import AddressType, OrderStatus, PaymentStatus

# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class CreateOrderLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: AddressType
    full_name: str = Field(min_length=1)
    address_line1: str = Field(min_length=1)
    address_line2: str = ""
    city: str = Field(min_length=1)
    state: str = ""
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)
    phone: str = ""


class CreateOrderPaymentDTO(BaseModel):
    """A payment recorded with the order.

    ``amount`` defaults to the computed order total when omitted.
    """

    model_config = ConfigDict(frozen=True)

    payment_method: str = Field(min_length=1)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    transaction_id: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    status: PaymentStatus = PaymentStatus.PENDING


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``lines`` must contain at least one line.
    - A product appears at most once.
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[int] = None
    lines: List[CreateOrderLineDTO]
    addresses: List[CreateOrderAddressDTO] = Field(default_factory=list)
    payments: List[CreateOrderPaymentDTO] = Field(default_factory=list)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    points_earned: int = Field(default=0, ge=0)

    @field_validator("lines")
    @classmethod
    def lines_must_not_be_empty(
        cls, v: List[CreateOrderLineDTO]
    ) -> List[CreateOrderLineDTO]:
        if not v:
            raise ValueError("Order must have at least one line.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self) -> CreateOrderDTO:
        product_ids = [line.product_id for line in self.lines]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate products are not allowed in the same order.")
        return self


# ---------------------------------------------------------------------------
# Line mutations
# ---------------------------------------------------------------------------


class AddOrderLineDTO(CreateOrderLineDTO):
    """Add a product to an existing order (merged if already present)."""


class UpdateOrderLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


# ---------------------------------------------------------------------------
# Order patch
# ---------------------------------------------------------------------------


class UpdateOrderDTO(BaseModel):
    """Status / metadata patch.

    Only explicitly supplied fields are applied (``model_fields_set``).
    Pairing with the target status is validated by ``OrderService``.
    """

    model_config = ConfigDict(frozen=True)

    status: Optional[OrderStatus] = None
    delivery_date: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancellation_date: Optional[datetime] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    invoice_file_url: Optional[str] = None
