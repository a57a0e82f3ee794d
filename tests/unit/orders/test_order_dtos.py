import uuid

import pytest
from pydantic import ValidationError

from modules.orders.constants import OrderStatus
from modules.orders.dtos import (
    CreateOrderAddressDTO,
    CreateOrderDTO,
    CreateOrderLineDTO,
    UpdateOrderDTO,
    UpdateOrderLineDTO,
)

pytestmark = pytest.mark.unit


def _line(quantity=1, product_id=None):
    return CreateOrderLineDTO(product_id=product_id or uuid.uuid4(), quantity=quantity)


class TestCreateOrderDTO:
    def test_valid(self):
        dto = CreateOrderDTO(user_id=1, lines=[_line(2), _line(3)])
        assert len(dto.lines) == 2
        assert dto.points_earned == 0
        assert dto.currency is None

    def test_requires_lines(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(user_id=1, lines=[])

    def test_rejects_duplicate_products(self):
        product_id = uuid.uuid4()
        with pytest.raises(ValidationError, match="Duplicate products"):
            CreateOrderDTO(
                user_id=1, lines=[_line(1, product_id), _line(2, product_id)]
            )

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_non_positive_quantity(self, quantity):
        with pytest.raises(ValidationError):
            _line(quantity)

    def test_rejects_negative_points(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(user_id=1, lines=[_line()], points_earned=-5)

    def test_currency_must_be_three_letters(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(user_id=1, lines=[_line()], currency="EURO")

    def test_is_immutable(self):
        dto = CreateOrderDTO(user_id=1, lines=[_line()])
        with pytest.raises(ValidationError):
            dto.user_id = 2


class TestAddressDTO:
    def test_requires_city(self):
        with pytest.raises(ValidationError):
            CreateOrderAddressDTO(
                type="billing",
                full_name="Ana",
                address_line1="Calle 1",
                city="",
                postal_code="28001",
                country="ES",
            )

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            CreateOrderAddressDTO(
                type="warehouse",
                full_name="Ana",
                address_line1="Calle 1",
                city="Madrid",
                postal_code="28001",
                country="ES",
            )


class TestUpdateDTOs:
    def test_line_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            UpdateOrderLineDTO(quantity=0)

    def test_only_supplied_fields_are_tracked(self):
        dto = UpdateOrderDTO(status=OrderStatus.CANCELLED, cancellation_reason="x")
        assert dto.model_fields_set == {"status", "cancellation_reason"}

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            UpdateOrderDTO(status="shipped")
