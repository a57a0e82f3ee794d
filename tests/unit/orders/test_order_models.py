"""Unit tests for the Order aggregate models."""

from decimal import Decimal

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderLine

pytestmark = pytest.mark.unit


@pytest.fixture()
def order(customer_user):
    return Order.objects.create(order_number="202501011200001", user=customer_user)


class TestOrderStateMachine:
    @pytest.mark.parametrize(
        "current, target, allowed",
        [
            (OrderStatus.PENDING, OrderStatus.ACCEPTED, True),
            (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
            (OrderStatus.PENDING, OrderStatus.DELIVERED, False),
            (OrderStatus.ACCEPTED, OrderStatus.DELIVERED, True),
            (OrderStatus.ACCEPTED, OrderStatus.CANCELLED, True),
            (OrderStatus.ACCEPTED, OrderStatus.PENDING, False),
            (OrderStatus.DELIVERED, OrderStatus.CANCELLED, False),
            (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
        ],
    )
    def test_transitions(self, current, target, allowed):
        assert Order(status=current).can_transition_to(target) is allowed

    @pytest.mark.parametrize(
        "status, editable",
        [
            (OrderStatus.PENDING, True),
            (OrderStatus.ACCEPTED, True),
            (OrderStatus.DELIVERED, False),
            (OrderStatus.CANCELLED, False),
        ],
    )
    def test_editability(self, status, editable):
        order = Order(status=status)
        assert order.is_editable is editable
        assert order.is_terminal is not editable


class TestOrderDefaults:
    def test_defaults(self, order, settings):
        assert order.status == OrderStatus.PENDING
        assert order.total_amount == Decimal("0.00")
        assert order.currency == settings.DEFAULT_CURRENCY
        assert order.earned_points == 0

    def test_str(self, order):
        assert str(order) == "202501011200001 (pending)"


class TestOrderLine:
    def test_total_price_is_recomputed_on_save(self, order, make_product):
        product = make_product("LINE")
        line = OrderLine.objects.create(
            order=order,
            product=product,
            product_name=product.name,
            quantity=3,
            unit_price=Decimal("3.33"),
        )
        assert line.total_price == Decimal("9.99")

        line.quantity = 4
        line.save(update_fields=["quantity"])
        line.refresh_from_db()
        assert line.total_price == Decimal("13.32")

    def test_lines_cascade_with_order(self, order, make_product):
        product = make_product("LINE")
        OrderLine.objects.create(
            order=order,
            product=product,
            product_name=product.name,
            quantity=1,
            unit_price=Decimal("1.00"),
        )
        order.delete()
        assert not OrderLine.objects.exists()
