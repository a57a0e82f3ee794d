import pytest

from modules.orders.dtos import CreateOrderDTO, CreateOrderLineDTO
from modules.orders.views import build_order_service


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def place_order(order_service):
    """Create an order for ``user`` from ``(product, quantity)`` pairs."""

    def _place(user, *items, **extra):
        dto = CreateOrderDTO(
            user_id=user.id,
            lines=[
                CreateOrderLineDTO(product_id=product.id, quantity=quantity)
                for product, quantity in items
            ],
            **extra,
        )
        return order_service.create_order(dto)

    return _place
