from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.products.models import (
    DEFAULT_STOCK_UNIT,
    Product,
    ProductStatus,
    ProductStock,
)
from modules.users.models import Role, UserRole

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users and roles
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    def _make(username: str, role: Role = Role.CUSTOMER, **extra):
        user = User.objects.create_user(
            username=username, password="testpass123", **extra
        )
        UserRole.objects.create(user=user, role=role)
        return user

    return _make


@pytest.fixture()
def customer_user(make_user):
    return make_user("shopper")


@pytest.fixture()
def business_user(make_user):
    return make_user("wholesale", Role.BUSINESS)


@pytest.fixture()
def admin_user(make_user):
    return make_user("backoffice", Role.ADMIN)


@pytest.fixture()
def client_for():
    """APIClient force-authenticated as the given user."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture()
def admin_client(client_for, admin_user):
    return client_for(admin_user)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    def _make(
        sku: str,
        list_price: str = "10.00",
        stock: int = 100,
        wholesale_price=None,
        iva=None,
        status: str = ProductStatus.ACTIVE,
        **extra,
    ) -> Product:
        product = Product.objects.create(
            sku=sku,
            name=extra.pop("name", f"Product {sku}"),
            list_price=Decimal(list_price),
            wholesale_price=Decimal(wholesale_price) if wholesale_price else None,
            iva=Decimal(iva) if iva is not None else None,
            status=status,
            **extra,
        )
        ProductStock.objects.create(
            product=product, unit=DEFAULT_STOCK_UNIT, quantity=stock
        )
        return product

    return _make


@pytest.fixture()
def stock_of():
    def _stock(product: Product) -> int:
        return ProductStock.objects.get(
            product=product, unit=DEFAULT_STOCK_UNIT
        ).quantity

    return _stock
