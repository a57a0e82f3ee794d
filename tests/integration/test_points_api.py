"""Integration tests for the points endpoints."""

import pytest

from modules.points.repositories import PointsDjangoRepository
from modules.points.services import PointsService

pytestmark = pytest.mark.integration

POINTS_URL = "/api/v1/points/me/"


@pytest.fixture()
def shopper_client(client_for, customer_user):
    return client_for(customer_user)


@pytest.fixture()
def earned(customer_user):
    service = PointsService(PointsDjangoRepository())
    service.earn(customer_user.id, 10)
    service.earn(customer_user.id, 15)
    service.redeem(customer_user.id, 5)


class TestPointsApi:
    def test_requires_authentication(self, api_client):
        assert api_client.get(POINTS_URL).status_code == 401
        assert api_client.get(f"{POINTS_URL}balance/").status_code == 401

    def test_summary(self, shopper_client, customer_user, earned):
        response = shopper_client.get(POINTS_URL)
        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == customer_user.id
        assert data["balance"] == 20
        assert [e["points"] for e in data["entries"]] == [-5, 15, 10]

    def test_balance(self, shopper_client, earned):
        assert shopper_client.get(f"{POINTS_URL}balance/").json()["balance"] == 20

    def test_ledger(self, shopper_client, earned):
        entries = shopper_client.get(f"{POINTS_URL}ledger/").json()
        assert [e["type"] for e in entries] == ["REDEEM", "EARN", "EARN"]

    def test_empty_for_new_user(self, client_for, make_user):
        data = client_for(make_user("newbie")).get(POINTS_URL).json()
        assert data["balance"] == 0
        assert data["entries"] == []

    def test_order_points_show_order_number(self, shopper_client, make_product):
        pen = make_product("PEN")
        order = shopper_client.post(
            "/api/v1/orders/",
            data={
                "lines": [{"product_id": str(pen.id), "quantity": 1}],
                "points_earned": 12,
            },
            format="json",
        ).json()

        (entry,) = shopper_client.get(f"{POINTS_URL}ledger/").json()
        assert entry["points"] == 12
        assert entry["order_number"] == order["order_number"]
