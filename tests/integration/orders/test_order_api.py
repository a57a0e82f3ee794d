"""Integration tests for the Order API.

Exercise the full stack: View -> Service -> Repository -> DB.
"""

import uuid

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def _detail(order_id):
    return f"{ORDERS_URL}{order_id}/"


@pytest.fixture()
def pen(make_product):
    return make_product("PEN", list_price="10.00", stock=10)


@pytest.fixture()
def pad(make_product):
    return make_product("PAD", list_price="5.00", stock=10)


@pytest.fixture()
def shopper_client(client_for, customer_user):
    return client_for(customer_user)


@pytest.fixture()
def created_order(shopper_client, pen, pad):
    response = shopper_client.post(
        ORDERS_URL,
        data={
            "lines": [
                {"product_id": str(pen.id), "quantity": 2},
                {"product_id": str(pad.id), "quantity": 3},
            ]
        },
        format="json",
    )
    assert response.status_code == 201, response.json()
    return response.json()


def _line_id(order, product):
    return next(
        line["id"] for line in order["lines"] if line["product_id"] == str(product.id)
    )


class TestCreateOrder:
    def test_create_returns_priced_order(self, created_order, customer_user):
        assert created_order["status"] == OrderStatus.PENDING
        assert created_order["total_amount"] == "35.00"
        assert created_order["user_id"] == customer_user.id
        assert created_order["user_name"] == "shopper"
        assert len(created_order["order_number"]) == 15
        assert {line["total_price"] for line in created_order["lines"]} == {
            "20.00",
            "15.00",
        }

    def test_client_prices_are_ignored(self, shopper_client, pen):
        response = shopper_client.post(
            ORDERS_URL,
            data={
                "lines": [
                    {"product_id": str(pen.id), "quantity": 1, "unit_price": "0.01"}
                ],
                "total_amount": "0.01",
            },
            format="json",
        )
        assert response.status_code == 201
        assert response.json()["total_amount"] == "10.00"

    def test_with_address_payment_and_points(self, shopper_client, pen):
        response = shopper_client.post(
            ORDERS_URL,
            data={
                "lines": [{"product_id": str(pen.id), "quantity": 1}],
                "currency": "EUR",
                "points_earned": 15,
                "addresses": [
                    {
                        "type": "billing",
                        "full_name": "Ana Ruiz",
                        "address_line1": "Calle Mayor 1",
                        "city": "Madrid",
                        "postal_code": "28013",
                        "country": "ES",
                    }
                ],
                "payments": [{"payment_method": "transfer"}],
            },
            format="json",
        )
        assert response.status_code == 201
        data = response.json()
        assert data["currency"] == "EUR"
        assert data["earned_points"] == 15
        assert data["addresses"][0]["city"] == "Madrid"
        assert data["payments"][0]["amount"] == "10.00"

        balance = shopper_client.get("/api/v1/points/me/balance/").json()
        assert balance["balance"] == 15

    def test_duplicate_products_rejected(self, shopper_client, pen):
        line = {"product_id": str(pen.id), "quantity": 1}
        response = shopper_client.post(
            ORDERS_URL, data={"lines": [line, line]}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_zero_quantity_rejected(self, shopper_client, pen):
        response = shopper_client.post(
            ORDERS_URL,
            data={"lines": [{"product_id": str(pen.id), "quantity": 0}]},
            format="json",
        )
        assert response.status_code == 400

    def test_insufficient_stock(self, shopper_client, pen, stock_of):
        response = shopper_client.post(
            ORDERS_URL,
            data={"lines": [{"product_id": str(pen.id), "quantity": 11}]},
            format="json",
        )
        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["errors"][0]["detail"]
        assert stock_of(pen) == 10

    def test_unknown_product(self, shopper_client):
        response = shopper_client.post(
            ORDERS_URL,
            data={"lines": [{"product_id": str(uuid.uuid4()), "quantity": 1}]},
            format="json",
        )
        assert response.status_code == 404


class TestReadOrders:
    def test_retrieve(self, api_client, created_order):
        response = api_client.get(_detail(created_order["id"]))
        assert response.status_code == 200
        assert response.json()["order_number"] == created_order["order_number"]

    def test_my_orders(self, shopper_client, created_order, client_for, make_user):
        response = shopper_client.get(f"{ORDERS_URL}user/me/")
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [created_order["id"]]

        other = client_for(make_user("someone"))
        assert other.get(f"{ORDERS_URL}user/me/").json() == []

    def test_admin_list_envelope(self, admin_client, created_order):
        response = admin_client.get(
            f"{ORDERS_URL}admin/all/",
            {
                "page": 1,
                "limit": 10,
                "sortField": "total_amount",
                "sortDirection": "asc",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["page"] == 1
        assert data["limit"] == 10
        assert data["lastPage"] == 1
        assert data["data"][0]["id"] == created_order["id"]

    def test_admin_list_filters_by_status(self, admin_client, created_order):
        response = admin_client.get(f"{ORDERS_URL}admin/all/", {"status": "cancelled"})
        assert response.json()["total"] == 0

    def test_admin_list_rejects_bad_page(self, admin_client):
        response = admin_client.get(f"{ORDERS_URL}admin/all/", {"page": 0})
        assert response.status_code == 400

    def test_admin_list_requires_admin(self, shopper_client):
        assert shopper_client.get(f"{ORDERS_URL}admin/all/").status_code == 403


class TestLineEndpoints:
    def test_add_line(self, shopper_client, created_order, make_product):
        ink = make_product("INK", list_price="2.50")
        response = shopper_client.post(
            f"{_detail(created_order['id'])}lines/",
            data={"product_id": str(ink.id), "quantity": 2},
            format="json",
        )
        assert response.status_code == 201
        assert response.json()["total_amount"] == "40.00"
        assert len(response.json()["lines"]) == 3

    def test_update_line(self, shopper_client, created_order, pen):
        line_id = _line_id(created_order, pen)
        response = shopper_client.patch(
            f"{_detail(created_order['id'])}lines/{line_id}/",
            data={"quantity": 1},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["total_amount"] == "25.00"

    def test_remove_line_then_last_line(self, shopper_client, created_order, pen, pad):
        base = _detail(created_order["id"])
        response = shopper_client.delete(f"{base}lines/{_line_id(created_order, pad)}/")
        assert response.status_code == 200
        assert response.json()["total_amount"] == "20.00"
        assert len(response.json()["lines"]) == 1

        response = shopper_client.delete(f"{base}lines/{_line_id(created_order, pen)}/")
        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "bad_request"

    def test_stranger_gets_403(self, client_for, make_user, created_order, pen):
        stranger = client_for(make_user("stranger"))
        response = stranger.patch(
            f"{_detail(created_order['id'])}lines/{_line_id(created_order, pen)}/",
            data={"quantity": 1},
            format="json",
        )
        assert response.status_code == 403

    def test_admin_may_edit_any_order(self, admin_client, created_order, pen):
        response = admin_client.patch(
            f"{_detail(created_order['id'])}lines/{_line_id(created_order, pen)}/",
            data={"quantity": 3},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["total_amount"] == "45.00"

    def test_anonymous_gets_401(self, api_client, created_order, pen):
        response = api_client.post(
            f"{_detail(created_order['id'])}lines/",
            data={"product_id": str(pen.id), "quantity": 1},
            format="json",
        )
        assert response.status_code == 401

    def test_unknown_line_is_404(self, shopper_client, created_order):
        response = shopper_client.delete(
            f"{_detail(created_order['id'])}lines/{uuid.uuid4()}/"
        )
        assert response.status_code == 404


class TestStatusEndpoints:
    def test_admin_accepts_and_delivers(self, admin_client, created_order):
        url = _detail(created_order["id"])
        response = admin_client.patch(url, data={"status": "accepted"}, format="json")
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"

        response = admin_client.put(
            url,
            data={"status": "delivered", "delivery_date": "2025-03-20T10:00:00Z"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["status"] == "delivered"
        assert response.json()["delivery_date"] is not None

    def test_delivered_without_date_is_rejected(self, admin_client, created_order):
        url = _detail(created_order["id"])
        admin_client.patch(url, data={"status": "accepted"}, format="json")
        response = admin_client.patch(url, data={"status": "delivered"}, format="json")
        assert response.status_code == 400

    def test_invalid_transition(self, admin_client, created_order):
        response = admin_client.patch(
            _detail(created_order["id"]),
            data={"status": "delivered", "delivery_date": "2025-03-20T10:00:00Z"},
            format="json",
        )
        assert response.status_code == 400

    def test_status_update_requires_admin(self, shopper_client, created_order):
        response = shopper_client.patch(
            _detail(created_order["id"]), data={"status": "accepted"}, format="json"
        )
        assert response.status_code == 403

    def test_owner_cancels_with_reason(
        self, shopper_client, created_order, pen, stock_of
    ):
        response = shopper_client.post(
            f"{_detail(created_order['id'])}cancel/",
            data={"reason": "customer request"},
            format="json",
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "cancelled"
        assert data["cancellation_reason"] == "customer request"
        assert data["cancellation_date"] is not None
        assert stock_of(pen) == 10

        response = shopper_client.post(
            f"{_detail(created_order['id'])}lines/",
            data={"product_id": str(pen.id), "quantity": 1},
            format="json",
        )
        assert response.status_code == 400

    def test_cancel_requires_reason(self, shopper_client, created_order):
        response = shopper_client.post(
            f"{_detail(created_order['id'])}cancel/", data={"reason": ""}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "reason"
