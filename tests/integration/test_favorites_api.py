"""Integration tests for the favorites endpoints."""

import uuid

import pytest

pytestmark = pytest.mark.integration

FAVORITES_URL = "/api/v1/favorites/"


@pytest.fixture()
def shopper_client(client_for, customer_user):
    return client_for(customer_user)


@pytest.fixture()
def mug(make_product):
    return make_product("MUG", name="Coffee mug")


class TestFavoritesApi:
    def test_requires_authentication(self, api_client, mug):
        assert api_client.get(FAVORITES_URL).status_code == 401
        response = api_client.post(
            FAVORITES_URL, data={"product_id": str(mug.id)}, format="json"
        )
        assert response.status_code == 401

    def test_add_list_check_remove(self, shopper_client, mug):
        response = shopper_client.post(
            FAVORITES_URL, data={"product_id": str(mug.id)}, format="json"
        )
        assert response.status_code == 201
        assert response.json()["product"]["sku"] == "MUG"

        listing = shopper_client.get(FAVORITES_URL).json()
        assert listing["total"] == 1
        assert listing["favorites"][0]["product_id"] == str(mug.id)
        assert listing["favorites"][0]["product"]["name"] == "Coffee mug"

        check = shopper_client.get(f"{FAVORITES_URL}{mug.id}/check/").json()
        assert check == {"is_favorite": True}

        assert shopper_client.delete(f"{FAVORITES_URL}{mug.id}/").status_code == 204
        check = shopper_client.get(f"{FAVORITES_URL}{mug.id}/check/").json()
        assert check == {"is_favorite": False}

    def test_duplicate_is_409(self, shopper_client, mug):
        body = {"product_id": str(mug.id)}
        shopper_client.post(FAVORITES_URL, data=body, format="json")
        response = shopper_client.post(FAVORITES_URL, data=body, format="json")
        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "conflict"

    def test_unknown_product_is_404(self, shopper_client):
        response = shopper_client.post(
            FAVORITES_URL, data={"product_id": str(uuid.uuid4())}, format="json"
        )
        assert response.status_code == 404

    def test_invalid_product_id_is_400(self, shopper_client):
        response = shopper_client.post(
            FAVORITES_URL, data={"product_id": "abc"}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_remove_missing_is_404(self, shopper_client, mug):
        assert shopper_client.delete(f"{FAVORITES_URL}{mug.id}/").status_code == 404

    def test_favorites_are_per_user(self, shopper_client, client_for, make_user, mug):
        shopper_client.post(
            FAVORITES_URL, data={"product_id": str(mug.id)}, format="json"
        )
        other = client_for(make_user("other"))
        assert other.get(FAVORITES_URL).json() == {"favorites": [], "total": 0}
        assert other.delete(f"{FAVORITES_URL}{mug.id}/").status_code == 404
