"""Integration tests for standardized error responses."""

import uuid

import pytest

pytestmark = pytest.mark.integration


def _assert_envelope(data, error_type):
    assert data["type"] == error_type
    assert isinstance(data["errors"], list)
    assert data["errors"]
    for error in data["errors"]:
        assert {"code", "detail", "attr"} <= set(error)


class TestStandardizedErrors:
    def test_auth_error_has_standard_format(self, api_client):
        response = api_client.get("/api/v1/orders/user/me/")
        assert response.status_code == 401
        _assert_envelope(response.json(), "client_error")

    def test_validation_error_has_standard_format(self, client_for, customer_user):
        client = client_for(customer_user)
        response = client.post("/api/v1/orders/", data={"lines": []}, format="json")
        assert response.status_code == 400
        data = response.json()
        _assert_envelope(data, "validation_error")
        assert data["errors"][0]["attr"].startswith("lines")

    def test_malformed_json_is_rejected(self, client_for, customer_user):
        client = client_for(customer_user)
        response = client.post(
            "/api/v1/orders/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        assert "errors" in response.json()

    def test_domain_not_found_maps_to_404(self, api_client):
        response = api_client.get(f"/api/v1/orders/{uuid.uuid4()}/")
        assert response.status_code == 404
        data = response.json()
        _assert_envelope(data, "client_error")
        assert data["errors"][0]["code"] == "not_found"

    def test_domain_bad_request_maps_to_400(self, api_client, make_product):
        product = make_product("ERR-1")
        response = api_client.post(
            "/api/v1/orders/",
            data={"lines": [{"product_id": str(product.id), "quantity": 1}]},
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "bad_request"

    def test_permission_error_maps_to_403(self, client_for, customer_user):
        client = client_for(customer_user)
        response = client.get("/api/v1/orders/admin/all/")
        assert response.status_code == 403
        _assert_envelope(response.json(), "client_error")
