"""``/health``: the database decides overall health, the cache is reported."""

from unittest import mock

from modules.core import views


class TestHealthCheck:
    def test_healthy_when_all_services_are_up(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]
        assert data["services"]["cache"]["status"] == "up"

    def test_cache_outage_is_reported_but_not_fatal(self, client):
        with mock.patch.object(
            views, "_check_cache", side_effect=ConnectionError("redis down")
        ):
            response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"

    def test_database_outage_is_503(self, client):
        with mock.patch.object(
            views, "_check_database", side_effect=ConnectionError("db down")
        ):
            response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["services"]["database"] == {"status": "down"}
