"""Tests for health check endpoints."""

import pytest
from httpx import AsyncClient

from mirath.core.database import get_db


pytestmark = pytest.mark.integration


class TestHealthEndpoints:
    """Tests for the health probes."""

    async def test_liveness(self, client: AsyncClient) -> None:
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    async def test_readiness(self, client: AsyncClient) -> None:
        response = await client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"] == "ok"

    async def test_request_id_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/health/live", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    async def test_request_id_generated(self, client: AsyncClient) -> None:
        response = await client.get("/health/live")

        assert response.headers["X-Request-ID"]

    async def test_readiness_degraded(self, app, client: AsyncClient) -> None:
        """A failing database makes the service unready without leaking details."""

        class BrokenSession:
            async def execute(self, *args, **kwargs):
                raise ConnectionRefusedError("db.internal:5432 refused")

        async def broken_db():
            yield BrokenSession()

        app.dependency_overrides[get_db] = broken_db

        response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json() == {
            "status": "degraded",
            "checks": {"database": "ConnectionRefusedError"},
        }


class TestProblemDetails:
    """Tests for the RFC 7807 error body."""

    async def test_rejection_body(self, client: AsyncClient, firm) -> None:
        response = await client.get(
            f"/api/v1/law-firms/{firm.id}/members", headers={"X-Request-ID": "req-7"}
        )

        body = response.json()
        assert body["status"] == 401
        assert body["reason"] == "authentication_required"
        assert body["title"] == "Authentication Required"
        assert body["type"].endswith("/errors/authentication_required")
        assert body["instance"] == f"/api/v1/law-firms/{firm.id}/members"
        assert body["trace_id"] == "req-7"

    async def test_validation_body_lists_fields(
        self, client: AsyncClient, client_user, auth_headers
    ) -> None:
        response = await client.post(
            "/api/v1/law-firms",
            json={"name": "No License"},
            headers=auth_headers(client_user),
        )

        assert response.status_code == 422
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"license_number", "email"} <= fields
