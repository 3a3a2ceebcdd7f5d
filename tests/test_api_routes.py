"""API tests for the dashboard routes."""

import pytest
from unittest.mock import patch, MagicMock
from fastapi.testclient import TestClient

from app.main import app
from app.api.utils import get_authorized_tenants, get_tenant_db
from app.infra.auth import get_current_user_id
from app.infra.database import get_db
from app.infra.error_handler import FetchError, PersistenceError

TENANT_A = "11111111-1111-1111-1111-111111111111"
TENANT_B = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def client(authorized_tenants):
    """TestClient with authentication and database dependencies replaced."""
    session = MagicMock()
    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    app.dependency_overrides[get_authorized_tenants] = lambda: authorized_tenants
    app.dependency_overrides[get_tenant_db] = lambda: session
    app.dependency_overrides[get_db] = lambda: session
    test_client = TestClient(app)
    test_client.session = session
    yield test_client
    app.dependency_overrides.clear()


class TestHealth:

    def test_health(self):
        response = TestClient(app).get("/health")
        assert response.status_code == 200
        assert response.json()["service"] == "estate-ledger"

    def test_metrics_exposed(self):
        response = TestClient(app).get("/metrics")
        assert response.status_code == 200
        assert "tenant_resolutions_total" in response.text


class TestAuth:

    def test_missing_api_key(self):
        app.dependency_overrides[get_db] = lambda: MagicMock()
        try:
            response = TestClient(app).get("/api/tenants")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 401
        assert response.json()["category"] == "auth"


class TestTenantRoutes:

    def test_list_tenants(self, client):
        response = client.get("/api/tenants")
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["items"][0]["display_name"] == "Alpha Immobilien"

    def test_current_tenant_from_cookie(self, client):
        client.cookies.set("selectedTenantId", TENANT_B)
        response = client.get("/api/tenants/current")
        assert response.status_code == 200
        assert response.json()["tenant_id"] == TENANT_B
        assert response.json()["source"] == "cookie"

    def test_current_tenant_ignores_foreign_cookie(self, client):
        client.cookies.set("selectedTenantId", "33333333-3333-3333-3333-333333333333")
        response = client.get("/api/tenants/current")
        assert response.json()["tenant_id"] == TENANT_A
        assert response.json()["source"] == "first_authorized"

    def test_no_tenant_access_is_403(self, client):
        app.dependency_overrides[get_authorized_tenants] = lambda: []
        response = client.get("/api/tenants/current")
        assert response.status_code == 403
        assert response.json()["category"] == "resolution"

    def test_switch_sets_cookie(self, client):
        response = client.post("/api/tenants/switch", json={"tenant_id": TENANT_B})
        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert f"selectedTenantId={TENANT_B}" in set_cookie
        assert "Max-Age=2592000" in set_cookie
        assert "Path=/" in set_cookie

    def test_switch_to_unauthorized_tenant(self, client):
        response = client.post("/api/tenants/switch", json={"tenant_id": "33333333-3333-3333-3333-333333333333"})
        assert response.status_code == 403
        assert "set-cookie" not in response.headers


class TestTableRoutes:

    def test_section_uses_resolved_tenant(self, client):
        section = {"data": [{"id": "1"}], "options": {}}
        with patch("app.api.routers.tables.fetch_section", return_value=section) as mock_fetch:
            response = client.get("/api/database/tenants", params={"tenantId": TENANT_B})

        assert response.status_code == 200
        assert response.json() == section
        mock_fetch.assert_called_once_with(TENANT_B, "tenants")

    def test_fetch_failure_is_structured(self, client):
        with patch("app.api.routers.tables.fetch_section", side_effect=FetchError("Failed to fetch tenants", section="tenants")):
            response = client.get("/api/database/tenants")

        assert response.status_code == 502
        assert response.json() == {"detail": "Failed to fetch tenants", "category": "fetch"}

    def test_rendered_view(self, client, transaction_rows):
        section = {"data": transaction_rows, "options": {}}
        with patch("app.api.routers.tables.fetch_section", return_value=section):
            response = client.post(
                "/api/database/bank_transactions/view",
                json={"sort_key": "amount", "sort_direction": "desc", "page_size": 2},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["page_count"] == 3
        assert [row["cells"]["amount"]["display"] for row in body["rows"]] == ["1.200,00 €", "1.200,00 €"]

    def test_dropdown_options(self, client):
        options = [{"label": "Miete", "value": "Miete"}]
        with patch("app.api.routers.tables.fetch_option_list", return_value=options) as mock_fetch:
            response = client.get("/api/dropdown-options", params={"type": "booking_categories"})

        assert response.status_code == 200
        assert response.json() == {"type": "booking_categories", "options": options}
        mock_fetch.assert_called_once_with(TENANT_A, "booking_categories")


class TestUpdateRoute:

    def test_update_returns_row(self, client):
        with patch("app.api.routers.update.dispatch_update", return_value={"id": "42", "booking_category": "Miete"}) as mock_update:
            response = client.post(
                "/api/database/update",
                json={"table": "bank_transactions", "id": "42", "field": "booking_category", "value": "Miete"},
            )

        assert response.status_code == 200
        assert response.json() == {"data": {"id": "42", "booking_category": "Miete"}}
        mock_update.assert_called_once_with(client.session, "bank_transactions", "42", "booking_category", "Miete")

    def test_update_rejects_unknown_table(self, client):
        response = client.post(
            "/api/database/update",
            json={"table": "users", "id": "1", "field": "email", "value": "x"},
        )
        assert response.status_code == 400
        assert response.json()["category"] == "validation"
        client.session.execute.assert_not_called()

    def test_update_not_found(self, client):
        with patch("app.api.routers.update.dispatch_update", side_effect=PersistenceError("Record 9 not found", status_code=404)):
            response = client.post(
                "/api/database/update",
                json={"table": "tenants", "id": "9", "field": "status", "value": "active"},
            )
        assert response.status_code == 404
        assert response.json()["category"] == "persistence"


class TestReportRoutes:

    def test_monthly_summary(self, client):
        rows = [{"id": 1, "amount": 100, "booking_category": "Miete", "date": "2025-05-02"}]
        with patch("app.api.routers.reports.fetch_table_rows", return_value=rows):
            response = client.get("/api/monthly-summary", params={"month": "2025-05"})

        assert response.status_code == 200
        assert response.json()["current"]["rent"] == 100

    def test_rent_overview_invalid_year(self, client):
        response = client.get("/api/rent-overview", params={"year": "20x5"})
        assert response.status_code == 400
