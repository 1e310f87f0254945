"""Tests for the boundary REST API."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from agency_spine.api import create_app
from agency_spine.core.adapters import SQLiteAdapter
from agency_spine.core.errors import StoreConnectionError
from agency_spine.core.settings import APISettings, StoreSettings
from agency_spine.core.store import StoreClient

API_SETTINGS = APISettings(cors_origins=["http://localhost:3000"])


@pytest.fixture
def api_client(store):
    """Client over an app that borrows the seeded test store."""
    app = create_app(settings=API_SETTINGS, store=store)
    with TestClient(app) as client:
        yield client


class TestHealth:
    def test_connected(self, api_client, db_path):
        response = api_client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "connected"
        assert data["database"] == str(db_path)
        assert "timestamp" in data
        assert "error" not in data

    def test_disconnected(self, api_client, store):
        store.close()
        response = api_client.get("/api/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "disconnected"
        assert data["error"]


class TestTables:
    def test_list_tables(self, api_client):
        response = api_client.get("/api/tables")
        assert response.status_code == 200
        assert response.json() == [{"table_name": "Agents"}, {"table_name": "Properties"}]

    def test_structure(self, api_client):
        response = api_client.get("/api/tables/Agents/structure")
        assert response.status_code == 200
        columns = {c["column_name"]: c for c in response.json()}
        assert list(columns) == ["agent_id", "name", "email", "phone"]
        assert columns["name"]["is_nullable"] == "NO"
        assert columns["email"]["is_nullable"] == "YES"
        assert columns["email"]["data_type"] == "TEXT"

    def test_structure_unknown_table(self, api_client):
        response = api_client.get("/api/tables/Nowhere/structure")
        assert response.status_code == 400


class TestListRows:
    def test_all_rows(self, api_client):
        response = api_client.get("/api/tables/Properties")
        assert response.status_code == 200
        assert len(response.json()) == 4

    def test_query_string_filters_are_anded(self, api_client):
        response = api_client.get("/api/tables/Properties", params={"status": "Available", "city": "Tacoma"})
        assert response.status_code == 200
        assert [r["property_id"] for r in response.json()] == ["P003"]

    def test_unknown_table_is_400(self, api_client):
        response = api_client.get("/api/tables/Nowhere")
        assert response.status_code == 400
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["status"] == 400
        assert "Unknown resource" in body["detail"]

    def test_unknown_filter_column_is_400(self, api_client):
        response = api_client.get("/api/tables/Properties", params={"colour": "red"})
        assert response.status_code == 400
        assert "Unknown column" in response.json()["detail"]


class TestMutations:
    def test_insert(self, api_client):
        response = api_client.post(
            "/api/tables/Properties",
            json={"property_id": "P005", "address": "123 Oak", "price": 450000, "status": "Available"},
        )
        assert response.status_code == 201
        assert response.json() == {
            "success": True,
            "message": "Record inserted into Properties",
            "affected_rows": 1,
        }

        rows = api_client.get("/api/tables/Properties", params={"status": "Available"}).json()
        assert "123 Oak" in [r["address"] for r in rows]

    def test_insert_constraint_violation_is_500_with_store_message(self, api_client):
        response = api_client.post("/api/tables/Properties", json={"property_id": "P001", "address": "dup"})
        assert response.status_code == 500
        assert "UNIQUE" in response.json()["detail"]

    def test_insert_empty_record_is_400(self, api_client):
        response = api_client.post("/api/tables/Properties", json={})
        assert response.status_code == 400

    def test_insert_non_object_body_is_400(self, api_client):
        response = api_client.post("/api/tables/Properties", json=["123 Oak"])
        assert response.status_code == 400
        assert response.json()["detail"] == "Request validation failed"

    def test_update_with_id_field(self, api_client):
        response = api_client.put(
            "/api/tables/Properties/P001",
            params={"id_field": "property_id"},
            json={"status": "Sold"},
        )
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["affected_rows"] == 1

        rows = api_client.get("/api/tables/Properties", params={"property_id": "P001"}).json()
        assert rows[0]["status"] == "Sold"

    def test_update_default_id_field(self, api_client):
        response = api_client.put("/api/tables/Properties/2", json={"price": 499000})
        assert response.status_code == 200
        assert response.json()["affected_rows"] == 1

    def test_update_missing_row(self, api_client):
        response = api_client.put(
            "/api/tables/Properties/P999",
            params={"id_field": "property_id"},
            json={"status": "Sold"},
        )
        assert response.status_code == 200
        assert response.json()["affected_rows"] == 0

    def test_delete(self, api_client):
        response = api_client.delete("/api/tables/Properties/P002", params={"id_field": "property_id"})
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Record deleted successfully",
            "affected_rows": 1,
        }

    def test_delete_missing_row_is_soft_failure(self, api_client):
        response = api_client.delete("/api/tables/Properties/P999", params={"id_field": "property_id"})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "No record found"


class TestIdentifierPaths:
    @pytest.fixture
    def agents(self, api_client):
        for agent_id in ("A", "A#1", "A/2"):
            response = api_client.post("/api/tables/Agents", json={"agent_id": agent_id, "name": f"Agent {agent_id}"})
            assert response.status_code == 201
        return api_client

    def _ids(self, client) -> list[str]:
        return sorted(r["agent_id"] for r in client.get("/api/tables/Agents").json())

    def test_delete_encoded_hash_hits_exact_row(self, agents):
        response = agents.delete("/api/tables/Agents/A%231", params={"id_field": "agent_id"})
        assert response.json()["affected_rows"] == 1
        assert self._ids(agents) == ["A", "A/2", "A01", "A02"]

    def test_update_encoded_slash(self, agents):
        response = agents.put(
            "/api/tables/Agents/A%2F2",
            params={"id_field": "agent_id"},
            json={"phone": "555-0199"},
        )
        assert response.status_code == 200
        assert response.json()["affected_rows"] == 1
        rows = agents.get("/api/tables/Agents", params={"agent_id": "A/2"}).json()
        assert rows[0]["phone"] == "555-0199"


class TestQuery:
    def test_positional_params(self, api_client):
        response = api_client.post(
            "/api/query",
            json={"query": "SELECT property_id FROM Properties WHERE status = @param0", "params": ["Sold"]},
        )
        assert response.status_code == 200
        assert response.json() == [{"property_id": "P004"}]

    def test_named_params(self, api_client):
        response = api_client.post(
            "/api/query",
            json={"query": "SELECT name FROM Agents WHERE agent_id = @id", "params": {"id": "A02"}},
        )
        assert response.json() == [{"name": "James Chen"}]

    def test_missing_query_is_400(self, api_client):
        response = api_client.post("/api/query", json={"params": []})
        assert response.status_code == 400
        assert response.json()["detail"] == "Query parameter is required"

    def test_store_error_is_500(self, api_client):
        response = api_client.post("/api/query", json={"query": "SELECT * FROM Nowhere"})
        assert response.status_code == 500
        assert "no such table" in response.json()["detail"]

    def test_missing_marker_value_is_400(self, api_client):
        response = api_client.post(
            "/api/query",
            json={"query": "SELECT * FROM Agents WHERE agent_id = @param0"},
        )
        assert response.status_code == 400


class TestMiddleware:
    def test_request_id_generated(self, api_client):
        response = api_client.get("/api/tables")
        assert response.headers["X-Request-ID"]
        assert "X-Process-Time-Ms" in response.headers

    def test_request_id_echoed(self, api_client):
        response = api_client.get("/api/tables", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_unhandled_exception_is_problem_500(self, store):
        app = create_app(settings=API_SETTINGS, store=store)

        def boom():
            raise RuntimeError("kaboom")

        app.add_api_route("/api/boom", boom)
        with patch("agency_spine.api.middleware.errors.logger") as logger:
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.get("/api/boom")
        assert response.status_code == 500
        assert response.json()["detail"] == "An unexpected error occurred."
        logger.exception.assert_called_once_with("request_crashed", error_type="RuntimeError", category="INTERNAL")


class _UnreachableAdapter(SQLiteAdapter):
    def connect(self) -> None:
        raise StoreConnectionError("Failed to connect to store at db.invalid:5432")


class TestLifespan:
    def test_owns_store_from_settings(self, seeded_db):
        settings = StoreSettings(backend="sqlite", path=str(seeded_db))
        app = create_app(settings=API_SETTINGS, store_settings=settings)
        with TestClient(app) as client:
            assert client.get("/api/health").json()["status"] == "connected"
            assert len(client.get("/api/tables/Agents").json()) == 2
            assert app.state.store.is_open

        # Shutdown closed the store and released the process slot.
        assert app.state.store is None
        with StoreClient(settings) as again:
            assert again.run("SELECT COUNT(*) AS n FROM Agents").rows == [{"n": 2}]

    def test_borrowed_store_left_open(self, store):
        with TestClient(create_app(settings=API_SETTINGS, store=store)):
            pass
        assert store.is_open

    def test_unreachable_store_is_fatal(self, db_path):
        settings = StoreSettings(backend="sqlite", path=str(db_path))
        store = StoreClient(settings, adapter=_UnreachableAdapter(str(db_path)))
        app = create_app(settings=API_SETTINGS, store=store)

        with pytest.raises(StoreConnectionError):
            with TestClient(app):
                pass
