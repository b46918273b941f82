"""
Tests for the FastAPI integration.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scopedsearch.core.context import Principal
from scopedsearch.core.errors import (
    EntityNotRegisteredError,
    ForbiddenScopeError,
    NotFoundError,
    ScopedSearchError,
    StorageError,
    UnknownFilterError,
    ValidationError,
)
from scopedsearch.integrations.fastapi import SearchRouter, error_status, mount_search


def principal_from_headers(request):
    """Stand-in for an auth layer: trust the X-User / X-Role / X-Tenant headers."""
    user = request.headers.get("x-user")
    if user is None:
        return None
    return Principal(
        id=user,
        role=request.headers.get("x-role"),
        tenant_id=request.headers.get("x-tenant"),
    )


async def async_principal(request):
    return principal_from_headers(request)


MEMBER_A = {"x-user": "user-a1", "x-role": "member", "x-tenant": "tenant-a"}
ADMIN = {"x-user": "admin-1", "x-role": "system_admin"}


@pytest.fixture
def client(engine):
    app = FastAPI()
    mount_search(app, engine, prefix="/api", get_principal=principal_from_headers)
    return TestClient(app)


class TestErrorStatus:
    @pytest.mark.parametrize(
        "error,status",
        [
            (ValidationError("bad", field="page"), 422),
            (UnknownFilterError("colour", "task"), 422),
            (ForbiddenScopeError("task", "authentication required"), 403),
            (NotFoundError("task", 1), 404),
            (EntityNotRegisteredError("invoice"), 404),
            (StorageError("task", "count", timed_out=True), 503),
            (ScopedSearchError("other"), 500),
        ],
    )
    def test_mapping(self, error, status):
        assert error_status(error) == status


class TestSearchEndpoint:
    def test_search(self, client):
        response = client.get("/api/task", params={"limit": 5}, headers=MEMBER_A)
        assert response.status_code == 200
        body = response.json()
        assert body["pagination"] == {"current": 1, "limit": 5, "records": 5, "pages": 1}
        assert [row["id"] for row in body["data"]] == [5, 4, 3, 2, 1]

    def test_query_filters_and_sort(self, client):
        response = client.get(
            "/api/task",
            params={"title": "report", "sortBy": "title", "sortDirection": "asc"},
            headers=MEMBER_A,
        )
        assert [row["id"] for row in response.json()["data"]] == [1, 4]

    def test_repeated_keys_become_a_set(self, client):
        response = client.get(
            "/api/task",
            params=[("status", "done"), ("status", "in_progress")],
            headers=MEMBER_A,
        )
        assert [row["id"] for row in response.json()["data"]] == [3, 2]

    def test_unknown_filter(self, client):
        response = client.get("/api/task", params={"colour": "red"}, headers=MEMBER_A)
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "UNKNOWN_FILTER"
        assert error["details"]["field"] == "colour"

    def test_invalid_page(self, client):
        response = client.get("/api/task", params={"page": "two"}, headers=MEMBER_A)
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_anonymous_forbidden(self, client):
        response = client.get("/api/task")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN_SCOPE"

    def test_anonymous_public_entity(self, client):
        response = client.get("/api/notice")
        assert response.status_code == 200
        assert response.json()["pagination"]["records"] == 2

    def test_unregistered_entity(self, client):
        response = client.get("/api/invoice", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ENTITY_NOT_REGISTERED"


class TestBodySearch:
    def test_structured_body(self, client):
        response = client.patch(
            "/api/task",
            json={
                "filters": {"status": "open", "priority_from": 2},
                "sort": {"field": "priority", "direction": "asc"},
                "page": 1,
                "limit": 2,
            },
            headers=MEMBER_A,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["pagination"] == {"current": 1, "limit": 2, "records": 3, "pages": 2}
        assert [row["id"] for row in body["data"]] == [4, 1]

    def test_structured_body_invalid_direction_uses_desc(self, client):
        response = client.patch(
            "/api/task",
            json={
                "filters": {"status": "open"},
                "sort": {"field": "priority", "direction": "sideways"},
            },
            headers=MEMBER_A,
        )
        assert response.status_code == 200
        assert [row["id"] for row in response.json()["data"]] == [5, 1, 4]

    def test_flat_body(self, client):
        response = client.patch(
            "/api/task", json={"status": "open", "sort": "-priority"}, headers=MEMBER_A
        )
        assert [row["id"] for row in response.json()["data"]] == [5, 1, 4]

    def test_empty_body(self, client):
        response = client.patch("/api/task", headers=MEMBER_A)
        assert response.status_code == 200
        assert response.json()["pagination"]["records"] == 5

    def test_invalid_structured_body(self, client):
        response = client.patch(
            "/api/task", json={"filters": {}, "page": "first"}, headers=MEMBER_A
        )
        assert response.status_code == 422
        assert response.json()["error"]["details"]["field"] == "page"


class TestGetEndpoint:
    def test_get(self, client):
        response = client.get("/api/task/3", headers=MEMBER_A)
        assert response.status_code == 200
        assert response.json()["title"] == "Write onboarding docs"

    def test_foreign_record(self, client):
        response = client.get("/api/task/6", headers=MEMBER_A)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_invalid_id(self, client):
        response = client.get("/api/task/abc", headers=MEMBER_A)
        assert response.status_code == 422


class TestSearchRouter:
    def test_entity_subset(self, engine):
        app = FastAPI()
        app.include_router(
            SearchRouter(engine, entities=["notice"], get_principal=async_principal).router
        )
        mount = TestClient(app, raise_server_exceptions=False)
        assert mount.get("/notice").status_code == 200
        # Unexposed entities are reported as unregistered; no handler installed here
        assert mount.get("/task", headers=MEMBER_A).status_code == 500

    def test_async_principal_resolver(self, engine):
        app = FastAPI()
        mount_search(app, engine, get_principal=async_principal)
        response = TestClient(app).get("/task", headers={**MEMBER_A, "x-request-id": "req-42"})
        assert response.status_code == 200
        assert response.json()["pagination"]["records"] == 5

    def test_without_principal_resolver(self, engine):
        app = FastAPI()
        mount_search(app, engine)
        client = TestClient(app)
        assert client.get("/task", headers=MEMBER_A).status_code == 403
        assert client.get("/notice").status_code == 200
