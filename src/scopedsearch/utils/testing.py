"""
Testing utilities for scopedsearch.

Provides fixtures, assertions, and helpers for testing scoped searches.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from scopedsearch.adapters.memory import InMemoryRepository
from scopedsearch.core.context import RunContext
from scopedsearch.core.dsl import Page


@dataclass
class MockTenant:
    """Mock tenant configuration for testing."""

    tenant_id: str
    name: str = ""
    data: dict[str, list[dict[str, Any]]] = field(default_factory=dict)


@dataclass
class MockUser:
    """Mock user configuration for testing."""

    user_id: str
    tenant_id: str
    role: str = "member"
    name: str = ""


class MultiTenantFixture:
    """
    Fixture for testing multi-tenant data isolation.

    Creates test data for multiple tenants and provides utilities
    for verifying tenant isolation.

    Usage:
        fixture = MultiTenantFixture()
        fixture.add_tenant("tenant-1", data={
            "task": [{"id": 1, "title": "Alpha"}],
        })
        fixture.add_tenant("tenant-2", data={
            "task": [{"id": 2, "title": "Beta"}],
        })

        engine = SearchEngine(schema, policy, fixture.repository())
        page = await engine.search("task", {}, fixture.context_for("tenant-1"))
        assert fixture.verify_isolation(page.data, "tenant-1")
    """

    def __init__(self, tenant_field: str = "tenant_id") -> None:
        self.tenant_field = tenant_field
        self._tenants: dict[str, MockTenant] = {}
        self._users: dict[str, MockUser] = {}

    def add_tenant(
        self,
        tenant_id: str,
        name: str | None = None,
        data: dict[str, list[dict[str, Any]]] | None = None,
    ) -> MockTenant:
        """Add a test tenant with optional seed data."""
        tenant = MockTenant(
            tenant_id=tenant_id,
            name=name or f"Tenant {tenant_id}",
            data=data or {},
        )
        self._tenants[tenant_id] = tenant
        return tenant

    def add_user(
        self,
        user_id: str,
        tenant_id: str,
        role: str = "member",
        name: str | None = None,
    ) -> MockUser:
        """Add a test user to a tenant."""
        if tenant_id not in self._tenants:
            self.add_tenant(tenant_id)

        user = MockUser(
            user_id=user_id,
            tenant_id=tenant_id,
            role=role,
            name=name or f"User {user_id}",
        )
        self._users[user_id] = user
        return user

    def context_for(
        self,
        tenant_id: str,
        user_id: str | None = None,
        role: str | None = None,
    ) -> RunContext:
        """Create a RunContext for a tenant."""
        if user_id is None:
            user_id = f"user-{tenant_id}"

        if role is None:
            user = self._users.get(user_id)
            role = user.role if user else "member"

        return RunContext.create(principal_id=user_id, role=role, tenant_id=tenant_id)

    def get_tenant_data(self, tenant_id: str, entity: str) -> list[dict[str, Any]]:
        """Get test data for a tenant and entity."""
        tenant = self._tenants.get(tenant_id)
        if tenant is None:
            return []
        return tenant.data.get(entity, [])

    def get_all_data(self, entity: str) -> list[dict[str, Any]]:
        """Get all test data for an entity across tenants, stamped with the tenant."""
        result = []
        for tenant in self._tenants.values():
            for row in tenant.data.get(entity, []):
                result.append({**row, self.tenant_field: tenant.tenant_id})
        return result

    def repository(self) -> InMemoryRepository:
        """Build an in-memory repository holding every tenant's data."""
        entities = {name for tenant in self._tenants.values() for name in tenant.data}
        return InMemoryRepository({name: self.get_all_data(name) for name in entities})

    def verify_isolation(
        self,
        results: Iterable[dict[str, Any]],
        expected_tenant: str,
    ) -> bool:
        """
        Verify that results only contain data for the expected tenant.

        Returns True if isolation is maintained.
        """
        return not self.find_leaks(results, expected_tenant)

    def find_leaks(
        self,
        results: Iterable[dict[str, Any]],
        expected_tenant: str,
    ) -> list[dict[str, Any]]:
        """Find any rows that belong to a different tenant."""
        return [
            row
            for row in results
            if self.tenant_field in row and row[self.tenant_field] != expected_tenant
        ]


def assert_scoped(
    page: Page[dict[str, Any]],
    field: str,
    expected: Any,
) -> None:
    """Assert every row on the page carries the expected scope value."""
    leaks = [row for row in page.data if row.get(field) != expected]
    if leaks:
        raise AssertionError(
            f"Found {len(leaks)} rows outside scope {field}={expected!r}: {leaks}"
        )


def assert_page_invariants(page: Page[Any]) -> None:
    """Assert the arithmetic relations every page must satisfy."""
    p = page.pagination
    if len(page.data) > p.limit:
        raise AssertionError(f"Page holds {len(page.data)} rows, over its limit {p.limit}")
    expected_pages = -(-p.records // p.limit)
    if p.pages != expected_pages:
        raise AssertionError(f"Expected {expected_pages} pages for {p.records} records, got {p.pages}")
    if p.current > p.pages and page.data:
        raise AssertionError(f"Page {p.current} is past the last page but holds rows")
