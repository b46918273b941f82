"""
Tests for the context module.
"""

from scopedsearch.core.context import Principal, RunContext


class TestPrincipal:
    def test_basic_principal(self):
        p = Principal(id="user-1", role="member", tenant_id="tenant-1")
        assert p.tenant_id == "tenant-1"
        assert p.id == "user-1"
        assert p.is_authenticated

    def test_anonymous(self):
        p = Principal.anonymous()
        assert not p.is_authenticated
        assert p.role is None

    def test_claim_named_attributes(self):
        p = Principal(id="user-1", tenant_id="tenant-1", organization_id="org-9")
        assert p.claim("id") == "user-1"
        assert p.claim("tenant_id") == "tenant-1"
        assert p.claim("organization_id") == "org-9"

    def test_claim_from_claims(self):
        p = Principal(id="user-1", claims={"department_id": "dep-3"})
        assert p.claim("department_id") == "dep-3"
        assert p.claim("missing") is None


class TestRunContext:
    def test_create_context(self):
        ctx = RunContext.create(principal_id="user-1", role="member", tenant_id="tenant-1")
        assert ctx.principal.tenant_id == "tenant-1"
        assert ctx.principal.id == "user-1"
        assert ctx.principal.role == "member"
        assert ctx.request_id is not None  # Auto-generated

    def test_context_with_trace(self):
        ctx = RunContext.create(principal_id="user-1", trace_id="trace-123", request_id="req-1")
        assert ctx.trace_id == "trace-123"
        assert ctx.request_id == "req-1"

    def test_anonymous_context(self):
        ctx = RunContext.anonymous()
        assert not ctx.principal.is_authenticated

    def test_request_ids_are_unique(self):
        assert RunContext.anonymous().request_id != RunContext.anonymous().request_id
