"""
Tests for default profiles.
"""

import pytest

from scopedsearch.utils.defaults import (
    DEFAULT_DEV,
    DEFAULT_INTERNAL,
    DEFAULT_PROD,
    get_profile,
)


class TestProfiles:
    def test_prod(self):
        assert DEFAULT_PROD.default_limit == 20
        assert DEFAULT_PROD.max_limit == 100
        assert DEFAULT_PROD.require_authentication
        assert DEFAULT_PROD.unknown_filters == "reject"

    def test_dev_is_lenient(self):
        assert not DEFAULT_DEV.require_authentication
        assert DEFAULT_DEV.unknown_filters == "ignore"
        assert DEFAULT_DEV.max_limit > DEFAULT_PROD.max_limit

    def test_to_budget(self):
        budget = DEFAULT_INTERNAL.to_budget()
        assert budget.default_limit == 50
        assert budget.max_limit == 500
        assert budget.statement_timeout_ms == 5000

    def test_to_row_policy(self):
        row_policy = DEFAULT_PROD.to_row_policy({"tenant": "tenant_id"})
        assert row_policy.scope_fields == {"tenant": "tenant_id"}
        assert row_policy.soft_delete_field == "deleted_at"

    @pytest.mark.parametrize("mode", ["prod", "internal", "dev"])
    def test_get_profile(self, mode):
        assert get_profile(mode).mode == mode

    def test_unknown_profile(self):
        with pytest.raises(ValueError):
            get_profile("staging")
