"""
scopedsearch utilities pack.

Provides defaults, builders, and helpers for quick integration.
"""

from scopedsearch.utils.builder import PolicyBuilder
from scopedsearch.utils.defaults import (
    DEFAULT_DEV,
    DEFAULT_INTERNAL,
    DEFAULT_PROD,
    DefaultsProfile,
    get_profile,
)
from scopedsearch.utils.testing import (
    MultiTenantFixture,
    assert_page_invariants,
    assert_scoped,
)

__all__ = [
    # Defaults
    "DefaultsProfile",
    "DEFAULT_PROD",
    "DEFAULT_INTERNAL",
    "DEFAULT_DEV",
    "get_profile",
    # Builder
    "PolicyBuilder",
    # Testing
    "MultiTenantFixture",
    "assert_scoped",
    "assert_page_invariants",
]
