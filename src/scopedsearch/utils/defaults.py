"""
Default profiles for scopedsearch configuration.
"""

from dataclasses import dataclass
from typing import Literal

from scopedsearch.policy.models import PageBudget, RowPolicy


@dataclass(frozen=True)
class DefaultsProfile:
    """
    Configuration profile with sensible defaults.

    Profiles control paging limits, timeouts and how strictly input is
    treated.
    """

    mode: Literal["prod", "internal", "dev"]

    # Paging
    default_limit: int = 20
    max_limit: int = 100
    statement_timeout_ms: int = 2000

    # Security
    require_authentication: bool = True
    soft_delete_field: str | None = "deleted_at"

    # Input handling
    unknown_filters: Literal["reject", "ignore"] = "reject"

    def to_budget(self) -> PageBudget:
        """Convert profile to a PageBudget."""
        return PageBudget(
            default_limit=self.default_limit,
            max_limit=self.max_limit,
            statement_timeout_ms=self.statement_timeout_ms,
        )

    def to_row_policy(self, scope_fields: dict[str, str] | None = None) -> RowPolicy:
        """Convert profile to a RowPolicy for an entity."""
        return RowPolicy(
            scope_fields=dict(scope_fields or {}),
            require_authentication=self.require_authentication,
            soft_delete_field=self.soft_delete_field,
        )


# Built-in profiles

DEFAULT_PROD = DefaultsProfile(
    mode="prod",
    default_limit=20,
    max_limit=100,
    statement_timeout_ms=2000,
    require_authentication=True,
    soft_delete_field="deleted_at",
    unknown_filters="reject",
)

DEFAULT_INTERNAL = DefaultsProfile(
    mode="internal",
    default_limit=50,
    max_limit=500,
    statement_timeout_ms=5000,
    require_authentication=True,
    soft_delete_field="deleted_at",
    unknown_filters="reject",
)

DEFAULT_DEV = DefaultsProfile(
    mode="dev",
    default_limit=20,
    max_limit=1000,
    statement_timeout_ms=10000,
    require_authentication=False,
    soft_delete_field="deleted_at",
    unknown_filters="ignore",
)

_PROFILES = {p.mode: p for p in (DEFAULT_PROD, DEFAULT_INTERNAL, DEFAULT_DEV)}


def get_profile(mode: str) -> DefaultsProfile:
    """Look up a built-in profile by mode name."""
    try:
        return _PROFILES[mode]
    except KeyError:
        raise ValueError(
            f"Unknown profile '{mode}'; expected one of: {', '.join(_PROFILES)}"
        ) from None
