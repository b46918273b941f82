"""
scopedsearch policy module.

Contains policy models and the scope enforcer.
"""

from scopedsearch.policy.models import (
    EntityPolicy,
    PageBudget,
    Policy,
    RoleScope,
    RowPolicy,
    ScopePolicy,
    ScopeRule,
)
from scopedsearch.policy.scoping import ScopeDecision, ScopeEnforcer

__all__ = [
    # Models
    "Policy",
    "EntityPolicy",
    "RowPolicy",
    "PageBudget",
    "ScopePolicy",
    "RoleScope",
    "ScopeRule",
    # Scoping
    "ScopeEnforcer",
    "ScopeDecision",
]
