"""
Search engine configuration for the example app.
"""

from app.database import engine
from app.models import MODELS, Announcement, Reminder
from scopedsearch.adapters.sqlalchemy import SQLAlchemyRepository, schema_from_model
from scopedsearch.core.types import SchemaMetadata
from scopedsearch.query.engine import SearchEngine
from scopedsearch.utils.builder import PolicyBuilder
from scopedsearch.utils.defaults import DEFAULT_PROD


def setup_search() -> SearchEngine:
    """
    Set up the search engine for the application.

    Organization admins see every reminder of their organization, clinicians
    only their own, and anonymous callers only announcements.
    """
    schema = SchemaMetadata.of(
        schema_from_model(
            Reminder,
            "reminder",
            text=["title"],
            sortable=["title", "remind_at", "created_at"],
            hidden=["deleted_at", "notes"],
        ),
        schema_from_model(
            Announcement,
            "announcement",
            text=["title"],
            sortable=["created_at"],
        ),
    )

    policy = (
        PolicyBuilder(DEFAULT_PROD)
        .register_entity(
            "reminder",
            {"organization": "organization_id", "owner": "owner_id"},
            default_sort="remind_at asc",
        )
        .register_entity("announcement", public=True, soft_delete_field=None)
        .role("org_admin", organization="organization_id")
        .role("clinician", organization="organization_id", owner="id")
        .unrestricted_role("system_admin")
        .anonymous_role("public", unrestricted=True, entities=["announcement"])
        .build()
    )

    return SearchEngine(schema, policy, SQLAlchemyRepository(engine, MODELS))


search_engine = setup_search()
