"""
Shared test fixtures.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest
from sqlalchemy import Date, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from scopedsearch.adapters.memory import InMemoryRepository
from scopedsearch.core.context import RunContext
from scopedsearch.core.types import EntitySchema, FieldSpec, FilterKind, SchemaMetadata, ValueType
from scopedsearch.policy.models import Policy
from scopedsearch.query.engine import SearchEngine
from scopedsearch.utils.builder import PolicyBuilder
from scopedsearch.utils.defaults import DEFAULT_PROD

# === Test Models ===


class Base(DeclarativeBase):
    pass


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(100))
    owner_id: Mapped[str] = mapped_column(String(100))
    title: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(50))
    priority: Mapped[int] = mapped_column(Integer)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Notice(Base):
    __tablename__ = "notices"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    body: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime)


# === Schemas ===

TASK_SCHEMA = EntitySchema.build(
    "task",
    FieldSpec(name="id", value_type=ValueType.INTEGER, sortable=True),
    FieldSpec(name="tenant_id"),
    FieldSpec(name="owner_id"),
    FieldSpec(name="title", kind=FilterKind.TEXT, sortable=True),
    FieldSpec(
        name="status",
        kind=FilterKind.ENUM,
        choices=["open", "in_progress", "done"],
        sortable=True,
    ),
    FieldSpec(name="priority", value_type=ValueType.INTEGER, kind=FilterKind.RANGE, sortable=True),
    FieldSpec(
        name="due_date",
        value_type=ValueType.DATE,
        kind=FilterKind.RANGE,
        sortable=True,
        nullable=True,
    ),
    FieldSpec(
        name="created_at",
        value_type=ValueType.DATETIME,
        kind=FilterKind.RANGE,
        sortable=True,
    ),
    FieldSpec(
        name="deleted_at",
        value_type=ValueType.DATETIME,
        filterable=False,
        public=False,
        nullable=True,
    ),
)

NOTICE_SCHEMA = EntitySchema.build(
    "notice",
    FieldSpec(name="id", value_type=ValueType.INTEGER, sortable=True),
    FieldSpec(name="title", kind=FilterKind.TEXT, sortable=True),
    FieldSpec(name="body", filterable=False),
    FieldSpec(
        name="created_at",
        value_type=ValueType.DATETIME,
        kind=FilterKind.RANGE,
        sortable=True,
    ),
)

SCHEMA = SchemaMetadata.of(TASK_SCHEMA, NOTICE_SCHEMA)


# === Seed Data ===

BASE_TIME = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def _task(
    id: int,
    tenant_id: str,
    owner_id: str,
    title: str,
    status: str,
    priority: int,
    due_date: date | None,
    day: int,
) -> dict[str, Any]:
    return {
        "id": id,
        "tenant_id": tenant_id,
        "owner_id": owner_id,
        "title": title,
        "status": status,
        "priority": priority,
        "due_date": due_date,
        "created_at": BASE_TIME + timedelta(days=day),
        "deleted_at": None,
    }


# 12 tasks: 5 for tenant-a, 4 for tenant-b, 3 for tenant-c.
# Tasks 2 and 3 share a creation time.
TASK_ROWS = [
    _task(1, "tenant-a", "user-a1", "Quarterly report", "open", 3, date(2024, 2, 1), 1),
    _task(2, "tenant-a", "user-a2", "Fix login bug", "in_progress", 5, None, 2),
    _task(3, "tenant-a", "user-a1", "Write onboarding docs", "done", 1, date(2024, 2, 10), 2),
    _task(4, "tenant-a", "user-a2", "Review budget REPORT", "open", 2, date(2024, 3, 1), 4),
    _task(5, "tenant-a", "user-a1", "Plan offsite", "open", 4, None, 5),
    _task(6, "tenant-b", "user-b1", "Quarterly report", "open", 3, date(2024, 2, 1), 1),
    _task(7, "tenant-b", "user-b1", "Renew certificates", "done", 2, None, 3),
    _task(8, "tenant-b", "user-b2", "Audit report", "in_progress", 4, date(2024, 4, 1), 6),
    _task(9, "tenant-b", "user-b2", "Hire designer", "open", 1, None, 7),
    _task(10, "tenant-c", "user-c1", "Migrate database", "open", 5, None, 8),
    _task(11, "tenant-c", "user-c1", "Report metrics", "done", 2, date(2024, 5, 1), 9),
    _task(12, "tenant-c", "user-c1", "Update roadmap", "open", 3, None, 10),
]

NOTICE_ROWS = [
    {"id": 1, "title": "Maintenance window", "body": "Saturday 02:00 UTC", "created_at": BASE_TIME},
    {
        "id": 2,
        "title": "New reporting features",
        "body": "Export to CSV",
        "created_at": BASE_TIME + timedelta(days=3),
    },
]


def seed_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Copy rows with naive UTC datetimes, as SQLite stores them."""
    seeded = []
    for row in rows:
        copy = dict(row)
        for key, value in copy.items():
            if isinstance(value, datetime) and value.tzinfo is not None:
                copy[key] = value.astimezone(timezone.utc).replace(tzinfo=None)
        seeded.append(copy)
    return seeded


# === Fixtures ===


@pytest.fixture
def policy() -> Policy:
    """Create the standard test policy."""
    return (
        PolicyBuilder(DEFAULT_PROD)
        .register_entity(
            "task",
            {"tenant": "tenant_id", "owner": "owner_id"},
            default_sort="created_at desc",
        )
        .register_entity("notice", public=True, soft_delete_field=None)
        .role("member", tenant="tenant_id")
        .role("owner", tenant="tenant_id", owner="id")
        .unrestricted_role("system_admin")
        .anonymous_role("public", unrestricted=True, entities=["notice"])
        .build()
    )


@pytest.fixture
def repository() -> InMemoryRepository:
    """Create an in-memory repository seeded with tasks and notices."""
    return InMemoryRepository({"task": TASK_ROWS, "notice": NOTICE_ROWS})


@pytest.fixture
def engine(policy, repository) -> SearchEngine:
    """Create a search engine over the in-memory repository."""
    return SearchEngine(SCHEMA, policy, repository)


@pytest.fixture
def member_a() -> RunContext:
    """A member of tenant-a."""
    return RunContext.create(principal_id="user-a1", role="member", tenant_id="tenant-a")


@pytest.fixture
def member_b() -> RunContext:
    """A member of tenant-b."""
    return RunContext.create(principal_id="user-b1", role="member", tenant_id="tenant-b")


@pytest.fixture
def owner_a() -> RunContext:
    """An owner-scoped user of tenant-a."""
    return RunContext.create(principal_id="user-a1", role="owner", tenant_id="tenant-a")


@pytest.fixture
def admin() -> RunContext:
    """An unrestricted system administrator."""
    return RunContext.create(principal_id="admin-1", role="system_admin")


@pytest.fixture
def anonymous() -> RunContext:
    """An unauthenticated caller."""
    return RunContext.anonymous()


@pytest.fixture
def db_path(tmp_path):
    """Create a seeded SQLite database file and return its path."""
    path = tmp_path / "search.db"
    sync_engine = create_engine(f"sqlite:///{path}", echo=False)
    Base.metadata.create_all(sync_engine)
    with Session(sync_engine) as session:
        session.add_all(Task(**row) for row in seed_rows(TASK_ROWS))
        session.add_all(Notice(**row) for row in seed_rows(NOTICE_ROWS))
        session.commit()
    sync_engine.dispose()
    return path


@pytest.fixture
def sync_engine(db_path):
    """Create a sync SQLite engine over the seeded database."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    yield engine
    engine.dispose()
