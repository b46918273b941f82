"""
FastAPI application with scoped search endpoints.

Run with:
    uvicorn app.main:app --reload

Then, for example:
    curl -H "X-User-Id: u1" -H "X-Role: clinician" -H "X-Organization-Id: org-1" \
        "http://localhost:8000/api/reminder?status=pending&sort=remind_at&page=1&limit=10"
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.database import init_db
from app.search_setup import search_engine
from scopedsearch.core.context import Principal
from scopedsearch.integrations.fastapi import mount_search
from scopedsearch.logging import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    """Application lifespan handler."""
    configure_logging(level="INFO", format="text")
    await init_db()
    yield
    await search_engine.repository.close()


app = FastAPI(
    title="scopedsearch example",
    description="FastAPI + SQLAlchemy example with scoped search",
    version="0.1.0",
    lifespan=lifespan,
)


def current_principal(request: Request) -> Principal | None:
    """
    Build the principal from request headers.

    A real application would verify a token here; the headers stand in for
    its claims.
    """
    user_id = request.headers.get("x-user-id")
    if user_id is None:
        return None
    return Principal(
        id=user_id,
        role=request.headers.get("x-role"),
        organization_id=request.headers.get("x-organization-id"),
    )


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "entities": search_engine.entities()}


mount_search(app, search_engine, prefix="/api", get_principal=current_principal)
