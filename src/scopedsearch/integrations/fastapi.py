"""
FastAPI integration for scopedsearch.

Exposes registered entities as search endpoints and maps scopedsearch errors
to HTTP responses.
"""

import inspect
from collections.abc import Callable, Mapping
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Body, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from scopedsearch.core.context import Principal, RunContext
from scopedsearch.core.dsl import SearchRequest
from scopedsearch.core.errors import (
    EntityNotRegisteredError,
    ForbiddenScopeError,
    NotFoundError,
    ScopedSearchError,
    StorageError,
    ValidationError,
)
from scopedsearch.query.engine import SearchEngine

_STRUCTURED_KEYS = {"filters", "sort", "page", "limit"}


def error_status(exc: ScopedSearchError) -> int:
    """HTTP status code for a scopedsearch error."""
    match exc:
        case ValidationError():
            return 422
        case ForbiddenScopeError():
            return 403
        case NotFoundError() | EntityNotRegisteredError():
            return 404
        case StorageError():
            return 503
    return 500


async def _handle_error(request: Request, exc: ScopedSearchError) -> JSONResponse:
    return JSONResponse(status_code=error_status(exc), content={"error": exc.to_dict()})


def install_error_handlers(app: FastAPI) -> None:
    """Register the scopedsearch error handler on an app."""
    app.add_exception_handler(ScopedSearchError, _handle_error)  # type: ignore[arg-type]


def _query_params(request: Request) -> dict[str, Any]:
    """Flatten query parameters; repeated keys become lists."""
    params: dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        if key in params:
            existing = params[key]
            params[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            params[key] = value
    return params


def _request_from_body(body: Mapping[str, Any]) -> SearchRequest:
    """Accept either a structured SearchRequest body or flat parameters."""
    if "filters" in body and set(body) <= _STRUCTURED_KEYS:
        try:
            return SearchRequest.model_validate(body)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise ValidationError(f"Invalid {field or 'request'}: {first['msg']}", field=field) from e
    return SearchRequest.from_params(body)


class SearchRouter:
    """
    FastAPI router for scopedsearch entities.

    Provides, for each exposed entity:
        GET   /{entity}              search with query-string parameters
        PATCH /{entity}              search with a JSON body
        GET   /{entity}/{record_id}  fetch one record

    Usage:
        from fastapi import FastAPI
        from scopedsearch.integrations.fastapi import SearchRouter, install_error_handlers

        app = FastAPI()
        install_error_handlers(app)

        search_router = SearchRouter(engine, get_principal=current_principal)
        app.include_router(search_router.router, prefix="/api")
    """

    def __init__(
        self,
        engine: SearchEngine,
        entities: list[str] | None = None,
        get_principal: Callable[..., Any] | None = None,
        prefix: str = "",
    ) -> None:
        """
        Initialize the router.

        Args:
            engine: The search engine
            entities: Entities to expose (defaults to every registered one)
            get_principal: Callable taking the request and returning the
                Principal (or an awaitable of it); None treats every caller
                as anonymous
            prefix: Optional path prefix for routes
        """
        self.engine = engine
        self.entities = list(entities) if entities is not None else engine.entities()
        self.get_principal = get_principal
        self.router = APIRouter(prefix=prefix)

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Set up the API routes."""

        @self.router.get("/{entity}")
        async def search(entity: str, request: Request) -> dict[str, Any]:
            """Search an entity with query-string parameters."""
            self._check_exposed(entity)
            ctx = await self._build_context(request)
            page = await self.engine.search(entity, _query_params(request), ctx)
            return page.model_dump()

        @self.router.patch("/{entity}")
        async def search_body(
            entity: str,
            request: Request,
            body: dict[str, Any] | None = Body(default=None),
        ) -> dict[str, Any]:
            """Search an entity with a JSON body."""
            self._check_exposed(entity)
            ctx = await self._build_context(request)
            page = await self.engine.search(entity, _request_from_body(body or {}), ctx)
            return page.model_dump()

        @self.router.get("/{entity}/{record_id}")
        async def get_record(entity: str, record_id: str, request: Request) -> dict[str, Any]:
            """Fetch a single record within the caller's scope."""
            self._check_exposed(entity)
            ctx = await self._build_context(request)
            return await self.engine.get(entity, record_id, ctx)

    def _check_exposed(self, entity: str) -> None:
        if entity not in self.entities:
            raise EntityNotRegisteredError(entity, registered=self.entities)

    async def _build_context(self, request: Request) -> RunContext:
        """Build a RunContext from the HTTP request."""
        principal: Principal | None = None
        if self.get_principal is not None:
            principal = self.get_principal(request)
            if inspect.isawaitable(principal):
                principal = await principal

        return RunContext(
            principal=principal or Principal.anonymous(),
            request_id=request.headers.get("x-request-id") or str(uuid4()),
            trace_id=request.headers.get("traceparent"),
        )


def create_search_router(
    engine: SearchEngine,
    entities: list[str] | None = None,
    get_principal: Callable[..., Any] | None = None,
    prefix: str = "",
) -> APIRouter:
    """
    Create a FastAPI router for scopedsearch entities.

    Usage:
        app = FastAPI()
        install_error_handlers(app)
        app.include_router(create_search_router(engine, get_principal=current_principal))
    """
    return SearchRouter(
        engine=engine,
        entities=entities,
        get_principal=get_principal,
        prefix=prefix,
    ).router


def mount_search(
    app: FastAPI,
    engine: SearchEngine,
    prefix: str = "",
    **kwargs: Any,
) -> None:
    """
    Mount search endpoints and error handlers on a FastAPI app.

    Usage:
        app = FastAPI()
        mount_search(app, engine, prefix="/api", get_principal=current_principal)
    """
    install_error_handlers(app)
    app.include_router(create_search_router(engine, prefix=prefix, **kwargs))
