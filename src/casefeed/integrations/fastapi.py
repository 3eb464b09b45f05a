"""
FastAPI integration for casefeed.

Mounts the interaction feed, single-record lookup and the write path as HTTP
endpoints. Authentication stays outside: the application supplies a
``get_actor(request)`` callable that resolves the Actor for a request.
"""

import math
from collections.abc import Callable
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from casefeed.core.context import Actor, RequestContext
from casefeed.core.dsl import Failure, FeedItem
from casefeed.core.errors import CaseFeedError, RateLimitError
from casefeed.feed.service import InteractionFeedService
from casefeed.feed.writer import InteractionWriter
from casefeed.logging import LogContext, with_log_context
from casefeed.middleware.rate_limit import RateLimiter, client_address

# Error code -> HTTP status
STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "NOT_FOUND": 404,
    "RATE_LIMITED": 429,
    "DATA_ACCESS_ERROR": 503,
}

SCALAR_FILTERS = (
    "caseNumber",
    "caseId",
    "dateFrom",
    "dateTo",
    "searchQuery",
    "insuranceCompany",
    "lawyerAssigned",
    "rentalCompany",
)
LIST_FILTERS = ("interactionType", "priority", "status", "tags")


def _failure_response(failure: Failure) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(failure.code, 500),
        content=failure.model_dump(),
    )


def _error_response(exc: CaseFeedError) -> JSONResponse:
    return _failure_response(Failure.from_error(exc))


def _item_content(item: FeedItem) -> dict[str, Any]:
    return item.model_dump(mode="json", by_alias=True)


def _int_param(request: Request, name: str, default: int | None) -> int | None:
    raw = request.query_params.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail={"error": f"{name} must be an integer", "code": "VALIDATION_ERROR"},
        ) from None


def filter_from_query(request: Request) -> dict[str, Any]:
    """Collect recognized filter keys from the query string; list filters repeat."""
    params = request.query_params
    data: dict[str, Any] = {}
    for key in SCALAR_FILTERS:
        if key in params:
            data[key] = params.get(key)
    for key in LIST_FILTERS:
        values = params.getlist(key)
        if values:
            data[key] = values
    return data


def sort_from_query(request: Request) -> dict[str, Any]:
    params = request.query_params
    sort: dict[str, Any] = {}
    if params.get("sortField"):
        sort["field"] = params["sortField"]
    if params.get("sortDirection"):
        sort["direction"] = params["sortDirection"]
    return sort


class FeedRouter:
    """
    FastAPI router for the interaction feed.

    Usage:
        from fastapi import FastAPI
        from casefeed.integrations.fastapi import FeedRouter

        app = FastAPI()

        feed_router = FeedRouter(
            service=InteractionFeedService(engine),
            writer=InteractionWriter(engine, audit=JsonlAuditStore("audit.jsonl")),
            get_actor=get_current_actor,
            limiter=create_rate_limiter(),
        )

        app.include_router(feed_router.router, prefix="/api")
    """

    def __init__(
        self,
        service: InteractionFeedService,
        writer: InteractionWriter | None,
        get_actor: Callable[[Request], Actor],
        limiter: RateLimiter | None = None,
        prefix: str = "",
    ) -> None:
        """
        Initialize the router.

        Args:
            service: Read facade
            writer: Write path; write endpoints are not mounted when None
            get_actor: Resolves the Actor of a request
            limiter: Optional per-address rate limiter applied to every route
            prefix: Optional path prefix for routes
        """
        self.service = service
        self.writer = writer
        self.get_actor = get_actor
        self.limiter = limiter
        self.router = APIRouter(prefix=prefix)

        self._setup_routes()

    def request_context(self, request: Request) -> RequestContext:
        """Rate-limit the caller, then resolve its actor."""
        address = client_address(
            request.headers,
            request.client.host if request.client else None,
        )
        if self.limiter is not None:
            try:
                self.limiter.check_and_raise(address)
            except RateLimitError as e:
                raise HTTPException(
                    status_code=429,
                    detail={"error": e.message, "code": e.code},
                    headers={"Retry-After": str(max(math.ceil(e.retry_after), 1))},
                ) from e

        return RequestContext(
            actor=self.get_actor(request),
            request_id=request.headers.get("x-request-id") or str(uuid4()),
            client_address=address,
        )

    def _setup_routes(self) -> None:
        """Set up the API routes."""
        context = Depends(self.request_context)

        @self.router.get("/interactions")
        def list_interactions(request: Request, ctx: RequestContext = context) -> Response:
            """One page of the feed visible to the caller."""
            page = _int_param(request, "page", 1)
            page_size = _int_param(request, "pageSize", None)
            with with_log_context(LogContext.from_request_context(ctx)):
                result = self.service.fetch(
                    ctx.actor,
                    filter=filter_from_query(request),
                    sort=sort_from_query(request),
                    page=page,
                    page_size=page_size,
                )
            if isinstance(result, Failure):
                return _failure_response(result)
            return JSONResponse(content=result.model_dump(mode="json", by_alias=True))

        @self.router.get("/interactions/recent")
        def recent_interactions(request: Request, ctx: RequestContext = context) -> Response:
            """Newest interactions for dashboards."""
            limit = _int_param(request, "limit", 5)
            with with_log_context(LogContext.from_request_context(ctx)):
                try:
                    items = self.service.recent_interactions(ctx.actor, limit=limit)
                except CaseFeedError as e:
                    return _error_response(e)
            return JSONResponse(content=[_item_content(item) for item in items])

        @self.router.get("/interactions/{interaction_id}")
        def get_interaction(interaction_id: str, ctx: RequestContext = context) -> Response:
            """A single interaction; 404 when missing or not visible."""
            with with_log_context(LogContext.from_request_context(ctx)):
                try:
                    item = self.service.get_interaction(ctx.actor, interaction_id)
                except CaseFeedError as e:
                    return _error_response(e)
            return JSONResponse(content=_item_content(item))

        if self.writer is None:
            return
        writer = self.writer

        @self.router.post("/interactions")
        def create_interaction(
            payload: dict[str, Any] = Body(...),
            ctx: RequestContext = context,
        ) -> Response:
            """Log a new interaction against a visible case."""
            with with_log_context(LogContext.from_request_context(ctx)):
                try:
                    interaction = writer.create(ctx.actor, payload)
                    item = self.service.get_interaction(ctx.actor, interaction.id)
                except CaseFeedError as e:
                    return _error_response(e)
            return JSONResponse(status_code=201, content=_item_content(item))

        @self.router.patch("/interactions/{interaction_id}")
        def update_interaction(
            interaction_id: str,
            payload: dict[str, Any] = Body(...),
            ctx: RequestContext = context,
        ) -> Response:
            """Change priority, status or tags."""
            with with_log_context(LogContext.from_request_context(ctx)):
                try:
                    interaction = writer.update(ctx.actor, interaction_id, payload)
                    item = self.service.get_interaction(ctx.actor, interaction.id)
                except CaseFeedError as e:
                    return _error_response(e)
            return JSONResponse(content=_item_content(item))

        @self.router.delete("/interactions/{interaction_id}")
        def delete_interaction(interaction_id: str, ctx: RequestContext = context) -> Response:
            """Hard-delete an interaction."""
            with with_log_context(LogContext.from_request_context(ctx)):
                try:
                    writer.delete(ctx.actor, interaction_id)
                except CaseFeedError as e:
                    return _error_response(e)
            return Response(status_code=204)


def create_feed_router(
    service: InteractionFeedService,
    writer: InteractionWriter | None,
    get_actor: Callable[[Request], Actor],
    limiter: RateLimiter | None = None,
    prefix: str = "",
) -> APIRouter:
    """
    Create a FastAPI router for the interaction feed.

    Usage:
        app = FastAPI()
        app.include_router(create_feed_router(service, writer, get_actor))
    """
    return FeedRouter(
        service=service,
        writer=writer,
        get_actor=get_actor,
        limiter=limiter,
        prefix=prefix,
    ).router
