"""ASGI middleware for the job board.

``RequestIdMiddleware`` attaches a unique X-Request-ID header to every request
and binds it into structlog contextvars so that all log lines of a request
can be correlated.

``MethodOverrideMiddleware`` lets plain HTML forms reach the PUT and DELETE
job routes: a POST carrying ``?_method=PUT`` (or DELETE) is dispatched as
that method.
"""
from __future__ import annotations

import uuid
from urllib.parse import parse_qsl

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send
from structlog.contextvars import bind_contextvars, clear_contextvars

logger = structlog.get_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a UUID4 request_id to each incoming request.

    The ID is returned in the "X-Request-ID" response header, exposed on
    ``request.state`` and bound into structlog contextvars together with the
    method and path.
    """

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:  # type: ignore[override]
        request_id = uuid.uuid4().hex
        bind_contextvars(request_id=request_id, method=request.method, path=request.url.path)
        request.state.request_id = request_id

        try:
            response: Response = await call_next(request)
            logger.info("Request handled", status_code=response.status_code)
        finally:
            # Always clear contextvars to avoid leaking to other requests
            clear_contextvars()

        response.headers[self.header_name] = request_id
        return response


class MethodOverrideMiddleware:
    """Rewrite ``POST ...?_method=X`` into an ``X`` request for X in ``allowed``."""

    def __init__(self, app: ASGIApp, param_name: str = "_method", allowed=("PUT", "PATCH", "DELETE")) -> None:
        self.app = app
        self.param_name = param_name
        self.allowed = frozenset(allowed)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] == "POST":
            query = dict(parse_qsl(scope.get("query_string", b"").decode("latin-1")))
            override = query.get(self.param_name, "").upper()
            if override in self.allowed:
                scope = dict(scope, method=override)
        await self.app(scope, receive, send)
