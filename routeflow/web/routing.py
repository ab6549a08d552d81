"""
Routing Table - Runs middleware chains on top of a FastAPI application.

Each registered route becomes a FastAPI endpoint that builds a
RequestContext, runs the route's chain, then the table-level error handlers
for any error still pending.
"""

from __future__ import annotations

import json
import logging
import time
from http import HTTPStatus
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple
from urllib.parse import parse_qsl

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import Response

from .chain import ErrorHandler, Link, check_link, run_chain
from .context import RequestContext, ResponseSink
from .validation import ValidationFailure

logger = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"})


def _multi_dict(pairs: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    values: Dict[str, List[str]] = {}
    for key, value in pairs:
        values.setdefault(key, []).append(value)
    return {key: found[0] if len(found) == 1 else found for key, found in values.items()}


async def build_context(request: Request) -> Tuple[RequestContext, Optional[BaseException]]:
    """
    Build the chain context for ``request``.

    Returns the context and a ValidationFailure when the body could not be
    parsed; the failure is handed to the chain as a pending error.
    """
    ctx = RequestContext(
        method=request.method.upper(),
        path=request.url.path,
        params=dict(request.path_params),
        query=_multi_dict(request.query_params.multi_items()),
        headers=dict(request.headers),
        request=request,
    )

    raw = await request.body()
    if not raw:
        return ctx, None

    content_type = request.headers.get("content-type", "").lower()
    if "application/json" in content_type or "+json" in content_type:
        try:
            ctx.body = json.loads(raw)
        except ValueError:
            error = ValidationFailure("body", [{"field": "", "message": "Malformed JSON body"}])
            return ctx, error
    elif "application/x-www-form-urlencoded" in content_type:
        ctx.body = _multi_dict(parse_qsl(raw.decode("utf-8", errors="replace"), keep_blank_values=True))
    elif content_type.startswith("text/"):
        ctx.body = raw.decode("utf-8", errors="replace")
    else:
        ctx.body = raw
    return ctx, None


class RoutingTable:
    """
    Registers middleware chains as routes of a FastAPI app.

    Usage:
        table = RoutingTable(app)
        table.register("GET", "/posts/{post_id}", authenticate, enable_return(load_post))
        table.install_error_handler(validation_error_handler(), name="validation_errors")
    """

    def __init__(self, app: FastAPI, *, request_log: bool = False) -> None:
        self.app = app
        self.request_log = request_log
        self.routes: List[Tuple[str, str, Tuple[Link, ...]]] = []
        self._error_handlers: List[ErrorHandler] = []
        self._installed: Set[str] = set()

    @property
    def error_handlers(self) -> Tuple[ErrorHandler, ...]:
        return tuple(self._error_handlers)

    def register(self, method: str, path: str, *chain: Link) -> None:
        """Add a route running ``chain`` for ``method`` requests to ``path``."""
        method = method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        if not chain:
            raise ValueError(f"Route {method} {path} needs at least a handler")
        links = tuple(check_link(link) for link in chain)

        async def endpoint(request: Request) -> Response:
            return await self.dispatch(links, request)

        self.app.add_api_route(
            path,
            endpoint,
            methods=[method],
            name=f"{method} {path}",
            response_model=None,
        )
        self.routes.append((method, path, links))
        logger.debug("Registered route %s %s with %d links", method, path, len(links))

    def install_error_handler(self, handler: Any, *, name: Optional[str] = None) -> bool:
        """
        Append a table-level error handler.

        Handlers with a ``name`` are installed once per table; installing the
        same name again is a no-op and returns False.
        """
        if not isinstance(handler, ErrorHandler):
            if not callable(handler):
                raise TypeError(f"Error handler is not callable: {handler!r}")
            handler = ErrorHandler(handler, name=name)
        name = name or handler.name
        if name is not None:
            if name in self._installed:
                return False
            self._installed.add(name)
        self._error_handlers.append(handler)
        return True

    async def dispatch(self, chain: Sequence[Link], request: Request) -> Response:
        started_at = time.perf_counter()
        ctx, error = await build_context(request)
        response = ResponseSink()

        error = await run_chain(chain, ctx, response, error)
        if error is not None and not response.written:
            error = await run_chain(self._error_handlers, ctx, response, error)

        if error is not None:
            if response.written:
                logger.warning("Error after response was sent on %s %s: %r", ctx.method, ctx.path, error)
            else:
                logger.error(
                    "Unhandled error on %s %s: %s",
                    ctx.method,
                    ctx.path,
                    error,
                    exc_info=(type(error), error, error.__traceback__),
                )
                response.status(HTTPStatus.INTERNAL_SERVER_ERROR).json({"detail": "Internal server error"})
        elif not response.written:
            response.status(HTTPStatus.NOT_FOUND).json({"detail": "Not Found"})

        if self.request_log:
            dur_ms = (time.perf_counter() - started_at) * 1000
            logger.info("%s %s %s %.1fms", ctx.method, ctx.path, response.status_code, dur_ms)
        return response.to_response()
