"""
Router Registrar - Declarative route registration.

Each route descriptor becomes one chain on the routing table, always in the
order validation -> middleware (in list order) -> handler.

Usage:
    register_routes(table, [
        {
            "method": "GET",
            "path": "/tags/:post_id",
            "validation": {"params": {"post_id": int}},
            "middleware": [authenticate],
            "handler": flow(get_path("params.post_id"), db.find_post_by_id, db.find_tags_by_post),
        },
    ])
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..pipeline.compose import resolve
from .chain import Link, Middleware, Proceed, check_link
from .context import RequestContext, ResponseSink
from .routing import HTTP_METHODS, RoutingTable
from .validation import VALIDATION_ERROR_HANDLER, compile_schema, validation_error_handler

logger = logging.getLogger(__name__)

_EXPRESS_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

DEFAULT_KEY = "default"


@dataclass(frozen=True)
class Single:
    """A route handled by one chain handler."""

    fn: Middleware


@dataclass(frozen=True)
class Keyed:
    """
    A route handled by one of several handlers keyed by media type.

    The handler is picked per request from the Accept header; the "default"
    key is used when no media type matches.
    """

    handlers: Mapping[str, Middleware]


HandlerVariant = Union[Single, Keyed]


def resolve_handler(handler: Any) -> HandlerVariant:
    """Classify a route handler once, at registration time."""
    if isinstance(handler, (Single, Keyed)):
        return handler
    if isinstance(handler, Mapping):
        if not handler:
            raise ValueError("Keyed handler needs at least one entry")
        for key, fn in handler.items():
            if not callable(fn):
                raise TypeError(f"Handler for '{key}' is not callable")
        return Keyed({str(key).lower(): fn for key, fn in handler.items()})
    if callable(handler):
        return Single(handler)
    raise TypeError(f"Route handler must be callable or a mapping of callables, got {type(handler).__name__}")


def _parse_accept(header: str) -> List[str]:
    ranges = []
    for position, part in enumerate(header.split(",")):
        media, _, params = part.strip().partition(";")
        if not media:
            continue
        quality = 1.0
        for param in params.split(";"):
            name, _, value = param.strip().partition("=")
            if name == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if quality > 0:
            ranges.append((-quality, position, media.strip().lower()))
    return [media for _, _, media in sorted(ranges)]


def negotiate(accept: str, keys: Iterable[str]) -> Optional[str]:
    """Pick the key of a Keyed handler that best matches ``accept``."""
    candidates = [key for key in keys if key != DEFAULT_KEY]
    for media in _parse_accept(accept or "*/*"):
        if media == "*/*":
            if candidates:
                return candidates[0]
            continue
        if media.endswith("/*"):
            prefix = media[:-1]
            for key in candidates:
                if key.startswith(prefix):
                    return key
            continue
        if media in candidates:
            return media
    return None


def handler_link(variant: HandlerVariant) -> Link:
    """Turn a handler variant into the last link of a route chain."""
    if isinstance(variant, Single):
        return variant.fn

    handlers = dict(variant.handlers)

    async def negotiated(ctx: RequestContext, response: ResponseSink, proceed: Proceed) -> None:
        key = negotiate(ctx.headers.get("accept", "*/*"), handlers)
        if key is None:
            key = DEFAULT_KEY if DEFAULT_KEY in handlers else None
        response.set_header("Vary", "Accept")
        if key is None:
            response.status(406).json({"detail": "Not Acceptable", "accepts": list(handlers)})
            return
        await resolve(handlers[key](ctx, response, proceed))

    return negotiated


def normalize_path(path: str) -> str:
    """Convert Express style ``:param`` segments to ``{param}``."""
    if not path.startswith("/"):
        path = "/" + path
    return _EXPRESS_PARAM.sub(r"{\1}", path)


class RouteDescriptor(BaseModel):
    """
    Declarative description of one endpoint.

    Attributes:
        method: HTTP method, any case
        path: Path pattern, ``/posts/:id`` or ``/posts/{id}``
        handler: Chain handler, or a mapping of media type to handler
        validation: Optional per-section schemas (params, query, body, headers)
        middleware: Links run after validation and before the handler
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    method: str
    path: str
    handler: Any
    validation: Optional[Dict[str, Any]] = None
    middleware: List[Any] = Field(default_factory=list)

    @field_validator("method")
    @classmethod
    def _normalize_method(cls, value: str) -> str:
        method = value.strip().upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {value}")
        return method

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        return normalize_path(value.strip())

    @field_validator("handler")
    @classmethod
    def _resolve_handler(cls, value: Any) -> HandlerVariant:
        return resolve_handler(value)

    @field_validator("middleware")
    @classmethod
    def _check_middleware(cls, value: List[Any]) -> List[Any]:
        return [check_link(link) for link in value]

    def build_chain(self) -> List[Link]:
        chain: List[Link] = []
        if self.validation:
            chain.append(compile_schema(self.validation))
        chain.extend(self.middleware)
        chain.append(handler_link(self.handler))
        return chain


RouteLike = Union[RouteDescriptor, Mapping[str, Any]]


def install_validation_error_handler(table: RoutingTable) -> bool:
    """
    Install the validation error handler on ``table``.

    Installed once per table; later calls are no-ops. Validation failures
    from any route are rendered by it, so it must be installed before the
    table serves requests.
    """
    return table.install_error_handler(validation_error_handler(), name=VALIDATION_ERROR_HANDLER)


def register_routes(table: RoutingTable, routes: Iterable[RouteLike]) -> RoutingTable:
    """
    Register ``routes`` on ``table`` and install the validation error handler.

    All descriptors are validated before any route is registered. Calling
    this again adds more routes; existing routes are neither replaced nor
    deduplicated.
    """
    descriptors = [
        route if isinstance(route, RouteDescriptor) else RouteDescriptor.model_validate(dict(route))
        for route in routes
    ]
    chains = [(descriptor, descriptor.build_chain()) for descriptor in descriptors]

    for descriptor, chain in chains:
        table.register(descriptor.method, descriptor.path, *chain)
        logger.info("Route %s %s registered", descriptor.method, descriptor.path)

    install_validation_error_handler(table)
    return table
