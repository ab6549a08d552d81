"""
Middleware Adapter - Turn any sync or async computation into chain middleware.

The adapter reads its input from the request context, runs the computation
and stores the result on the context under ``target``. Failures are never
written to the response: they are forwarded with ``proceed(error)`` so error
links later in the chain (or the table's error handlers) decide what to do.

Usage:
    load_user = make_middleware(
        handler=users.find_by_id,
        getter="params.user_id",
        target="user",
    )

    @error_handler
    def collect_errors(error, ctx, response, proceed):
        ctx.extras.setdefault("errors", []).append(str(error))
        proceed()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

from ..common.paths import PathSpec, make_getter
from ..pipeline.compose import resolve
from .chain import ErrorHandler, ErrorMiddleware, Middleware, Proceed
from .context import RESERVED_KEYS, RequestContext, ResponseSink

logger = logging.getLogger(__name__)

Getter = Union[PathSpec, Callable[[RequestContext], Any]]


@dataclass(frozen=True)
class MiddlewareDescriptor:
    """
    Definition of one adapted middleware.

    Attributes:
        handler: Computation called with the resolved input (sync or async)
        getter: Path into the context, or a callable receiving the context
        target: Context key receiving the computation's result
    """

    handler: Callable[[Any], Any]
    getter: Getter
    target: str

    def build(self) -> Middleware:
        return make_middleware(handler=self.handler, getter=self.getter, target=self.target)


def make_middleware(*, handler: Callable[[Any], Any], getter: Getter, target: str) -> Middleware:
    """Build a chain middleware storing ``handler(getter(ctx))`` at ``ctx[target]``."""
    if not callable(handler):
        raise TypeError(f"Middleware handler is not callable: {handler!r}")
    if not isinstance(target, str) or not target:
        raise ValueError("Middleware target must be a non-empty string")
    if target in RESERVED_KEYS:
        raise ValueError(f"Middleware target '{target}' is reserved; choose one of your own keys")

    read = make_getter(getter)

    async def middleware(ctx: RequestContext, response: ResponseSink, proceed: Proceed) -> None:
        try:
            result = await resolve(handler(read(ctx)))
        except Exception as exc:
            logger.debug("Middleware for '%s' failed: %s", target, exc)
            proceed(exc)
            return
        ctx[target] = result
        proceed()

    middleware.descriptor = MiddlewareDescriptor(handler, getter, target)  # type: ignore[attr-defined]
    return middleware


def error_handler(fn: ErrorMiddleware) -> ErrorHandler:
    """
    Mark ``fn(error, ctx, response, proceed)`` as an error-handling link.

    It runs only while an error is pending. Calling ``proceed()`` clears the
    error and resumes the normal links; ``proceed(error)`` passes it on.
    """
    if isinstance(fn, ErrorHandler):
        return fn
    if not callable(fn):
        raise TypeError(f"Error handler is not callable: {fn!r}")
    return ErrorHandler(fn)
