"""
Middleware chain - Express style ``(ctx, response, proceed)`` links.

A chain is an ordered list of links. Normal links run while no error is
pending; links wrapped in ErrorHandler run only while an error is pending.
A link continues the chain by calling ``proceed()``, forwards a failure with
``proceed(error)``, and ends the chain by returning without calling it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from ..pipeline.compose import resolve
from ..pipeline.contracts import RouteflowError
from .context import RequestContext, ResponseSink

logger = logging.getLogger(__name__)

Proceed = Callable[..., None]
Middleware = Callable[[RequestContext, ResponseSink, Proceed], Union[None, Awaitable[None]]]
ErrorMiddleware = Callable[
    [BaseException, RequestContext, ResponseSink, Proceed], Union[None, Awaitable[None]]
]


@dataclass(frozen=True)
class ErrorHandler:
    """A chain link that only runs while an error is pending."""

    fn: ErrorMiddleware
    name: Optional[str] = None

    def __call__(
        self,
        error: BaseException,
        ctx: RequestContext,
        response: ResponseSink,
        proceed: Proceed,
    ) -> Any:
        return self.fn(error, ctx, response, proceed)


Link = Union[Middleware, ErrorHandler]


class _Continuation:
    """The ``proceed`` callable handed to a single link."""

    __slots__ = ("called", "error")

    def __init__(self) -> None:
        self.called = False
        self.error: Optional[BaseException] = None

    def __call__(self, error: Optional[BaseException] = None) -> None:
        if self.called:
            raise RouteflowError("proceed() called more than once by the same link")
        self.called = True
        self.error = error


def check_link(link: Any) -> Link:
    if isinstance(link, ErrorHandler) or callable(link):
        return link
    raise TypeError(f"Chain link is not callable: {link!r}")


async def run_chain(
    chain: Sequence[Link],
    ctx: RequestContext,
    response: ResponseSink,
    error: Optional[BaseException] = None,
) -> Optional[BaseException]:
    """
    Run ``chain`` for one request.

    Returns the error still pending when the chain ends, or None when the
    chain completed, stopped, or an error link handled the failure.
    """
    for link in chain:
        if response.written:
            break

        is_error_link = isinstance(link, ErrorHandler)
        if is_error_link != (error is not None):
            continue

        proceed = _Continuation()
        try:
            if is_error_link:
                await resolve(link(error, ctx, response, proceed))
            else:
                await resolve(link(ctx, response, proceed))
        except Exception as exc:
            logger.debug("Chain link %r raised %r", link, exc)
            error = exc
            continue

        if not proceed.called:
            return None
        error = proceed.error

    return error
