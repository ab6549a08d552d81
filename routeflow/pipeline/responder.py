"""
Response Resolver - Write a computation's result (or failure) to the response.

This is the only place where pipeline results meet the response: a value is
sent with 200, a TaggedValue with its own status, and any failure with 500
and the failure's message as the body.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from .compose import compose, resolve
from .contracts import Step, TaggedValue

if TYPE_CHECKING:
    from ..web.chain import Proceed
    from ..web.context import RequestContext, ResponseSink

logger = logging.getLogger(__name__)

RequestHandler = Callable[..., Awaitable[None]]


def make_responder(computation: Callable[[Any], Any]) -> RequestHandler:
    """
    Wrap ``computation(ctx)`` as a terminal chain handler.

    Usage:
        {"method": "GET", "path": "/posts", "handler": make_responder(lambda ctx: db.all_posts())}
    """
    if not callable(computation):
        raise TypeError(f"Computation is not callable: {computation!r}")

    async def responder(
        ctx: "RequestContext",
        response: "ResponseSink",
        proceed: Optional["Proceed"] = None,
    ) -> None:
        try:
            result = await resolve(computation(ctx))
            if isinstance(result, TaggedValue):
                response.status(result.status).send(result.data)
            else:
                response.status(HTTPStatus.OK).send(result)
        except Exception as exc:
            logger.warning("Request handler failed: %s", exc, exc_info=True)
            if not response.written:
                response.status(HTTPStatus.INTERNAL_SERVER_ERROR).send(str(exc))

    responder.computation = computation  # type: ignore[attr-defined]
    return responder


enable_return = make_responder


def flow(*steps: Step) -> RequestHandler:
    """
    Compose ``steps`` and respond with the final value.

    Usage:
        handler = flow(
            lambda ctx: ctx.params["post_id"],
            db.find_post_by_id,
            db.find_tags_by_post,
        )
    """
    return make_responder(compose(*steps))
