"""
Pipeline Composer - Sequential composition of sync and async steps.

Every step is treated the same way: it produces a result, possibly after
suspending. The composed pipeline awaits each result before handing it to
the next step, and the first failure aborts the remaining steps.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Tuple

from .contracts import Step

Pipeline = Callable[[Any], Awaitable[Any]]


async def resolve(result: Any) -> Any:
    """Await ``result`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(result):
        return await result
    return result


def compose(*steps: Step) -> Pipeline:
    """
    Compose ``steps`` left to right into a single coroutine function.

    Usage:
        pipeline = compose(lambda ctx: ctx.body, save_post, lambda post: post["id"])
        post_id = await pipeline(ctx)

    Steps run strictly one after another. An exception raised by a step,
    or by the awaitable it returned, propagates to the caller unchanged.
    """
    for index, step in enumerate(steps):
        if not callable(step):
            raise TypeError(f"Pipeline step {index} is not callable: {step!r}")

    chain: Tuple[Step, ...] = tuple(steps)

    async def pipeline(initial: Any) -> Any:
        value = initial
        for step in chain:
            value = await resolve(step(value))
        return value

    pipeline.steps = chain  # type: ignore[attr-defined]
    return pipeline
