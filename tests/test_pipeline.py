"""
Pipeline composition, status selection and response resolution tests.
"""

import asyncio
from datetime import date
from http import HTTPStatus

import pytest
from pydantic import BaseModel

from routeflow.pipeline import (
    NoStatusMatched,
    ResponseAlreadySent,
    TaggedValue,
    compose,
    flow,
    make_responder,
    with_status,
)
from routeflow.web import RequestContext, ResponseSink


def _ctx(**kwargs) -> RequestContext:
    return RequestContext(method="POST", path="/test", **kwargs)


async def _double_later(x):
    await asyncio.sleep(0)
    return x * 2


def test_compose_matches_left_to_right_composition():
    def inc(x):
        return x + 1

    def square(x):
        return x * x

    pipeline = compose(inc, _double_later, square, inc)
    assert asyncio.run(pipeline(3)) == inc(square((inc(3)) * 2))


def test_compose_without_steps_is_identity():
    assert asyncio.run(compose()("same")) == "same"


def test_compose_rejects_non_callable_steps():
    with pytest.raises(TypeError):
        compose(lambda x: x, "not a step")


def test_compose_short_circuits_on_async_failure():
    calls = []

    async def fail(_):
        raise ValueError("step two failed")

    def record(value):
        calls.append(value)
        return value

    pipeline = compose(record, fail, record)
    with pytest.raises(ValueError, match="step two failed"):
        asyncio.run(pipeline("x"))
    assert calls == ["x"]


def test_compose_short_circuits_on_sync_failure():
    calls = []

    def fail(_):
        raise KeyError("missing")

    pipeline = compose(fail, calls.append)
    with pytest.raises(KeyError):
        asyncio.run(pipeline(1))
    assert calls == []


def test_compose_runs_steps_sequentially():
    events = []

    async def slow(value):
        events.append("slow:start")
        await asyncio.sleep(0.01)
        events.append("slow:end")
        return value

    def fast(value):
        events.append("fast")
        return value

    asyncio.run(compose(slow, fast)(None))
    assert events == ["slow:start", "slow:end", "fast"]


def test_with_status_tags_value():
    value = {"id": 1}
    tagged = with_status({200: lambda v: True}, value)
    assert tagged == TaggedValue(data=value, status=200)
    assert tagged.data is value
    assert value == {"id": 1}


def test_with_status_empty_descriptor_fails():
    with pytest.raises(NoStatusMatched):
        with_status({}, "anything")


def test_with_status_no_match_fails():
    with pytest.raises(NoStatusMatched) as excinfo:
        with_status({404: lambda v: v is None}, 3)
    assert excinfo.value.value == 3


def test_with_status_uses_first_match_in_order():
    descriptor = {
        201: lambda v: v.get("created"),
        200: lambda v: True,
    }
    assert with_status(descriptor, {"created": True}).status == 201
    assert with_status(descriptor, {"created": False}).status == 200


def test_with_status_partial_application_and_status_types():
    select = with_status([(HTTPStatus.ACCEPTED, lambda v: v > 10), ("200", lambda v: True)])
    assert select(11) == TaggedValue(data=11, status=202)
    assert select(1).status == 200


def test_with_status_rejects_invalid_codes():
    with pytest.raises(ValueError):
        with_status({"abc": lambda v: True})
    with pytest.raises(ValueError):
        with_status({42: lambda v: True})
    with pytest.raises(TypeError):
        with_status({200: "yes"})


def test_responder_writes_value_with_200():
    response = ResponseSink()
    handler = make_responder(lambda ctx: {"echo": ctx.body})
    asyncio.run(handler(_ctx(body="hi"), response))
    assert response.written
    assert response.status_code == 200
    assert response.body == {"echo": "hi"}


def test_responder_writes_tagged_status():
    response = ResponseSink()
    handler = flow(lambda ctx: ctx.body, with_status({201: lambda v: True}))
    asyncio.run(handler(_ctx(body={"id": 7}), response))
    assert response.status_code == 201
    assert response.body == {"id": 7}


def test_responder_writes_failure_message_with_500():
    async def fail(_):
        raise RuntimeError("database unavailable")

    response = ResponseSink()
    asyncio.run(make_responder(fail)(_ctx(), response))
    assert response.status_code == 500
    assert response.body == "database unavailable"
    assert response.media_type == "text/plain"


def test_unmatched_status_becomes_500():
    response = ResponseSink()
    handler = flow(lambda ctx: ctx.body, with_status({}))
    asyncio.run(handler(_ctx(body=1), response))
    assert response.status_code == 500
    assert response.body == "No status matched the computed value"


def test_make_responder_rejects_non_callable():
    with pytest.raises(TypeError):
        make_responder(None)


def test_concurrent_runs_of_one_pipeline_do_not_share_state():
    async def tag_later(value):
        await asyncio.sleep(0.01 if value["id"] == 1 else 0)
        return {**value, "seen": True}

    pipeline = compose(lambda ctx: ctx.body, tag_later, lambda post: post["id"])

    async def run_both():
        return await asyncio.gather(pipeline(_ctx(body={"id": 1})), pipeline(_ctx(body={"id": 2})))

    assert asyncio.run(run_both()) == [1, 2]


class Opaque:
    __slots__ = ()


def test_unencodable_result_is_written_as_500():
    response = ResponseSink()
    asyncio.run(make_responder(lambda ctx: Opaque())(_ctx(), response))
    assert response.written
    assert response.status_code == 500
    assert response.media_type == "text/plain"


def test_sink_rejects_status_after_write():
    response = ResponseSink()
    response.status(201).send({"id": 1})
    with pytest.raises(ResponseAlreadySent):
        response.status(500)
    assert response.status_code == 201


def test_sink_encodes_json_when_written():
    class Post(BaseModel):
        id: int
        published: date

    response = ResponseSink()
    response.send(Post(id=1, published=date(2024, 5, 1)))
    assert response.body == {"id": 1, "published": "2024-05-01"}
    assert response.media_type == "application/json"
