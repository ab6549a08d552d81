"""
Request context and response sink passed along a route's middleware chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from http import HTTPStatus
from typing import Any, Dict, Optional, Union

from fastapi.encoders import jsonable_encoder
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from ..pipeline.contracts import ResponseAlreadySent


@dataclass
class RequestContext:
    """
    Mutable per-request state shared by every link of a chain.

    Attributes:
        method: Upper-case HTTP method
        path: Request path
        params: Path parameters
        query: Query parameters (repeated keys become lists)
        headers: Request headers with lower-case names
        body: Parsed request body (JSON, form fields, text or raw bytes)
        request: The underlying Starlette request
        extras: Values stored by middleware under their target key
    """

    method: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    query: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    request: Optional[Request] = field(default=None, repr=False, compare=False)
    extras: Dict[str, Any] = field(default_factory=dict)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails
        extras = self.__dict__.get("extras")
        if extras is not None and name in extras:
            return extras[name]
        raise AttributeError(f"{type(self).__name__!s} has no attribute {name!r}")

    def __getitem__(self, key: str) -> Any:
        if key in RESERVED_KEYS:
            return getattr(self, key)
        return self.extras[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in RESERVED_KEYS:
            setattr(self, key, value)
        else:
            self.extras[key] = value

    def __contains__(self, key: object) -> bool:
        return key in RESERVED_KEYS or key in self.extras

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default


# Request state owned by the context; extras hold everything else
RESERVED_KEYS = frozenset(f.name for f in fields(RequestContext))


class ResponseSink:
    """
    Collects the response written by a chain link.

    A response can be written once; ``status`` and ``set_header`` return the
    sink so calls can be chained: ``response.status(201).send(post)``.
    """

    def __init__(self) -> None:
        self.status_code: int = int(HTTPStatus.OK)
        self.headers: Dict[str, str] = {}
        self.body: Any = None
        self.media_type: Optional[str] = None
        self.written: bool = False

    def status(self, code: Union[int, HTTPStatus]) -> "ResponseSink":
        if self.written:
            raise ResponseAlreadySent("Response already sent")
        self.status_code = int(code)
        return self

    def set_header(self, name: str, value: str) -> "ResponseSink":
        self.headers[name] = value
        return self

    def send(self, body: Any = None) -> "ResponseSink":
        """
        Write ``body``; strings are sent as text, other values as JSON.

        JSON bodies are encoded here, so a value that cannot be encoded fails
        the write instead of the rendering.
        """
        if self.written:
            raise ResponseAlreadySent("Response already sent")
        if isinstance(body, str):
            media_type = "text/plain"
        elif isinstance(body, (bytes, bytearray)):
            body = bytes(body)
            media_type = self.media_type or "application/octet-stream"
        elif body is not None:
            body = jsonable_encoder(body)
            media_type = "application/json"
        else:
            media_type = self.media_type
        self.media_type = media_type
        self.body = body
        self.written = True
        return self

    def json(self, body: Any) -> "ResponseSink":
        """Write ``body`` as JSON, including plain strings."""
        if self.written:
            raise ResponseAlreadySent("Response already sent")
        self.body = jsonable_encoder(body)
        self.media_type = "application/json"
        self.written = True
        return self

    def to_response(self) -> Response:
        """Render the written state as a Starlette response."""
        if self.media_type == "application/json":
            return JSONResponse(content=self.body, status_code=self.status_code, headers=self.headers)
        if self.media_type == "text/plain":
            return PlainTextResponse(self.body, status_code=self.status_code, headers=self.headers)
        return Response(
            content=self.body or b"",
            status_code=self.status_code,
            headers=self.headers,
            media_type=self.media_type,
        )
