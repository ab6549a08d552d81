"""
Pipeline contracts - Types and errors shared by the composition engine.

This module defines the core abstractions used throughout the pipeline:
- Step: a unary callable returning a value or an awaitable of a value
- TaggedValue: a computed value annotated with an explicit HTTP status
- RouteflowError and the errors raised by the pipeline
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

T = TypeVar("T")

# A step may return a value directly or suspend and return it later
Step = Callable[[Any], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class TaggedValue(Generic[T]):
    """
    A pipeline result with an explicitly selected status code.

    Attributes:
        data: The computed value, written as the response body
        status: HTTP status code to respond with
    """

    data: T
    status: int


class RouteflowError(Exception):
    """Base class for errors raised by routeflow."""

    pass


class NoStatusMatched(RouteflowError):
    """No predicate of a status descriptor accepted the value."""

    def __init__(self, value: Any) -> None:
        super().__init__("No status matched the computed value")
        self.value = value


class ResponseAlreadySent(RouteflowError):
    """A response was written twice for the same request."""

    pass
