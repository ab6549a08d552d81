"""
Pipeline module - Composition engine for request handlers.

This module provides the core pipeline infrastructure:
- contracts: Shared types and errors
- compose: Sequential composition of sync/async steps
- status: Declarative status selection
- responder: Writing results and failures to the response
"""

from .compose import Pipeline, compose, resolve
from .contracts import (
    NoStatusMatched,
    ResponseAlreadySent,
    RouteflowError,
    Step,
    TaggedValue,
)
from .responder import enable_return, flow, make_responder
from .status import StatusDescriptor, with_status

__all__ = [
    # Types
    "Pipeline",
    "Step",
    "StatusDescriptor",
    "TaggedValue",
    # Exceptions
    "RouteflowError",
    "NoStatusMatched",
    "ResponseAlreadySent",
    # Composition
    "compose",
    "resolve",
    "with_status",
    # Responders
    "make_responder",
    "enable_return",
    "flow",
]
