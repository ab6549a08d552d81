"""
routeflow - Compose HTTP request handlers out of small sync/async functions.

Usage:
    from fastapi import FastAPI
    from routeflow import extend_flow, flow, get_path, register_routes

    app = FastAPI()
    register_routes(extend_flow(app), [
        {"method": "GET", "path": "/posts/:post_id", "handler": flow(get_path("params.post_id"), find_post)},
    ])
"""

from pydantic import Field

from .common import get_path, project, split_path
from .pipeline import (
    NoStatusMatched,
    RouteflowError,
    TaggedValue,
    compose,
    enable_return,
    flow,
    make_responder,
    with_status,
)
from .web import (
    AppConfig,
    ErrorHandler,
    Keyed,
    MiddlewareDescriptor,
    RequestContext,
    ResponseSink,
    RouteDescriptor,
    RoutingTable,
    Single,
    ValidationFailure,
    build_model,
    compile_schema,
    create_app,
    error_handler,
    extend_flow,
    install_validation_error_handler,
    make_middleware,
    register_routes,
    serve,
)

__version__ = "0.1.0"

__all__ = [
    # Schema helpers
    "Field",
    "build_model",
    # Paths & projection
    "get_path",
    "split_path",
    "project",
    # Pipeline
    "compose",
    "flow",
    "make_responder",
    "enable_return",
    "with_status",
    "TaggedValue",
    "RouteflowError",
    "NoStatusMatched",
    # Web
    "AppConfig",
    "RequestContext",
    "ResponseSink",
    "ErrorHandler",
    "error_handler",
    "MiddlewareDescriptor",
    "make_middleware",
    "RouteDescriptor",
    "RoutingTable",
    "Single",
    "Keyed",
    "ValidationFailure",
    "compile_schema",
    "register_routes",
    "install_validation_error_handler",
    "extend_flow",
    "create_app",
    "serve",
]
