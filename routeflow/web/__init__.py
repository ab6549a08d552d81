"""
Web module - Routing table, middleware adapter, validation and route
registration on top of FastAPI.
"""

from .chain import ErrorHandler, Middleware, Proceed, run_chain
from .config import AppConfig, configure_logging
from .context import RequestContext, ResponseSink
from .main import create_app, extend_flow, serve
from .middleware import MiddlewareDescriptor, error_handler, make_middleware
from .registrar import (
    Keyed,
    RouteDescriptor,
    Single,
    install_validation_error_handler,
    register_routes,
    resolve_handler,
)
from .routing import RoutingTable
from .validation import ValidationFailure, build_model, compile_schema, validation_error_handler

__all__ = [
    # Context
    "RequestContext",
    "ResponseSink",
    # Chain
    "ErrorHandler",
    "Middleware",
    "Proceed",
    "run_chain",
    "error_handler",
    # Middleware adapter
    "MiddlewareDescriptor",
    "make_middleware",
    # Routing
    "RoutingTable",
    "RouteDescriptor",
    "Single",
    "Keyed",
    "resolve_handler",
    "register_routes",
    "install_validation_error_handler",
    # Validation
    "ValidationFailure",
    "build_model",
    "compile_schema",
    "validation_error_handler",
    # App
    "AppConfig",
    "configure_logging",
    "create_app",
    "extend_flow",
    "serve",
]
