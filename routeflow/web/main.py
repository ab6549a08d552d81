"""
Main Application - FastAPI app factory and server entry points
"""
import logging
from contextlib import asynccontextmanager
from typing import Iterable, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import AppConfig, configure_logging
from .registrar import RouteLike, register_routes
from .routing import RoutingTable

logger = logging.getLogger(__name__)


def extend_flow(app: FastAPI, *, request_log: bool = False) -> RoutingTable:
    """
    Attach a routing table to ``app`` and return it.

    Calling it again on the same app returns the existing table.
    """
    table = getattr(app.state, "routing_table", None)
    if table is None:
        table = RoutingTable(app, request_log=request_log)
        app.state.routing_table = table
    return table


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    table = getattr(app.state, "routing_table", None)
    count = len(table.routes) if table is not None else 0
    logger.info("Starting %s with %d declarative routes", app.title, count)
    yield
    logger.info("Shutting down %s", app.title)


def create_app(
    routes: Optional[Iterable[RouteLike]] = None,
    config: Optional[AppConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application"""
    config = config or AppConfig.from_env()
    app = FastAPI(
        title=config.title,
        version=config.version,
        debug=config.debug,
        lifespan=lifespan,
    )
    app.state.config = config

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions outside declarative routes."""
        logger.exception("Unexpected error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    @app.get("/health")
    async def health():
        """Liveness check: server process is up"""
        return {"status": "live"}

    table = extend_flow(app, request_log=config.request_log)
    if routes is not None:
        register_routes(table, routes)

    return app


async def serve(app: FastAPI, config: Optional[AppConfig] = None) -> None:
    """Serve ``app`` with uvicorn until the server is stopped."""
    config = config or getattr(app.state, "config", None) or AppConfig.from_env()
    configure_logging(config.log_level)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
        )
    )
    logger.info("Listening on http://%s:%d", config.host, config.port)
    await server.serve()


if __name__ == "__main__":
    import asyncio

    asyncio.run(serve(create_app()))
