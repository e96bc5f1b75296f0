"""Main application entrypoint for SQL Workspace."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sqlworkspace.api.middleware import HTTPErrorLoggingMiddleware
from sqlworkspace.api.v1 import routes_crud, routes_health, routes_nlq, routes_tables
from sqlworkspace.core.config import settings
from sqlworkspace.core.database import create_engine
from sqlworkspace.core.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The engine owns the connection pool for the whole process
    app.state.engine = create_engine()
    logger.info(
        f"{settings.SERVICE_NAME} started",
        extra={"version": settings.SERVICE_VERSION, "env": settings.ENV},
    )

    yield

    await app.state.engine.dispose()
    logger.info("Database engine disposed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(HTTPErrorLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_tables.router, tags=["tables"])
    app.include_router(routes_nlq.router, tags=["nlq"])
    app.include_router(routes_crud.router, tags=["crud"])

    return app


# Export app instance for ASGI servers
app = create_app()
