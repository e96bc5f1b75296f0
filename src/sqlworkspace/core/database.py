"""Database engine lifecycle.

The async engine owns the connection pool shared by all requests. It is
created once at application startup, stored on ``app.state`` and disposed
on shutdown. Routes receive it through the ``get_engine`` dependency so
core functions always take it as an explicit argument.
"""

import logging

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sqlworkspace.core.config import settings

logger = logging.getLogger(__name__)


def create_engine() -> AsyncEngine:
    """Create the async engine backing the connection pool.

    Returns:
        AsyncEngine bound to the configured MySQL database
    """
    engine = create_async_engine(
        settings.database_url,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=0,
    )
    logger.info(
        "Created database engine",
        extra={
            "db_host": settings.DB_HOST,
            "db_name": settings.DB_NAME,
            "pool_size": settings.DB_POOL_SIZE,
        },
    )
    return engine


def get_engine(request: Request) -> AsyncEngine:
    """FastAPI dependency returning the application's engine."""
    return request.app.state.engine
