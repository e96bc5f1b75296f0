"""Schema context module for NLQ.

This module reads table definitions from the MySQL catalog and renders
them into the compact text form handed to the LLM as schema context.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from sqlworkspace.core.config import settings
from sqlworkspace.core.exceptions import NotFoundError, QueryError
from sqlworkspace.nlq.query_engine import store_error_message

logger = logging.getLogger(__name__)

_COLUMNS_QUERY = text(
    """
    SELECT COLUMN_NAME, DATA_TYPE
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_NAME = :table_name AND TABLE_SCHEMA = :table_schema
    ORDER BY ORDINAL_POSITION
    """
)

_TABLES_QUERY = text(
    """
    SELECT
      TABLE_NAME AS tableName,
      CREATE_TIME AS createdAt,
      TABLE_ROWS AS rowCount
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_SCHEMA = :table_schema
    ORDER BY CREATE_TIME DESC
    """
)


@dataclass(frozen=True)
class ColumnDescriptor:
    """Schema definition for a single column."""

    name: str
    data_type: str


@dataclass(frozen=True)
class TableSchema:
    """Columns of a table in catalog order.

    An empty column list means the catalog has no such table.
    """

    name: str
    columns: tuple[ColumnDescriptor, ...] = field(default_factory=tuple)

    @property
    def exists(self) -> bool:
        return len(self.columns) > 0

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    def to_dict_list(self) -> list[dict[str, str]]:
        """Catalog rows in the shape the HTTP API returns them."""
        return [
            {"COLUMN_NAME": col.name, "DATA_TYPE": col.data_type}
            for col in self.columns
        ]


async def read_schema(engine: AsyncEngine, table_name: str) -> TableSchema:
    """Read column metadata for a table from INFORMATION_SCHEMA.

    Args:
        engine: Database engine
        table_name: Table to describe

    Returns:
        TableSchema, with no columns if the table does not exist

    Raises:
        QueryError: If the catalog query itself fails
    """
    try:
        async with engine.connect() as conn:
            result = await conn.execute(
                _COLUMNS_QUERY,
                {"table_name": table_name, "table_schema": settings.DB_NAME},
            )
            rows = result.fetchall()
    except SQLAlchemyError as e:
        logger.error(
            f"Failed to read schema for table {table_name}: {e}",
            extra={"table_name": table_name},
        )
        raise QueryError(store_error_message(e))

    columns = tuple(ColumnDescriptor(name=row[0], data_type=row[1]) for row in rows)

    logger.debug(
        f"Read schema for table {table_name}",
        extra={"table_name": table_name, "column_count": len(columns)},
    )

    return TableSchema(name=table_name, columns=columns)


def format_schema(schema: TableSchema) -> str:
    """Render a table schema as ``name(col1 type1, col2 type2)``."""
    columns = ", ".join(f"{col.name} {col.data_type}" for col in schema.columns)
    return f"{schema.name}({columns})"


async def read_schemas(engine: AsyncEngine, table_names: list[str]) -> list[TableSchema]:
    """Read several table schemas concurrently, preserving request order."""
    return list(
        await asyncio.gather(*(read_schema(engine, name) for name in table_names))
    )


async def build_schema_context(
    engine: AsyncEngine,
    table_names: list[str],
    correlation_id: str | None = None,
) -> str:
    """Build the schema text for the given tables.

    All catalog lookups run concurrently and must all succeed: one missing
    table fails the whole request rather than answering against partial
    context.

    Args:
        engine: Database engine
        table_names: Tables named by the user
        correlation_id: Optional correlation ID for logging

    Returns:
        Formatted schemas joined by newlines

    Raises:
        NotFoundError: If any table has no columns in the catalog
    """
    log_extra = {"correlation_id": correlation_id} if correlation_id else {}

    schemas = await read_schemas(engine, table_names)

    for schema in schemas:
        if not schema.exists:
            logger.warning(
                f"Table '{schema.name}' not found",
                extra={**log_extra, "table_name": schema.name},
            )
            raise NotFoundError(f"Table '{schema.name}' not found")

    schema_text = "\n".join(format_schema(schema) for schema in schemas)

    logger.info(
        "Built schema context",
        extra={**log_extra, "tables": table_names},
    )

    return schema_text


async def list_tables(engine: AsyncEngine) -> list[dict[str, Any]]:
    """List the tables of the configured database, newest first.

    Raises:
        QueryError: If the catalog query fails
    """
    try:
        async with engine.connect() as conn:
            result = await conn.execute(_TABLES_QUERY, {"table_schema": settings.DB_NAME})
            return [dict(row) for row in result.mappings()]
    except SQLAlchemyError as e:
        logger.error(f"Failed to list tables: {e}")
        raise QueryError(store_error_message(e))
