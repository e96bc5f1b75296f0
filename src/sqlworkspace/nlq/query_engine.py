"""Query execution engine.

This module runs finished SQL against MySQL and normalizes the driver's
result into rows for queries or an affected-row count for mutations.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from sqlworkspace.core.exceptions import QueryError

logger = logging.getLogger(__name__)

# cursor.execute(sql) with no args, so the driver never %-formats raw SQL
RAW_SQL_OPTIONS = {"no_parameters": True}


@dataclass
class ExecutionResult:
    """Normalized result of a statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    affected_rows: int = 0

    @property
    def row_count(self) -> int:
        return len(self.rows)


def store_error_message(error: SQLAlchemyError) -> str:
    """Message of the underlying DBAPI error, without SQLAlchemy's decoration."""
    orig = getattr(error, "orig", None)
    if orig is not None:
        args = getattr(orig, "args", ())
        # MySQL drivers raise (errno, message)
        if len(args) >= 2 and isinstance(args[1], str):
            return args[1]
        return str(orig)
    return str(error)


async def execute_sql(
    engine: AsyncEngine,
    sql: str,
    params: Mapping[str, Any] | None = None,
    correlation_id: str | None = None,
) -> ExecutionResult:
    """Execute a statement and normalize its result.

    With ``params`` the statement is bound through SQLAlchemy ``text()``
    named parameters. Without them the SQL goes to the cursor with no
    parameters at all, so colons and percent signs in generated SQL
    (``LIKE '%abc%'``, ``DATE_FORMAT(d, '%Y-%m')``) reach MySQL unchanged.

    Args:
        engine: Database engine
        sql: Statement to run
        params: Bind values keyed by placeholder name
        correlation_id: Optional correlation ID for logging

    Returns:
        ExecutionResult with rows or affected row count

    Raises:
        QueryError: If the database rejects the statement
    """
    log_extra = {"correlation_id": correlation_id} if correlation_id else {}

    logger.info("Executing SQL", extra={**log_extra, "sql": sql})

    start_time = time.time()

    try:
        async with engine.begin() as conn:
            if params is None:
                result = await conn.exec_driver_sql(sql, execution_options=RAW_SQL_OPTIONS)
            else:
                result = await conn.execute(text(sql), dict(params))

            if result.returns_rows:
                rows = [dict(row) for row in result.mappings()]
                execution_result = ExecutionResult(rows=rows, affected_rows=0)
            else:
                affected = max(result.rowcount or 0, 0)
                execution_result = ExecutionResult(rows=[], affected_rows=affected)

    except SQLAlchemyError as e:
        message = store_error_message(e)
        logger.error(
            "SQL execution failed",
            extra={
                **log_extra,
                "error": message,
                "execution_time_seconds": round(time.time() - start_time, 3),
            },
        )
        raise QueryError(message)

    logger.info(
        "SQL executed",
        extra={
            **log_extra,
            "execution_time_seconds": round(time.time() - start_time, 3),
            "row_count": execution_result.row_count,
            "affected_rows": execution_result.affected_rows,
        },
    )

    return execution_result
