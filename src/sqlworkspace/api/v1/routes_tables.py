"""Table browsing API routes."""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncEngine

from sqlworkspace.core.config import settings
from sqlworkspace.core.database import get_engine
from sqlworkspace.core.exceptions import QueryError, ValidationError
from sqlworkspace.core.logging import correlation_id_context
from sqlworkspace.crud.query_builder import build_count, build_select_page, validate_table_name
from sqlworkspace.nlq.query_engine import execute_sql
from sqlworkspace.nlq.schema_context import list_tables, read_schema, read_schemas

logger = logging.getLogger(__name__)

router = APIRouter()


def _checked_table_name(table_name: str) -> str:
    try:
        return validate_table_name(table_name)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _unexpected_error(endpoint: str, error: Exception) -> HTTPException:
    logger.error(
        f"Unexpected error in {endpoint} endpoint",
        extra={"correlation_id": correlation_id_context.get(), "error": str(error)},
        exc_info=True,
    )
    return HTTPException(status_code=500, detail="An unexpected error occurred")


@router.get("/tables")
async def get_tables(engine: AsyncEngine = Depends(get_engine)) -> dict[str, Any]:
    """List tables of the database with their columns."""
    logger.info("Fetching table list")

    try:
        tables = await list_tables(engine)
        schemas = await read_schemas(engine, [table["tableName"] for table in tables])
    except QueryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise _unexpected_error("tables", e)

    tables_with_details = [
        {
            **table,
            "columnCount": len(schema.columns),
            "columns": schema.column_names,
        }
        for table, schema in zip(tables, schemas)
    ]

    logger.info(f"Found {len(tables_with_details)} tables")
    return {"tables": tables_with_details}


@router.get("/table/{table_name}/preview")
async def get_table_preview(
    table_name: str, engine: AsyncEngine = Depends(get_engine)
) -> dict[str, Any]:
    """Schema and first rows of a table."""
    table_name = _checked_table_name(table_name)
    query = build_select_page(table_name, limit=settings.TABLE_PREVIEW_ROWS)

    try:
        schema, preview = await asyncio.gather(
            read_schema(engine, table_name),
            execute_sql(engine, query.sql, query.bind_params),
        )
    except QueryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise _unexpected_error("table preview", e)

    return {
        "tableName": table_name,
        "schema": schema.to_dict_list(),
        "preview": preview.rows,
        "columnCount": len(schema.columns),
        "rowCount": preview.row_count,
    }


@router.get("/table/{table_name}/full")
async def get_table_full(
    table_name: str,
    offset: int = Query(0),
    limit: int = Query(settings.TABLE_PAGE_DEFAULT_LIMIT),
    engine: AsyncEngine = Depends(get_engine),
) -> dict[str, Any]:
    """One page of a table's rows with the total row count."""
    table_name = _checked_table_name(table_name)
    limit = min(limit, settings.TABLE_PAGE_MAX_LIMIT)

    try:
        page_query = build_select_page(table_name, limit=limit, offset=offset)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    count_query = build_count(table_name)

    logger.info(
        f"Fetching full table: {table_name}",
        extra={"table_name": table_name, "offset": offset, "limit": limit},
    )

    try:
        count_result, page, schema = await asyncio.gather(
            execute_sql(engine, count_query.sql, count_query.bind_params),
            execute_sql(engine, page_query.sql, page_query.bind_params),
            read_schema(engine, table_name),
        )
    except QueryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise _unexpected_error("full table", e)

    total = count_result.rows[0]["count"] if count_result.rows else 0

    return {
        "tableName": table_name,
        "data": page.rows,
        "schema": schema.to_dict_list(),
        "total": total,
        "offset": offset,
        "limit": limit,
        "hasMore": offset + page.row_count < total,
    }


@router.get("/table/{table_name}/count")
async def get_table_count(
    table_name: str, engine: AsyncEngine = Depends(get_engine)
) -> dict[str, Any]:
    """Number of rows in a table."""
    table_name = _checked_table_name(table_name)
    query = build_count(table_name)

    try:
        result = await execute_sql(engine, query.sql, query.bind_params)
    except QueryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        raise _unexpected_error("table count", e)

    return {"tableName": table_name, "count": result.rows[0]["count"] if result.rows else 0}
