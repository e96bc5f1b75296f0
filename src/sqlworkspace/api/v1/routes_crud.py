"""Structured CRUD API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncEngine

from sqlworkspace.core.database import get_engine
from sqlworkspace.core.exceptions import QueryError, ValidationError
from sqlworkspace.core.logging import correlation_id_context
from sqlworkspace.crud.query_builder import CrudOperation, build_crud_query
from sqlworkspace.models.query import CrudRequest, CrudResponse
from sqlworkspace.nlq.query_engine import execute_sql

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/crud", response_model=CrudResponse)
async def crud(request: CrudRequest, engine: AsyncEngine = Depends(get_engine)) -> CrudResponse:
    """Run one INSERT, UPDATE, DELETE, TRUNCATE or DROP statement.

    Values are always bound as parameters. The ``where`` text is inserted
    as raw SQL, and UPDATE and DELETE without it are refused.
    """
    correlation_id = correlation_id_context.get()

    logger.info(
        "CRUD request received",
        extra={
            "correlation_id": correlation_id,
            "operation": request.operation,
            "table_name": request.table_name,
        },
    )

    if not request.operation or not request.table_name:
        raise HTTPException(status_code=400, detail="Operation and table name required")

    try:
        operation = CrudOperation.parse(request.operation)
        query = build_crud_query(
            operation,
            request.table_name,
            data=request.data,
            where=request.where,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = await execute_sql(
            engine, query.sql, query.bind_params, correlation_id=correlation_id
        )
    except QueryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(
            "Unexpected error in crud endpoint",
            extra={"correlation_id": correlation_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="An unexpected error occurred")

    logger.info(
        f"{operation.value} successful",
        extra={"correlation_id": correlation_id, "affected_rows": result.affected_rows},
    )

    return CrudResponse(
        success=True,
        operation=operation.value,
        affected_rows=result.affected_rows,
        message=f"{operation.value} completed successfully",
    )
