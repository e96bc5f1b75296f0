"""Natural Language Query (NLQ) API routes.

This module provides the endpoint that translates a question about named
tables into SQL and executes it, plus raw SQL execution.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncEngine

from sqlworkspace.core.database import get_engine
from sqlworkspace.core.exceptions import NotFoundError, QueryError, UpstreamModelError
from sqlworkspace.core.logging import correlation_id_context
from sqlworkspace.models.query import AskRequest, AskResponse, ExecuteRequest, ExecuteResponse
from sqlworkspace.nlq.classifier import annotate_warning, is_destructive
from sqlworkspace.nlq.llm_sql import translate_question
from sqlworkspace.nlq.query_engine import execute_sql
from sqlworkspace.nlq.schema_context import build_schema_context

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ask", response_model=AskResponse)
async def ask(request: AskRequest, engine: AsyncEngine = Depends(get_engine)) -> AskResponse:
    """Answer a question about one or more tables.

    Reads the schemas of all named tables, asks the LLM for SQL, annotates
    destructive statements with a warning and executes the SQL.

    Raises:
        HTTPException: 400 for invalid requests or rejected SQL, 404 for
            unknown tables, 502 if the LLM fails
    """
    correlation_id = correlation_id_context.get()
    log_extra = {"correlation_id": correlation_id} if correlation_id else {}

    tables = request.table_list()
    question = (request.question or "").strip()

    logger.info(
        "Ask request received",
        extra={**log_extra, "tables": tables, "question": question},
    )

    if not tables or not question:
        raise HTTPException(status_code=400, detail="At least one table and question required")

    try:
        try:
            schema_text = await build_schema_context(
                engine, tables, correlation_id=correlation_id
            )
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except QueryError as e:
            raise HTTPException(status_code=400, detail=str(e))

        try:
            translation = await translate_question(
                schema_text, question, correlation_id=correlation_id
            )
        except UpstreamModelError as e:
            raise HTTPException(status_code=502, detail=str(e))

        warning = annotate_warning(translation.sql, translation.warning)
        if is_destructive(translation.sql):
            logger.warning(
                "Generated SQL looks destructive",
                extra={**log_extra, "sql": translation.sql},
            )

        try:
            result = await execute_sql(engine, translation.sql, correlation_id=correlation_id)
        except QueryError as e:
            raise HTTPException(status_code=400, detail=str(e))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error in ask endpoint",
            extra={**log_extra, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="An unexpected error occurred")

    return AskResponse(
        sql=translation.sql,
        results=result.rows,
        explanation=translation.explanation,
        warning=warning,
        row_count=result.row_count,
        affected_rows=result.affected_rows,
    )


@router.post("/execute", response_model=ExecuteResponse)
async def execute(
    request: ExecuteRequest, engine: AsyncEngine = Depends(get_engine)
) -> ExecuteResponse:
    """Execute SQL text as given, typically SQL previously returned by /ask."""
    correlation_id = correlation_id_context.get()

    if not request.sql or not request.sql.strip():
        raise HTTPException(status_code=400, detail="SQL query required")

    logger.info(
        "Execute request received",
        extra={
            "correlation_id": correlation_id,
            "require_confirmation": request.require_confirmation,
        },
    )

    try:
        result = await execute_sql(engine, request.sql, correlation_id=correlation_id)
    except QueryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(
            "Unexpected error in execute endpoint",
            extra={"correlation_id": correlation_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="An unexpected error occurred")

    return ExecuteResponse(
        results=result.rows,
        row_count=result.row_count,
        affected_rows=result.affected_rows,
    )
