"""LLM-based SQL generation from natural language.

This module sends the schema context and the user's question to an
OpenAI-compatible chat completion endpoint and parses the sectioned
reply into SQL, a business explanation and an optional warning.
"""

import logging
import re
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from sqlworkspace.core.config import settings
from sqlworkspace.core.exceptions import UpstreamModelError

logger = logging.getLogger(__name__)

SQL_MARKER = "SQL_QUERY:"
EXPLANATION_MARKER = "BUSINESS_EXPLANATION:"
WARNING_MARKER = "WARNING:"

SYSTEM_MESSAGE = "You are an expert MySQL SQL generator. Generate only valid MySQL queries."

_CODE_FENCE_OPEN = re.compile(r"```sql\n?", re.IGNORECASE)
_CODE_FENCE = re.compile(r"```\n?")


@dataclass(frozen=True)
class TranslationResult:
    """Parsed model reply. Missing sections are empty strings."""

    sql: str = ""
    explanation: str = ""
    warning: str = ""


def build_prompt(schema_text: str, question: str) -> str:
    """Build the user prompt from schema context and question.

    Args:
        schema_text: Formatted table schemas, one per line
        question: Natural language question

    Returns:
        Prompt string with rules, schemas, question and output format
    """
    return f"""
You are an expert MySQL SQL generator.

Rules:
- Generate ONLY SQL code, no explanations in the query
- Use ONLY the schemas provided below
- Use MySQL syntax
- For multi-table queries, use JOIN, UNION, or subqueries as appropriate
- Do NOT add LIMIT unless explicitly requested
- Do NOT hallucinate columns or tables
- Generate SELECT queries for read operations
- Generate INSERT/UPDATE/DELETE only if explicitly requested
- Warn about destructive operations

Available Tables and Schemas:
{schema_text}

Question:
{question}

Output format:
{SQL_MARKER}
<sql>

{EXPLANATION_MARKER}
<explanation>

{WARNING_MARKER}
<warning if destructive operation>
"""


def _section(text: str, marker: str, *terminators: str) -> str:
    """Text after ``marker`` up to the first of ``terminators``."""
    _, found, tail = text.partition(marker)
    if not found:
        return ""
    for terminator in terminators:
        tail = tail.split(terminator, 1)[0]
    return tail.strip()


def _strip_code_fences(sql: str) -> str:
    sql = _CODE_FENCE_OPEN.sub("", sql)
    sql = _CODE_FENCE.sub("", sql)
    return sql.strip()


def parse_model_reply(content: str) -> TranslationResult:
    """Parse a sectioned model reply.

    The model's formatting is not guaranteed, so this never raises: a
    missing marker leaves the corresponding field empty.
    """
    sql = _section(content, SQL_MARKER, EXPLANATION_MARKER, WARNING_MARKER)
    explanation = _section(content, EXPLANATION_MARKER, WARNING_MARKER)
    warning = _section(content, WARNING_MARKER)

    return TranslationResult(
        sql=_strip_code_fences(sql),
        explanation=explanation,
        warning=warning,
    )


async def translate_question(
    schema_text: str,
    question: str,
    correlation_id: str | None = None,
) -> TranslationResult:
    """Generate SQL for a question using the LLM.

    Args:
        schema_text: Formatted schemas of the tables the question is about
        question: Natural language question from user
        correlation_id: Optional correlation ID for logging

    Returns:
        TranslationResult with non-empty sql

    Raises:
        UpstreamModelError: If the LLM is unavailable, fails, or returns no SQL
    """
    log_extra = {"correlation_id": correlation_id} if correlation_id else {}

    logger.info(
        "Generating SQL from natural language query",
        extra={**log_extra, "question": question},
    )

    if not settings.LLM_ENABLED:
        logger.warning("LLM is disabled", extra=log_extra)
        raise UpstreamModelError("Natural language query feature is disabled")

    if not settings.LLM_API_KEY:
        logger.error("LLM_API_KEY not configured", extra=log_extra)
        raise UpstreamModelError("LLM API key not configured")

    prompt = build_prompt(schema_text, question)

    try:
        client = AsyncOpenAI(
            base_url=settings.LLM_BASE_URL,
            api_key=settings.LLM_API_KEY,
        )

        logger.debug(
            "Calling LLM API",
            extra={**log_extra, "model": settings.LLM_MODEL},
        )

        response = await client.chat.completions.create(
            model=settings.LLM_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            temperature=0,
            max_tokens=settings.LLM_MAX_TOKENS,
        )
    except OpenAIError as e:
        logger.error(f"LLM API error: {e}", extra=log_extra)
        raise UpstreamModelError(f"LLM API call failed: {e}")

    content = response.choices[0].message.content if response.choices else None
    if not content:
        logger.error("LLM returned an empty response", extra=log_extra)
        raise UpstreamModelError("LLM returned no content")

    logger.debug(
        "LLM API response received",
        extra={**log_extra, "llm_response": content},
    )

    result = parse_model_reply(content)
    if not result.sql:
        logger.error(
            "LLM response contained no SQL",
            extra={**log_extra, "llm_response": content},
        )
        raise UpstreamModelError("LLM response did not contain a SQL query")

    logger.info(
        "Successfully generated SQL from natural language",
        extra={**log_extra, "sql": result.sql},
    )

    return result
