"""Natural Language Query (NLQ) module for MySQL.

This module turns plain-text questions about named tables into SQL,
flags destructive statements and executes the result.
"""

from sqlworkspace.nlq.classifier import annotate_warning, is_destructive
from sqlworkspace.nlq.llm_sql import TranslationResult, parse_model_reply, translate_question
from sqlworkspace.nlq.query_engine import ExecutionResult, execute_sql
from sqlworkspace.nlq.schema_context import (
    ColumnDescriptor,
    TableSchema,
    build_schema_context,
    format_schema,
    read_schema,
)

__all__ = [
    "annotate_warning",
    "is_destructive",
    "TranslationResult",
    "parse_model_reply",
    "translate_question",
    "ExecutionResult",
    "execute_sql",
    "ColumnDescriptor",
    "TableSchema",
    "build_schema_context",
    "format_schema",
    "read_schema",
]
