"""Dynamic query builder for structured table operations.

Identifiers and values travel through two separate channels:

- table and column names are quoted with the MySQL identifier preparer,
  and table names must additionally match ``[A-Za-z0-9_]+``;
- values only ever appear as named bind placeholders (``:p0``, ``:p1``...).

The ``where`` filter of UPDATE and DELETE is the exception. It is raw SQL
supplied by the caller and is inserted verbatim, wrapped in ``RawPredicate``
so that the lower trust level stays visible wherever it is handled.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from sqlalchemy.dialects import mysql

from sqlworkspace.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

TABLE_NAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")

# Named paramstyle keeps "%" in identifiers from being doubled
_identifier_preparer = mysql.dialect(paramstyle="named").identifier_preparer


class CrudOperation(str, Enum):
    """Supported structured operations."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"
    DROP = "DROP"

    @classmethod
    def parse(cls, value: str) -> "CrudOperation":
        try:
            return cls(value.strip().upper())
        except (AttributeError, ValueError):
            raise ValidationError(f"Unsupported operation: {value}")


@dataclass(frozen=True)
class RawPredicate:
    """Caller-supplied filter text, inserted into SQL without parameterization."""

    text: str

    def render(self) -> str:
        # Escape colons so text() never reads the predicate as bind parameters
        return self.text.replace(":", "\\:")


@dataclass
class BuiltQuery:
    """SQL text with bind placeholders and their values in order."""

    sql: str
    params: list[Any] = field(default_factory=list)

    @property
    def bind_params(self) -> dict[str, Any]:
        """Values keyed by placeholder name, as ``text()`` expects them."""
        return {_placeholder_name(i): value for i, value in enumerate(self.params)}


def _placeholder_name(index: int) -> str:
    return f"p{index}"


def validate_table_name(table_name: str | None) -> str:
    """Check a table name against the identifier allow-list.

    Raises:
        ValidationError: If the name is empty or has characters outside [A-Za-z0-9_]
    """
    if not table_name or not TABLE_NAME_PATTERN.fullmatch(table_name):
        raise ValidationError(
            f"Invalid table name: {table_name}. Use only letters, numbers, and underscores."
        )
    return table_name


def quote_identifier(name: str) -> str:
    """Quote a table or column name for MySQL, with colons escaped for ``text()``."""
    if not name:
        raise ValidationError("Column names must not be empty")
    return _identifier_preparer.quote_identifier(name).replace(":", "\\:")


def _quoted_table(table_name: str) -> str:
    return quote_identifier(validate_table_name(table_name))


def _require_data(data: Mapping[str, Any] | None, operation: CrudOperation) -> Mapping[str, Any]:
    if not data:
        raise ValidationError(f"Data required for {operation.value}")
    return data


def _require_where(where: str | None, operation: CrudOperation) -> RawPredicate:
    if where is None or not where.strip():
        raise ValidationError(f"WHERE clause required for {operation.value}")
    return RawPredicate(where)


def build_crud_query(
    operation: CrudOperation | str,
    table_name: str,
    data: Mapping[str, Any] | None = None,
    where: str | None = None,
) -> BuiltQuery:
    """Build a parameterized statement for a structured operation.

    Args:
        operation: INSERT, UPDATE, DELETE, TRUNCATE or DROP (any case)
        table_name: Target table
        data: Column values, required for INSERT and UPDATE
        where: Raw filter SQL, required for UPDATE and DELETE

    Returns:
        BuiltQuery ready for execution

    Raises:
        ValidationError: If the operation is unknown, the table name is
            unsafe, or a required field is missing
    """
    if not isinstance(operation, CrudOperation):
        operation = CrudOperation.parse(operation)

    table = _quoted_table(table_name)

    if operation is CrudOperation.INSERT:
        values = _require_data(data, operation)
        columns = ", ".join(quote_identifier(col) for col in values)
        placeholders = ", ".join(f":{_placeholder_name(i)}" for i in range(len(values)))
        query = BuiltQuery(
            sql=f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            params=list(values.values()),
        )

    elif operation is CrudOperation.UPDATE:
        values = _require_data(data, operation)
        predicate = _require_where(where, operation)
        assignments = ", ".join(
            f"{quote_identifier(col)} = :{_placeholder_name(i)}"
            for i, col in enumerate(values)
        )
        query = BuiltQuery(
            sql=f"UPDATE {table} SET {assignments} WHERE {predicate.render()}",
            params=list(values.values()),
        )

    elif operation is CrudOperation.DELETE:
        predicate = _require_where(where, operation)
        query = BuiltQuery(sql=f"DELETE FROM {table} WHERE {predicate.render()}")

    elif operation is CrudOperation.TRUNCATE:
        query = BuiltQuery(sql=f"TRUNCATE TABLE {table}")

    else:
        query = BuiltQuery(sql=f"DROP TABLE IF EXISTS {table}")

    logger.debug(
        f"Built {operation.value} statement",
        extra={"table_name": table_name, "param_count": len(query.params)},
    )

    return query


def build_select_page(table_name: str, limit: int, offset: int = 0) -> BuiltQuery:
    """``SELECT *`` over one page of a table."""
    if limit < 0 or offset < 0:
        raise ValidationError("limit and offset must not be negative")
    return BuiltQuery(
        sql=f"SELECT * FROM {_quoted_table(table_name)} LIMIT :p0 OFFSET :p1",
        params=[limit, offset],
    )


def build_count(table_name: str) -> BuiltQuery:
    """Row count of a table, returned in a ``count`` column."""
    return BuiltQuery(sql=f"SELECT COUNT(*) AS count FROM {_quoted_table(table_name)}")
