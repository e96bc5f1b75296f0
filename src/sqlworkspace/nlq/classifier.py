"""Destructive-operation detection for generated SQL.

This is a keyword heuristic, not a parser. Any occurrence of a destructive
keyword counts, so a SELECT over a column such as ``last_update`` is flagged
too. Flagged queries are annotated with a warning, never blocked.
"""

DESTRUCTIVE_KEYWORDS = ("delete", "drop", "truncate", "update")

DESTRUCTIVE_WARNING = "This query will modify or delete data. Review carefully before executing."


def is_destructive(sql: str) -> bool:
    """Return True if the SQL text contains any destructive keyword."""
    sql_lower = sql.lower()
    return any(keyword in sql_lower for keyword in DESTRUCTIVE_KEYWORDS)


def annotate_warning(sql: str, warning: str = "") -> str:
    """Return the warning to show alongside the SQL.

    A warning already supplied by the model is kept as-is.
    """
    if warning:
        return warning
    if is_destructive(sql):
        return DESTRUCTIVE_WARNING
    return ""
