"""Request and response models for the query endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AskRequest(BaseModel):
    """Request body for the natural language endpoint."""

    tables: Optional[list[str] | str] = Field(
        None, description="Tables the question is about (list or single name)"
    )
    table: Optional[str] = Field(None, description="Legacy single-table field")
    question: Optional[str] = Field(None, description="Question in plain text")

    def table_list(self) -> list[str]:
        """Requested table names in order, without duplicates."""
        if self.tables:
            names = [self.tables] if isinstance(self.tables, str) else self.tables
        elif self.table:
            names = [self.table]
        else:
            names = []
        return list(dict.fromkeys(name for name in names if name))


class AskResponse(BaseModel):
    """Response body for the natural language endpoint."""

    sql: str
    results: list[dict[str, Any]]
    explanation: str
    warning: str
    row_count: int = Field(..., serialization_alias="rowCount")
    affected_rows: int = Field(..., serialization_alias="affectedRows")


class ExecuteRequest(BaseModel):
    """Request body for raw SQL execution."""

    model_config = ConfigDict(populate_by_name=True)

    sql: Optional[str] = None
    # Accepted for client compatibility; no confirmation gate exists
    require_confirmation: bool = Field(False, alias="requireConfirmation")


class ExecuteResponse(BaseModel):
    """Response body for raw SQL execution."""

    results: list[dict[str, Any]]
    row_count: int = Field(..., serialization_alias="rowCount")
    affected_rows: int = Field(..., serialization_alias="affectedRows")


class CrudRequest(BaseModel):
    """Request body for structured table operations."""

    model_config = ConfigDict(populate_by_name=True)

    operation: Optional[str] = Field(
        None, description="INSERT, UPDATE, DELETE, TRUNCATE or DROP"
    )
    table_name: Optional[str] = Field(None, alias="tableName")
    data: Optional[dict[str, Any]] = Field(
        None, description="Column values for INSERT and UPDATE"
    )
    where: Optional[str] = Field(
        None, description="Raw SQL filter for UPDATE and DELETE (not parameterized)"
    )


class CrudResponse(BaseModel):
    """Response body for structured table operations."""

    success: bool
    operation: str
    affected_rows: int = Field(..., serialization_alias="affectedRows")
    message: str
