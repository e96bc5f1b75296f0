"""Pytest configuration and shared fixtures."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from sqlworkspace.core.database import get_engine
from sqlworkspace.main import app


def make_result(
    rows: list[dict[str, Any]] | None = None,
    rowcount: int = 0,
) -> MagicMock:
    """Build a fake SQLAlchemy result.

    ``rows=None`` models a statement that returns no rows (DML/DDL).
    """
    result = MagicMock()
    result.returns_rows = rows is not None
    result.rowcount = rowcount
    result.mappings.return_value = list(rows or [])
    result.fetchall.return_value = [tuple(row.values()) for row in rows or []]
    return result


@pytest.fixture
def mock_conn() -> MagicMock:
    """Fake async connection with awaitable execute methods."""
    conn = MagicMock()
    conn.execute = AsyncMock(return_value=make_result(rows=[]))
    conn.exec_driver_sql = AsyncMock(return_value=make_result(rows=[]))
    return conn


@pytest.fixture
def mock_engine(mock_conn: MagicMock) -> MagicMock:
    """Fake AsyncEngine whose connect() and begin() yield ``mock_conn``."""
    engine = MagicMock()
    engine.connect.return_value.__aenter__.return_value = mock_conn
    engine.begin.return_value.__aenter__.return_value = mock_conn
    return engine


@pytest.fixture
def client(mock_engine: MagicMock):
    """Test client with the database engine replaced by ``mock_engine``."""
    app.dependency_overrides[get_engine] = lambda: mock_engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def mock_openai_client():
    """Mock AsyncOpenAI to avoid API calls during tests."""
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = (
        "SQL_QUERY:\nSELECT 1\n\nBUSINESS_EXPLANATION:\nok\n\nWARNING:\n"
    )
    mock_client.chat.completions.create = AsyncMock(return_value=mock_response)

    with patch("sqlworkspace.nlq.llm_sql.AsyncOpenAI") as mock_openai:
        mock_openai.return_value = mock_client
        yield mock_openai
