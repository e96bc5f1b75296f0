"""Integration tests for the table browsing routes."""

from datetime import datetime
from unittest.mock import AsyncMock, patch

from sqlworkspace.core.exceptions import QueryError
from sqlworkspace.nlq.query_engine import ExecutionResult
from sqlworkspace.nlq.schema_context import ColumnDescriptor, TableSchema

ROUTES = "sqlworkspace.api.v1.routes_tables"

ORDERS = TableSchema(
    name="orders",
    columns=(ColumnDescriptor("id", "int"), ColumnDescriptor("total", "decimal")),
)


@patch(f"{ROUTES}.read_schemas", new_callable=AsyncMock)
@patch(f"{ROUTES}.list_tables", new_callable=AsyncMock)
def test_list_tables_with_columns(mock_list, mock_read_schemas, client):
    mock_list.return_value = [
        {"tableName": "orders", "createdAt": datetime(2024, 5, 1, 12, 0), "rowCount": 2},
        {"tableName": "users", "createdAt": datetime(2024, 4, 1, 12, 0), "rowCount": 1},
    ]
    mock_read_schemas.return_value = [
        ORDERS,
        TableSchema("users", (ColumnDescriptor("id", "int"),)),
    ]

    response = client.get("/tables")

    assert response.status_code == 200
    tables = response.json()["tables"]
    assert [t["tableName"] for t in tables] == ["orders", "users"]
    assert tables[0]["columnCount"] == 2
    assert tables[0]["columns"] == ["id", "total"]
    assert tables[1]["columns"] == ["id"]
    assert mock_read_schemas.call_args.args[1] == ["orders", "users"]


@patch(f"{ROUTES}.list_tables", new_callable=AsyncMock)
def test_list_tables_store_error(mock_list, client):
    mock_list.side_effect = QueryError("Access denied")

    response = client.get("/tables")

    assert response.status_code == 500
    assert response.json()["detail"] == "Access denied"


@patch(f"{ROUTES}.execute_sql", new_callable=AsyncMock)
@patch(f"{ROUTES}.read_schema", new_callable=AsyncMock)
def test_preview(mock_read_schema, mock_execute, client):
    mock_read_schema.return_value = ORDERS
    mock_execute.return_value = ExecutionResult(rows=[{"id": 1, "total": "9.50"}])

    response = client.get("/table/orders/preview")

    assert response.status_code == 200
    assert response.json() == {
        "tableName": "orders",
        "schema": [
            {"COLUMN_NAME": "id", "DATA_TYPE": "int"},
            {"COLUMN_NAME": "total", "DATA_TYPE": "decimal"},
        ],
        "preview": [{"id": 1, "total": "9.50"}],
        "columnCount": 2,
        "rowCount": 1,
    }
    sql, params = mock_execute.call_args.args[1:]
    assert sql == "SELECT * FROM `orders` LIMIT :p0 OFFSET :p1"
    assert params == {"p0": 10, "p1": 0}


@patch(f"{ROUTES}.execute_sql", new_callable=AsyncMock)
def test_invalid_table_name_in_path(mock_execute, client):
    response = client.get("/table/orders-2024/count")

    assert response.status_code == 400
    assert "Invalid table name" in response.json()["detail"]
    mock_execute.assert_not_called()


@patch(f"{ROUTES}.read_schema", new_callable=AsyncMock)
@patch(f"{ROUTES}.execute_sql", new_callable=AsyncMock)
def test_full_table_pagination(mock_execute, mock_read_schema, client):
    mock_read_schema.return_value = ORDERS

    async def fake_execute(engine, sql, params=None):
        if "COUNT(*)" in sql:
            return ExecutionResult(rows=[{"count": 5}])
        return ExecutionResult(rows=[{"id": 3}, {"id": 4}])

    mock_execute.side_effect = fake_execute

    response = client.get("/table/orders/full", params={"offset": 2, "limit": 2})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 5
    assert data["data"] == [{"id": 3}, {"id": 4}]
    assert data["offset"] == 2
    assert data["limit"] == 2
    assert data["hasMore"] is True


@patch(f"{ROUTES}.read_schema", new_callable=AsyncMock)
@patch(f"{ROUTES}.execute_sql", new_callable=AsyncMock)
def test_full_table_limit_is_capped(mock_execute, mock_read_schema, client):
    mock_read_schema.return_value = ORDERS
    mock_execute.return_value = ExecutionResult(rows=[{"count": 0}])

    response = client.get("/table/orders/full", params={"limit": 50000})

    assert response.status_code == 200
    assert response.json()["limit"] == 1000


def test_full_table_negative_offset(client):
    response = client.get("/table/orders/full", params={"offset": -1})

    assert response.status_code == 400


@patch(f"{ROUTES}.execute_sql", new_callable=AsyncMock)
def test_count(mock_execute, client):
    mock_execute.return_value = ExecutionResult(rows=[{"count": 42}])

    response = client.get("/table/orders/count")

    assert response.status_code == 200
    assert response.json() == {"tableName": "orders", "count": 42}
    assert mock_execute.call_args.args[1] == "SELECT COUNT(*) AS count FROM `orders`"


@patch(f"{ROUTES}.logger")
@patch(f"{ROUTES}.execute_sql", new_callable=AsyncMock)
def test_count_unexpected_error_returns_500(mock_execute, mock_logger, client):
    mock_execute.side_effect = RuntimeError("connection reset")

    response = client.get("/table/orders/count")

    assert response.status_code == 500
    assert response.json()["detail"] == "An unexpected error occurred"
    assert mock_logger.error.call_args.kwargs["exc_info"] is True
