import inspect
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastmcp.exceptions import ToolError

from common.errors import InvalidInputError, QueryExecutionError
from mcp_server.tools import execute_sql, get_can_use_table
from mcp_server.tools.registry import get_all_tool_names, register_all
from mcp_server.utils.tracing import trace_tool


def _ctx(facade):
    app = SimpleNamespace(facade=facade)
    return SimpleNamespace(request_context=SimpleNamespace(lifespan_context=app))


@pytest.mark.asyncio
async def test_get_can_use_table_returns_facade_result():
    facade = MagicMock()
    facade.find_relevant_tables = AsyncMock(return_value="CREATE TABLE `users` (...)")

    result = await get_can_use_table.handler("who signed up", _ctx(facade))

    assert result == "CREATE TABLE `users` (...)"
    facade.find_relevant_tables.assert_awaited_once_with("who signed up")


@pytest.mark.asyncio
async def test_get_can_use_table_maps_service_errors_to_tool_error():
    facade = MagicMock()
    facade.find_relevant_tables = AsyncMock(
        side_effect=InvalidInputError("query must not be empty")
    )

    with pytest.raises(ToolError, match="query must not be empty"):
        await get_can_use_table.handler("", _ctx(facade))


@pytest.mark.asyncio
async def test_execute_sql_maps_query_errors_to_tool_error():
    facade = MagicMock()
    facade.execute_sql = AsyncMock(
        side_effect=QueryExecutionError("query execution failed: Unknown column 'x'")
    )

    with pytest.raises(ToolError, match="Unknown column"):
        await execute_sql.handler("SELECT x FROM users", _ctx(facade))


@pytest.mark.asyncio
async def test_execute_sql_returns_facade_output():
    facade = MagicMock()
    facade.execute_sql = AsyncMock(return_value="Query executed successfully. Rows affected: 1")

    result = await execute_sql.handler("DELETE FROM users WHERE id = 1", _ctx(facade))

    assert result == "Query executed successfully. Rows affected: 1"


def test_register_all_registers_both_tools():
    mcp = MagicMock()

    register_all(mcp)

    names = [c.kwargs["name"] for c in mcp.tool.call_args_list]
    assert sorted(names) == get_all_tool_names() == ["execute_sql", "get_can_use_table"]


@pytest.mark.asyncio
async def test_trace_tool_preserves_signature_and_propagates_errors():
    async def handler(query: str) -> str:
        raise ValueError(f"bad {query}")

    traced = trace_tool("demo")(handler)

    assert inspect.signature(traced) == inspect.signature(handler)
    with pytest.raises(ValueError, match="bad input"):
        await traced("input")


@pytest.mark.asyncio
async def test_trace_tool_returns_result():
    async def handler(query: str) -> str:
        return query.upper()

    assert await trace_tool("demo")(handler)("ok") == "OK"
