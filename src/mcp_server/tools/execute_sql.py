"""MCP tool: execute_sql - Run a SQL statement against the MySQL database."""

from fastmcp import Context
from fastmcp.exceptions import ToolError

from common.errors import ServiceError
from mcp_server.utils.context import get_app_context

TOOL_NAME = "execute_sql"
TOOL_DESCRIPTION = (
    "Execute a SQL statement. SELECT, SHOW, DESCRIBE and EXPLAIN return rows as JSON; "
    "other statements return the number of affected rows and the last insert id."
)


async def handler(query: str, ctx: Context) -> str:
    app = get_app_context(ctx)
    try:
        return await app.facade.execute_sql(query)
    except ServiceError as e:
        raise ToolError(str(e)) from e
