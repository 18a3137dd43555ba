"""MCP tool: get_can_use_table - Find table schemas relevant to a question."""

from fastmcp import Context
from fastmcp.exceptions import ToolError

from common.errors import ServiceError
from mcp_server.utils.context import get_app_context

TOOL_NAME = "get_can_use_table"
TOOL_DESCRIPTION = (
    "Retrieve the CREATE TABLE statements most relevant to a natural-language query. "
    "Call this before writing SQL to learn which tables and columns exist."
)


async def handler(query: str, ctx: Context) -> str:
    """Search the schema index for tables relevant to the query.

    Args:
        query: Natural-language description of the data needed.

    Returns:
        Up to three table definitions, concatenated in order of similarity.
    """
    app = get_app_context(ctx)
    try:
        return await app.facade.find_relevant_tables(query)
    except ServiceError as e:
        raise ToolError(str(e)) from e
