"""Central registry for MCP tools.

This module provides a single point of registration for all MCP tools.
"""

import logging
from typing import TYPE_CHECKING, List, Set

if TYPE_CHECKING:
    from fastmcp import FastMCP

logger = logging.getLogger(__name__)

CANONICAL_TOOLS: Set[str] = {
    "get_can_use_table",
    "execute_sql",
}


def get_all_tool_names() -> List[str]:
    """Return list of all canonical tool names."""
    return sorted(CANONICAL_TOOLS)


def register_all(mcp: "FastMCP") -> None:
    """Register all tools with the MCP server.

    Args:
        mcp: FastMCP server instance
    """
    from mcp_server.tools import execute_sql, get_can_use_table
    from mcp_server.utils.tracing import trace_tool

    def register(module):
        traced = trace_tool(module.TOOL_NAME)(module.handler)
        mcp.tool(name=module.TOOL_NAME, description=module.TOOL_DESCRIPTION)(traced)

    register(get_can_use_table)
    register(execute_sql)

    logger.info(f"Registered {len(CANONICAL_TOOLS)} tools with MCP server")
