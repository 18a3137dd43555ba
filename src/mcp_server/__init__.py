"""MCP server exposing MySQL schema search and SQL execution tools."""
