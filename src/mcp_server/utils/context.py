from fastmcp import Context

from mcp_server.context import AppContext


def get_app_context(ctx: Context) -> AppContext:
    """Return the AppContext yielded by the server lifespan."""
    return ctx.request_context.lifespan_context
