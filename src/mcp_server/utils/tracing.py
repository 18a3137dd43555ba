"""Tracing wrapper for MCP tools."""

import functools
import logging
import time
from typing import Awaitable, Callable, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def trace_tool(tool_name: str) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Add OpenTelemetry tracing to an MCP tool handler.

    Args:
        tool_name: The name of the tool (e.g. "execute_sql").
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            tracer = trace.get_tracer("mcp.server")
            with tracer.start_as_current_span(
                f"mcp.tool.{tool_name}", kind=trace.SpanKind.SERVER
            ) as span:
                span.set_attribute("mcp.tool.name", tool_name)
                call_started_at = time.monotonic()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    duration_ms = max(0.0, (time.monotonic() - call_started_at) * 1000.0)
                    span.set_attribute("mcp.tool.duration_ms", duration_ms)
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    logger.warning("event=tool_failed tool=%s error=%s", tool_name, e)
                    raise
                duration_ms = max(0.0, (time.monotonic() - call_started_at) * 1000.0)
                span.set_attribute("mcp.tool.duration_ms", duration_ms)
                if isinstance(result, str):
                    span.set_attribute("mcp.tool.response.size_bytes", len(result.encode("utf-8")))
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator
