import hashlib
from typing import Awaitable, Optional, TypeVar

from opentelemetry import trace

T = TypeVar("T")


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_query_operation(
    name: str,
    provider: str,
    sql: Optional[str],
    operation: Awaitable[T],
) -> T:
    """Run a DAL operation inside an OTEL span tagged with provider and statement hash."""
    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("db.provider", provider)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = await operation
        except Exception:
            span.set_attribute("db.status", "error")
            raise
        span.set_attribute("db.status", "ok")
        return result
