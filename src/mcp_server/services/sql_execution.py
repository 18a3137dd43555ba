"""Run caller-supplied SQL against the query target and render the outcome as text."""

import datetime
import decimal
import json
import logging
from typing import Any, Dict, List

from common.errors import InvalidInputError
from dal.mysql import ExecuteResult, MysqlDatabase

logger = logging.getLogger(__name__)

READ_PREFIXES = ("select", "show", "describe", "explain")


def is_read_statement(statement: str) -> bool:
    """Return True when the statement produces a row set."""
    return statement.strip().lower().startswith(READ_PREFIXES)


def _normalize_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, (decimal.Decimal, datetime.timedelta)):
        return str(value)
    return value


def render_rows(rows: List[Dict[str, Any]]) -> str:
    """Serialize rows as a JSON array of objects with 2-space indentation."""
    normalized = [{key: _normalize_value(value) for key, value in row.items()} for row in rows]
    return json.dumps(normalized, indent=2, ensure_ascii=False)


def render_execute_result(result: ExecuteResult) -> str:
    message = f"Query executed successfully. Rows affected: {result.rows_affected}"
    if result.last_insert_id > 0:
        message += f", Last insert ID: {result.last_insert_id}"
    return message


async def execute_statement(database: MysqlDatabase, statement: str) -> str:
    """Execute one statement and return JSON rows or an execution summary.

    Raises:
        InvalidInputError: if the statement is empty.
        QueryExecutionError: if the server rejects the statement.
    """
    if not statement or not statement.strip():
        raise InvalidInputError("SQL statement must not be empty")

    read = is_read_statement(statement)
    async with database.get_connection() as conn:
        if read:
            rows = await conn.fetch(statement)
            logger.info("event=sql_query_executed rows=%d", len(rows))
            return render_rows(rows)

        result = await conn.execute(statement)
    logger.info(
        "event=sql_statement_executed rows_affected=%d last_insert_id=%d",
        result.rows_affected,
        result.last_insert_id,
    )
    return render_execute_result(result)
