import asyncio
import logging
from typing import AsyncIterator, List, Optional

from common.errors import QueryExecutionError
from dal.mysql.query_target import MysqlDatabase
from dal.mysql.quoting import quote_identifier
from schema import TableSchema

logger = logging.getLogger(__name__)


class MysqlSchemaIntrospector:
    """Discover tables and their ``SHOW CREATE TABLE`` definitions."""

    def __init__(self, database: MysqlDatabase) -> None:
        self._database = database

    async def list_table_names(self) -> List[str]:
        """List all table names in the current database, in server order."""
        async with self._database.get_connection() as conn:
            rows = await conn.fetch("SHOW TABLES")
        # SHOW TABLES names its only column "Tables_in_<db>".
        return [str(next(iter(row.values()))) for row in rows if row]

    async def get_table_definition(self, table_name: str) -> str:
        """Return the DDL text for a single table (or view)."""
        async with self._database.get_connection() as conn:
            row = await conn.fetchrow(f"SHOW CREATE TABLE {quote_identifier(table_name)}")
        if not row:
            raise QueryExecutionError(f"no definition returned for table {table_name}")
        definition = row.get("Create Table") or row.get("Create View")
        if not definition:
            raise QueryExecutionError(f"no definition returned for table {table_name}")
        return str(definition)

    async def iter_table_schemas(
        self, stop_event: Optional[asyncio.Event] = None
    ) -> AsyncIterator[TableSchema]:
        """Yield one TableSchema per table as it is fetched.

        A table whose definition cannot be read (e.g. dropped mid-enumeration)
        is logged and skipped. When ``stop_event`` is set, enumeration ends
        before the next fetch is issued.

        Raises:
            QueryExecutionError: if the table list itself cannot be read.
        """
        table_names = await self.list_table_names()
        logger.info("event=schema_enumeration_started tables=%d", len(table_names))

        for table_name in table_names:
            if stop_event is not None and stop_event.is_set():
                logger.info("event=schema_enumeration_cancelled next_table=%s", table_name)
                return
            try:
                definition = await self.get_table_definition(table_name)
            except QueryExecutionError as exc:
                logger.warning("Unable to read definition of table %s: %s", table_name, exc)
                continue
            yield TableSchema(name=table_name, definition_text=definition)
