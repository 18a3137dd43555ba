import asyncio
from contextlib import asynccontextmanager

import pytest

from common.errors import QueryExecutionError
from dal.mysql import MysqlSchemaIntrospector


class _Connection:
    def __init__(self, tables, broken=()):
        self.tables = tables
        self.broken = set(broken)
        self.statements = []

    async def fetch(self, sql, *params):
        self.statements.append(sql)
        return [{"Tables_in_shop": name} for name in self.tables]

    async def fetchrow(self, sql, *params):
        self.statements.append(sql)
        name = sql.split("`")[1]
        if name in self.broken:
            raise QueryExecutionError(f"query execution failed: table {name} doesn't exist")
        return {"Table": name, "Create Table": f"CREATE TABLE `{name}` (`id` int)"}


class _Database:
    def __init__(self, connection):
        self.connection = connection

    @asynccontextmanager
    async def get_connection(self):
        yield self.connection


def _introspector(tables, broken=()):
    conn = _Connection(tables, broken)
    return MysqlSchemaIntrospector(_Database(conn)), conn


@pytest.mark.asyncio
async def test_list_table_names_reads_first_column():
    introspector, conn = _introspector(["users", "orders"])

    assert await introspector.list_table_names() == ["users", "orders"]
    assert conn.statements == ["SHOW TABLES"]


@pytest.mark.asyncio
async def test_table_definition_uses_quoted_identifier():
    introspector, conn = _introspector(["order items"])

    definition = await introspector.get_table_definition("order items")

    assert definition == "CREATE TABLE `order items` (`id` int)"
    assert conn.statements == ["SHOW CREATE TABLE `order items`"]


@pytest.mark.asyncio
async def test_iter_table_schemas_yields_in_server_order():
    introspector, _ = _introspector(["users", "orders", "products"])

    names = [schema.name async for schema in introspector.iter_table_schemas()]

    assert names == ["users", "orders", "products"]


@pytest.mark.asyncio
async def test_unreadable_table_is_skipped():
    introspector, _ = _introspector(["users", "dropped", "orders"], broken={"dropped"})

    names = [schema.name async for schema in introspector.iter_table_schemas()]

    assert names == ["users", "orders"]


@pytest.mark.asyncio
async def test_stop_event_prevents_further_fetches():
    introspector, conn = _introspector(["users", "orders", "products"])
    stop_event = asyncio.Event()

    names = []
    async for schema in introspector.iter_table_schemas(stop_event=stop_event):
        names.append(schema.name)
        stop_event.set()

    assert names == ["users"]
    show_create = [s for s in conn.statements if s.startswith("SHOW CREATE")]
    assert len(show_create) == 1
