import sqlite3

import pytest
import pytest_asyncio

from common.errors import LedgerError
from dal.sqlite import LEDGER_TABLE, SchemaLedger


@pytest_asyncio.fixture
async def ledger(tmp_path):
    store = SchemaLedger(tmp_path / "schema.db")
    yield store
    await store.close()


@pytest.mark.asyncio
async def test_init_creates_table(ledger, tmp_path):
    await ledger.init()

    with sqlite3.connect(tmp_path / "schema.db") as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master")}
    assert LEDGER_TABLE in tables


@pytest.mark.asyncio
async def test_init_is_idempotent(ledger):
    await ledger.init()
    await ledger.init()
    assert await ledger.insert(["users"]) is True


@pytest.mark.asyncio
async def test_filter_unseen_empty_input_returns_empty_set(tmp_path):
    store = SchemaLedger(tmp_path / "nested" / "schema.db")
    assert await store.filter_unseen([]) == set()
    assert not (tmp_path / "nested").exists()


@pytest.mark.asyncio
async def test_inserted_names_are_no_longer_unseen(ledger):
    assert await ledger.filter_unseen(["users", "orders"]) == {"users", "orders"}

    assert await ledger.insert(["users", "orders"]) is True

    assert await ledger.filter_unseen(["users", "orders"]) == set()
    assert await ledger.filter_unseen(["users", "invoices"]) == {"invoices"}


@pytest.mark.asyncio
async def test_duplicate_inserts_are_ignored(ledger, tmp_path):
    await ledger.insert(["users"])
    await ledger.insert(["users", "users"])

    with sqlite3.connect(tmp_path / "schema.db") as conn:
        count = conn.execute(f"SELECT COUNT(*) FROM {LEDGER_TABLE}").fetchone()[0]
    assert count == 1


@pytest.mark.asyncio
async def test_large_lookup_is_chunked(ledger):
    names = [f"table_{i}" for i in range(1200)]
    await ledger.insert(names[:700])

    unseen = await ledger.filter_unseen(names)

    assert unseen == set(names[700:])


@pytest.mark.asyncio
async def test_ledger_survives_reopen(tmp_path):
    path = tmp_path / "schema.db"
    first = SchemaLedger(path)
    await first.insert(["users"])
    await first.close()

    second = SchemaLedger(path)
    try:
        assert await second.filter_unseen(["users"]) == set()
    finally:
        await second.close()


@pytest.mark.asyncio
async def test_unwritable_location_raises_ledger_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    store = SchemaLedger(blocker / "schema.db")

    with pytest.raises(LedgerError):
        await store.init()


async def _drop_ledger_table(store):
    await store.init()
    await store._conn.execute(f"DROP TABLE {LEDGER_TABLE}")
    await store._conn.commit()


@pytest.mark.asyncio
async def test_failed_insert_returns_false(ledger):
    await _drop_ledger_table(ledger)

    assert await ledger.insert(["a"]) is False


@pytest.mark.asyncio
async def test_failed_lookup_reports_every_name_unseen(ledger):
    await ledger.insert(["a"])
    await _drop_ledger_table(ledger)

    assert await ledger.filter_unseen({"a", "b"}) == {"a", "b"}
