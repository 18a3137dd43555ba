import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional, Set

import aiosqlite

from common.errors import LedgerError

logger = logging.getLogger(__name__)

LEDGER_TABLE = "mysql_tables"

# Stay well under SQLite's host-parameter limit for IN (...) lookups.
_MAX_PARAMS_PER_QUERY = 500

_CREATE_TABLE_SQL = f"""
    CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        table_name TEXT NOT NULL UNIQUE
    )
"""


class SchemaLedger:
    """Local record of table names already embedded and stored in the vector index.

    Backed by one shared aiosqlite connection that is opened lazily, exactly
    once, on first use.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._conn: Optional[aiosqlite.Connection] = None
        self._init_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def init(self) -> None:
        """Open the store and create the ledger table if absent.

        Raises:
            LedgerError: if the file or table cannot be created.
        """
        if self._conn is not None:
            return
        async with self._init_lock:
            if self._conn is not None:
                return
            conn: Optional[aiosqlite.Connection] = None
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                conn = await aiosqlite.connect(self._path)
                await conn.execute(_CREATE_TABLE_SQL)
                await conn.commit()
            except (sqlite3.Error, OSError) as exc:
                if conn is not None:
                    await conn.close()
                raise LedgerError(f"failed to initialize ledger at {self._path}: {exc}") from exc
            self._conn = conn
            logger.info("Schema ledger initialized at %s", self._path)

    async def close(self) -> None:
        if self._conn is not None:
            logger.info("Closing schema ledger")
            await self._conn.close()
            self._conn = None

    async def insert(self, table_names: Iterable[str]) -> bool:
        """Record table names as indexed. Names already present are ignored.

        Returns:
            True when the write committed, False when it failed (logged).
        """
        names = sorted(set(table_names))
        if not names:
            logger.debug("No table names to record in ledger")
            return True
        await self.init()

        try:
            await self._conn.executemany(
                f"INSERT OR IGNORE INTO {LEDGER_TABLE} (table_name) VALUES (?)",
                [(name,) for name in names],
            )
            await self._conn.commit()
        except sqlite3.Error as exc:
            logger.error("Failed to record %d table(s) in ledger: %s", len(names), exc)
            return False
        logger.info("event=ledger_recorded tables=%d", len(names))
        return True

    async def filter_unseen(self, table_names: Iterable[str]) -> Set[str]:
        """Return the subset of ``table_names`` not yet recorded.

        A failed lookup is logged and every name is reported unseen, so a
        later pass can retry them.
        """
        names = set(table_names)
        if not names:
            return set()
        await self.init()

        seen: Set[str] = set()
        ordered: List[str] = sorted(names)
        try:
            for start in range(0, len(ordered), _MAX_PARAMS_PER_QUERY):
                chunk = ordered[start : start + _MAX_PARAMS_PER_QUERY]
                placeholders = ",".join("?" * len(chunk))
                async with self._conn.execute(
                    f"SELECT table_name FROM {LEDGER_TABLE} WHERE table_name IN ({placeholders})",
                    chunk,
                ) as cursor:
                    seen.update(row[0] for row in await cursor.fetchall())
        except sqlite3.Error as exc:
            logger.error(
                "Ledger lookup failed; treating all %d table(s) as unseen: %s", len(names), exc
            )
            return names

        unseen = names - seen
        logger.info("event=ledger_checked checked=%d unseen=%d", len(names), len(unseen))
        return unseen
