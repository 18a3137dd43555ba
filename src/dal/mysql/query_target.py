import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

import aiomysql

from common.config.settings import DatabaseSettings
from common.errors import ConnectivityError, QueryExecutionError
from dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)

POOL_MAX_SIZE = 10
POOL_RECYCLE_SECONDS = 300
CONNECT_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a non-query statement."""

    rows_affected: int
    last_insert_id: int


class MysqlDatabase:
    """MySQL query-target pool shared by the schema fetcher and the SQL tool."""

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self._pool: Optional[aiomysql.Pool] = None

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def init(self) -> None:
        """Create the pool and verify connectivity.

        Raises:
            ConnectivityError: if the server cannot be reached.
        """
        if self._pool is not None:
            return

        params = self._settings.parsed_params()
        pool_kwargs: Dict[str, Any] = {
            "host": self._settings.host,
            "port": self._settings.port,
            "user": self._settings.user,
            "password": self._settings.password,
            "db": self._settings.name,
            "minsize": int(params.get("pool_min_size", 1)),
            "maxsize": POOL_MAX_SIZE,
            "pool_recycle": POOL_RECYCLE_SECONDS,
            "connect_timeout": int(params.get("connect_timeout", CONNECT_TIMEOUT_SECONDS)),
            "autocommit": True,
            "cursorclass": aiomysql.DictCursor,
        }
        if "charset" in params:
            pool_kwargs["charset"] = params["charset"]

        logger.info("Connecting to MySQL database %s", self._settings.dsn())
        try:
            self._pool = await aiomysql.create_pool(**pool_kwargs)
            async with self._pool.acquire() as conn:
                await conn.ping()
        except (aiomysql.Error, OSError) as exc:
            await self.close()
            raise ConnectivityError(f"failed to connect to MySQL: {exc}") from exc
        logger.info("Successfully connected to MySQL database")

    async def close(self) -> None:
        """Close the pool and wait for connections to drain."""
        if self._pool is not None:
            self._pool.close()
            await self._pool.wait_closed()
            self._pool = None

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator["MysqlConnection"]:
        """Yield a pooled connection wrapper.

        Raises:
            ConnectivityError: if the pool was never initialized.
            QueryExecutionError: if a connection cannot be acquired from the pool.
        """
        if self._pool is None:
            raise ConnectivityError("database connection not initialized")

        try:
            conn = await self._pool.acquire()
        except (aiomysql.Error, OSError) as exc:
            raise QueryExecutionError(f"failed to acquire connection: {exc}") from exc
        try:
            yield MysqlConnection(conn)
        finally:
            await self._pool.release(conn)


class MysqlConnection:
    """Adapter providing fetch/execute helpers over an aiomysql connection.

    Statements sent without parameters go to the server verbatim, so literal
    ``%`` characters in user SQL are left alone.
    """

    def __init__(self, conn: aiomysql.Connection) -> None:
        self._conn = conn

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        async def _run() -> List[Dict[str, Any]]:
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, params or None)
                rows = await cursor.fetchall()
                return [dict(row) for row in rows]

        return await self._traced(sql, _run(), "query execution failed")

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        async def _run() -> Optional[Dict[str, Any]]:
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, params or None)
                row = await cursor.fetchone()
                return dict(row) if row is not None else None

        return await self._traced(sql, _run(), "query execution failed")

    async def execute(self, sql: str, *params: Any) -> ExecuteResult:
        async def _run() -> ExecuteResult:
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql, params or None)
                return ExecuteResult(
                    rows_affected=max(cursor.rowcount or 0, 0),
                    last_insert_id=cursor.lastrowid or 0,
                )

        return await self._traced(sql, _run(), "non-query execution failed")

    async def _traced(self, sql: str, operation, failure_prefix: str):
        try:
            return await trace_query_operation(
                "dal.query.execute",
                provider="mysql",
                sql=sql,
                operation=operation,
            )
        except aiomysql.Error as exc:
            raise QueryExecutionError(f"{failure_prefix}: {exc}") from exc
