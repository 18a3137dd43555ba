"""Schema indexing orchestrator.

Streams table definitions from the relational source, drops the ones the
ledger has already seen, and fans the rest out to a bounded pool of workers
that embed each definition, store it in the vector index and only then
record the table name in the ledger.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from dal.milvus import MilvusVectorIndex
from dal.mysql import MysqlSchemaIntrospector
from dal.sqlite import SchemaLedger
from ingestion.embedding import EmbeddingClient
from schema import TableSchema

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 5
DEFAULT_BATCH_SIZE = 10


@dataclass
class IndexingReport:
    """Counters for one indexing pass."""

    discovered: int = 0
    already_indexed: int = 0
    indexed: int = 0
    failed: int = 0
    skipped: bool = False
    cancelled: bool = False


class SchemaIndexer:
    """Populate the schema vector index and keep it in step with new tables."""

    def __init__(
        self,
        introspector: MysqlSchemaIntrospector,
        ledger: SchemaLedger,
        vector_index: MilvusVectorIndex,
        embedder: EmbeddingClient,
        *,
        workers: int = DEFAULT_WORKERS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._introspector = introspector
        self._ledger = ledger
        self._vector_index = vector_index
        self._embedder = embedder
        self._workers = workers
        self._batch_size = batch_size
        self._stop_event = stop_event or asyncio.Event()
        self._pass_lock = asyncio.Lock()

    @property
    def stop_event(self) -> asyncio.Event:
        return self._stop_event

    @property
    def is_running(self) -> bool:
        return self._pass_lock.locked()

    async def bootstrap(self) -> IndexingReport:
        """Startup indexing: create and fill the collection unless it already exists.

        An existing collection is assumed durable and complete. Errors propagate
        so the caller can abort startup.
        """
        async with self._pass_lock:
            if await self._vector_index.collection_exists():
                logger.info(
                    "event=schema_index_bootstrap_skipped collection=%s reason=exists",
                    self._vector_index.collection_name,
                )
                return IndexingReport(skipped=True)

            await self._ledger.init()
            await self._vector_index.create_collection()
            return await self._run_pass()

    async def refresh(self) -> Optional[IndexingReport]:
        """One periodic tick. Returns None without doing any work if a pass is running."""
        if self._pass_lock.locked():
            logger.warning("Previous schema indexing pass still running; skipping this refresh")
            return None

        async with self._pass_lock:
            await self._ledger.init()
            if not await self._vector_index.collection_exists():
                await self._vector_index.create_collection()
            return await self._run_pass()

    async def run_periodic(self, interval_seconds: float) -> None:
        """Fire ``refresh`` every ``interval_seconds`` until the stop event is set.

        Ticks run as separate tasks so a slow pass makes the next tick skip
        rather than queue behind it.
        """
        logger.info("event=schema_refresh_scheduled interval_seconds=%s", interval_seconds)
        ticks: set[asyncio.Task] = set()
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval_seconds)
                except asyncio.TimeoutError:
                    task = asyncio.create_task(self._refresh_logged())
                    ticks.add(task)
                    task.add_done_callback(ticks.discard)
        finally:
            if ticks:
                await asyncio.gather(*ticks, return_exceptions=True)
            logger.info("event=schema_refresh_stopped")

    async def _refresh_logged(self) -> None:
        try:
            report = await self.refresh()
        except Exception as e:
            logger.error(f"Periodic schema refresh failed: {e}")
            return
        if report is not None:
            _log_report("schema_refresh_complete", report)

    async def _run_pass(self) -> IndexingReport:
        report = IndexingReport()
        halt = asyncio.Event()
        queue: asyncio.Queue[Optional[TableSchema]] = asyncio.Queue(maxsize=self._workers * 2)
        workers = [
            asyncio.create_task(self._worker(queue, report, halt)) for _ in range(self._workers)
        ]

        produced = False
        try:
            await self._produce(queue, report)
            produced = True
        finally:
            if produced:
                # Join barrier: every worker sees a sentinel and exits.
                for _ in workers:
                    await queue.put(None)
                await asyncio.gather(*workers)
            else:
                halt.set()
                for worker in workers:
                    worker.cancel()
                await asyncio.gather(*workers, return_exceptions=True)
            if self._stop_event.is_set() or halt.is_set():
                report.cancelled = True

        _log_report("schema_index_pass_complete", report)
        return report

    async def _produce(self, queue: asyncio.Queue, report: IndexingReport) -> None:
        batch: List[TableSchema] = []
        async for table in self._introspector.iter_table_schemas(stop_event=self._stop_event):
            report.discovered += 1
            batch.append(table)
            if len(batch) >= self._batch_size:
                await self._dispatch(batch, queue, report)
                batch = []
        if batch:
            await self._dispatch(batch, queue, report)

    async def _dispatch(
        self, batch: List[TableSchema], queue: asyncio.Queue, report: IndexingReport
    ) -> None:
        if self._stop_event.is_set():
            return
        unseen = await self._ledger.filter_unseen(table.name for table in batch)
        report.already_indexed += len(batch) - len(unseen)
        for table in batch:
            if table.name not in unseen:
                continue
            if self._stop_event.is_set():
                return
            await queue.put(table)

    async def _worker(
        self, queue: asyncio.Queue, report: IndexingReport, halt: asyncio.Event
    ) -> None:
        while True:
            table = await queue.get()
            if table is None:
                return
            if halt.is_set() or self._stop_event.is_set():
                continue
            try:
                await self._index_table(table, report)
            except Exception as e:
                logger.error(f"Unexpected failure indexing table {table.name}: {e}")
                report.failed += 1

    async def _index_table(self, table: TableSchema, report: IndexingReport) -> None:
        try:
            vector = await self._embedder.embed(table.definition_text)
        except Exception as e:
            logger.error(f"Failed to embed schema of table {table.name}: {e}")
            report.failed += 1
            return

        try:
            await self._vector_index.insert([table.definition_text], [vector])
        except Exception as e:
            logger.error(f"Failed to store embedding of table {table.name}: {e}")
            report.failed += 1
            return

        # Only a confirmed insert may mark the table as indexed.
        try:
            await self._ledger.insert([table.name])
        except Exception as e:
            logger.error(f"Failed to record table {table.name} in ledger: {e}")
            report.failed += 1
            return
        report.indexed += 1
        logger.info("event=table_indexed table=%s", table.name)


def _log_report(event: str, report: IndexingReport) -> None:
    logger.info(
        "event=%s discovered=%d already_indexed=%d indexed=%d failed=%d cancelled=%s",
        event,
        report.discovered,
        report.already_indexed,
        report.indexed,
        report.failed,
        report.cancelled,
    )
