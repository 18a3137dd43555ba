"""Process-wide resources shared by the MCP tools.

Everything is built once from Settings inside the server lifespan and torn
down in reverse order when the server stops.
"""

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from common.config.settings import Settings
from dal.milvus import MilvusVectorIndex
from dal.mysql import MysqlDatabase, MysqlSchemaIntrospector
from dal.sqlite import SchemaLedger
from ingestion.embedding import EmbeddingClient
from ingestion.indexer import SchemaIndexer
from mcp_server.services.query_facade import QueryFacade

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    database: MysqlDatabase
    ledger: SchemaLedger
    vector_index: MilvusVectorIndex
    embedder: EmbeddingClient
    indexer: SchemaIndexer
    facade: QueryFacade
    stop_event: asyncio.Event
    refresh_task: Optional[asyncio.Task] = None


async def _stop_refresh(context: AppContext) -> None:
    context.stop_event.set()
    if context.refresh_task is not None:
        await context.refresh_task
        context.refresh_task = None


@asynccontextmanager
async def open_app_context(settings: Settings) -> AsyncIterator[AppContext]:
    """Initialize every component, run startup indexing and yield the context.

    Any failure before the yield (configuration, connectivity, bootstrap
    indexing) propagates and aborts server startup.
    """
    async with AsyncExitStack() as stack:
        database = MysqlDatabase(settings.database)
        await database.init()
        stack.push_async_callback(database.close)

        embedder = EmbeddingClient.from_settings(settings.embedding)
        stack.push_async_callback(embedder.aclose)

        loop = asyncio.get_running_loop()
        vector_index = await loop.run_in_executor(
            None, MilvusVectorIndex.connect, settings.vector_index
        )
        stack.callback(vector_index.close)

        ledger = SchemaLedger(settings.indexing.ledger_path)
        stack.push_async_callback(ledger.close)

        stop_event = asyncio.Event()
        indexer = SchemaIndexer(
            MysqlSchemaIntrospector(database),
            ledger,
            vector_index,
            embedder,
            workers=settings.indexing.workers,
            batch_size=settings.indexing.batch_size,
            stop_event=stop_event,
        )
        context = AppContext(
            settings=settings,
            database=database,
            ledger=ledger,
            vector_index=vector_index,
            embedder=embedder,
            indexer=indexer,
            facade=QueryFacade(database, embedder, vector_index),
            stop_event=stop_event,
        )
        stack.push_async_callback(_stop_refresh, context)

        await indexer.bootstrap()

        if settings.indexing.refresh_enabled:
            context.refresh_task = asyncio.create_task(
                indexer.run_periodic(settings.indexing.refresh_interval_seconds)
            )
        else:
            logger.info("event=schema_refresh_disabled")

        logger.info("event=app_context_ready collection=%s", vector_index.collection_name)
        yield context
        logger.info("event=app_context_shutdown")
