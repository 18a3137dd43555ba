"""Milvus-backed schema vector index.

The collection holds one record per indexed table: an auto-assigned int64
key, the embedding, and the source schema text. pymilvus' MilvusClient is
synchronous, so every RPC is pushed to the default executor.
"""

import asyncio
import functools
import logging
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

import numpy as np
from opentelemetry import trace
from pymilvus import DataType, MilvusClient, MilvusException

from common.config.settings import VectorIndexSettings
from common.errors import ConnectivityError, VectorIndexError
from schema import SearchHit

logger = logging.getLogger(__name__)

PRIMARY_FIELD = "my_id"
VECTOR_FIELD = "vector"
TEXT_FIELD = "schema"
# VARCHAR capacity is counted in bytes; 65535 keeps >= 10240 chars of any UTF-8 text.
TEXT_MAX_LENGTH = 65535
METRIC_TYPE = "COSINE"


class CollectionState(str, Enum):
    """Lifecycle of the schema collection as seen by this process."""

    ABSENT = "absent"
    CREATING = "creating"
    INDEX_BUILDING = "index_building"
    LOADED = "loaded"
    UNKNOWN = "unknown"


def _fit_text(text: str, limit: int = TEXT_MAX_LENGTH) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= limit:
        return text
    logger.warning("Schema text of %d bytes truncated to %d bytes", len(encoded), limit)
    return encoded[:limit].decode("utf-8", errors="ignore")


class MilvusVectorIndex:
    """Client for one Milvus collection of (schema text, embedding) records."""

    def __init__(
        self,
        client: MilvusClient,
        collection_name: str,
        dimension: int = 1024,
        timeout: Optional[float] = 30.0,
    ) -> None:
        self._client = client
        self._collection = collection_name
        self._dimension = dimension
        self._timeout = timeout
        self._state = CollectionState.UNKNOWN

    @classmethod
    def connect(cls, settings: VectorIndexSettings) -> "MilvusVectorIndex":
        """Open a MilvusClient for the configured service.

        Raises:
            ConnectivityError: if the service is unreachable.
        """
        logger.info("Connecting to Milvus at %s", settings.uri)
        try:
            client = MilvusClient(
                uri=settings.uri,
                token=settings.token,
                timeout=settings.timeout_seconds,
            )
        except MilvusException as exc:
            raise ConnectivityError(f"failed to connect to Milvus: {exc}") from exc
        return cls(
            client,
            settings.collection,
            dimension=settings.dimension,
            timeout=settings.timeout_seconds,
        )

    @property
    def collection_name(self) -> str:
        return self._collection

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def state(self) -> CollectionState:
        return self._state

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any):
        tracer = trace.get_tracer("vector_index")
        with tracer.start_as_current_span(f"milvus.{operation}") as span:
            span.set_attribute("milvus.collection", self._collection)
            loop = asyncio.get_running_loop()
            try:
                return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))
            except MilvusException as exc:
                span.set_attribute("milvus.status", "error")
                raise VectorIndexError(operation, str(exc)) from exc

    async def collection_exists(self) -> bool:
        exists = await self._call(
            "has_collection",
            self._client.has_collection,
            collection_name=self._collection,
            timeout=self._timeout,
        )
        if exists:
            if self._state in (CollectionState.UNKNOWN, CollectionState.ABSENT):
                self._state = CollectionState.LOADED
        else:
            self._state = CollectionState.ABSENT
        return bool(exists)

    async def create_collection(self) -> None:
        """Create the collection, build the cosine index and load it.

        Returns only once the index is built and the collection is loaded.
        """
        self._state = CollectionState.CREATING
        schema = self._client.create_schema(auto_id=True, enable_dynamic_field=False)
        schema.add_field(field_name=PRIMARY_FIELD, datatype=DataType.INT64, is_primary=True)
        schema.add_field(
            field_name=VECTOR_FIELD, datatype=DataType.FLOAT_VECTOR, dim=self._dimension
        )
        schema.add_field(
            field_name=TEXT_FIELD, datatype=DataType.VARCHAR, max_length=TEXT_MAX_LENGTH
        )
        await self._call(
            "create_collection",
            self._client.create_collection,
            collection_name=self._collection,
            schema=schema,
            timeout=self._timeout,
        )

        self._state = CollectionState.INDEX_BUILDING
        index_params = self._client.prepare_index_params()
        index_params.add_index(
            field_name=VECTOR_FIELD, index_type="AUTOINDEX", metric_type=METRIC_TYPE
        )
        await self._call(
            "create_index",
            self._client.create_index,
            collection_name=self._collection,
            index_params=index_params,
            timeout=self._timeout,
        )
        await self.load()
        logger.info("event=collection_created collection=%s", self._collection)

    async def load(self) -> None:
        """Load the collection into memory and wait for it to become searchable."""
        await self._call(
            "load_collection",
            self._client.load_collection,
            collection_name=self._collection,
            timeout=self._timeout,
        )
        self._state = CollectionState.LOADED

    async def row_count(self) -> int:
        stats = await self._call(
            "get_collection_stats",
            self._client.get_collection_stats,
            collection_name=self._collection,
            timeout=self._timeout,
        )
        return int(stats.get("row_count", 0))

    async def insert(self, texts: Sequence[str], vectors: Sequence[Any]) -> int:
        """Insert parallel columns of schema texts and embeddings.

        Raises:
            ValueError: if the columns differ in length or a vector has the wrong dimension.
            VectorIndexError: if the RPC fails.
        """
        if len(texts) != len(vectors):
            raise ValueError(
                f"texts and vectors must have equal length ({len(texts)} != {len(vectors)})"
            )
        if not texts:
            return 0

        rows = []
        for text, vector in zip(texts, vectors):
            values = np.asarray(vector, dtype=np.float32)
            if values.shape != (self._dimension,):
                raise ValueError(
                    f"vector has shape {values.shape}, expected ({self._dimension},)"
                )
            rows.append({VECTOR_FIELD: values.tolist(), TEXT_FIELD: _fit_text(text)})

        result = await self._call(
            "insert",
            self._client.insert,
            collection_name=self._collection,
            data=rows,
            timeout=self._timeout,
        )
        inserted = int(result.get("insert_count", 0))
        logger.info("event=vector_insert collection=%s inserted=%d", self._collection, inserted)
        return inserted

    async def search(self, vector: Any, k: int = 3) -> List[SearchHit]:
        """Return up to ``k`` nearest schema texts by cosine similarity."""
        if k < 1:
            raise ValueError("k must be >= 1")
        query = np.asarray(vector, dtype=np.float32)
        if query.shape != (self._dimension,):
            raise ValueError(f"query has shape {query.shape}, expected ({self._dimension},)")

        if await self.row_count() == 0:
            # An empty collection may never have been loaded.
            await self.load()

        results = await self._call(
            "search",
            self._client.search,
            collection_name=self._collection,
            data=[query.tolist()],
            limit=k,
            anns_field=VECTOR_FIELD,
            output_fields=[TEXT_FIELD],
            search_params={"metric_type": METRIC_TYPE},
            timeout=self._timeout,
        )

        hits: List[SearchHit] = []
        for result_set in results:
            for hit in result_set:
                entity = hit.get("entity") or {}
                hits.append(
                    SearchHit(
                        text=str(entity.get(TEXT_FIELD, "")),
                        score=float(hit.get("distance", 0.0)),
                        record_id=hit.get("id"),
                    )
                )
        logger.info(
            "event=vector_search ids=%s scores=%s",
            [h.record_id for h in hits],
            [round(h.score, 4) for h in hits],
        )
        return hits

    def close(self) -> None:
        self._client.close()
