import logging

from common.errors import InvalidInputError
from dal.milvus import MilvusVectorIndex
from dal.mysql import MysqlDatabase
from ingestion.embedding import EmbeddingClient
from mcp_server.services.sql_execution import execute_statement

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3


class QueryFacade:
    """Entry points behind the two MCP tools."""

    def __init__(
        self,
        database: MysqlDatabase,
        embedder: EmbeddingClient,
        vector_index: MilvusVectorIndex,
        top_k: int = DEFAULT_TOP_K,
    ) -> None:
        self._database = database
        self._embedder = embedder
        self._vector_index = vector_index
        self._top_k = top_k

    async def find_relevant_tables(self, query: str) -> str:
        """Return the schema texts nearest to ``query``, concatenated in rank order.

        Embedding and search errors propagate to the caller unchanged.
        """
        if not query or not query.strip():
            raise InvalidInputError("query must not be empty")

        vector = await self._embedder.embed(query)
        hits = await self._vector_index.search(vector, k=self._top_k)
        logger.info("event=relevant_tables_found hits=%d", len(hits))
        return "".join(hit.text for hit in hits)

    async def execute_sql(self, statement: str) -> str:
        return await execute_statement(self._database, statement)
