"""Retriever implementations."""

import logging

from ..exceptions import InvalidArgument
from .base import BaseEmbedding, BaseVectorIndex
from .document import RetrievalResult

logger = logging.getLogger(__name__)


class VectorRetriever:
    """Vector similarity retriever.

    Embeds the query and asks the vector index for its nearest chunks.
    Backend errors propagate unchanged; an empty index yields an empty
    result.
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        index: BaseVectorIndex,
    ):
        """Initialize the vector retriever.

        Args:
            embedding: Embedding model for queries
            index: Vector index to search
        """
        self.embedding = embedding
        self.index = index

    async def retrieve(self, query: str, top_k: int = 5) -> RetrievalResult:
        """Retrieve the ``top_k`` chunks most similar to ``query``."""
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
            raise InvalidArgument(f"top_k must be an integer >= 1, got {top_k!r}")

        # Embed the query
        query_embedding = await self.embedding.embed_query(query)

        # Search the vector index
        matches = await self.index.query(query_embedding, top_k)

        # Backends are not trusted to rank; stable sort keeps their tie order
        matches = sorted(matches, key=lambda m: m.score, reverse=True)[:top_k]

        logger.debug(f"Retrieved {len(matches)} matches for query {query[:50]!r}")
        return RetrievalResult(query=query, matches=matches)
