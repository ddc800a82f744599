"""Query-time retrieval over the vector index."""

import logging
import time

import numpy as np

from backend.clinic.errors import EmbeddingError, SearchError
from backend.clinic.metrics.core import record_search
from backend.clinic.models.documents import ScoredChunk
from backend.clinic.rag.embedder import Embedder
from backend.clinic.rag.similarity import cosine_similarity_matrix
from backend.clinic.rag.vector_index import VectorIndex

logger = logging.getLogger(__name__)


class Retriever:
    """Embeds a query and ranks indexed chunks by cosine similarity."""

    def __init__(self, index: VectorIndex, embedder: Embedder, default_top_k: int = 5) -> None:
        self.index = index
        self.embedder = embedder
        self.default_top_k = default_top_k

    async def search(self, query: str, top_k: int | None = None) -> list[ScoredChunk]:
        """Return the top_k chunks most similar to the query.

        Scores are taken against the index snapshot current when the search
        starts. Ties keep insertion order. An empty index returns an empty
        list without calling the embedding provider.

        Args:
            query: Natural language query.
            top_k: Maximum results; the configured default if None.

        Returns:
            Hits sorted by descending score.

        Raises:
            ValueError: If the query is blank or top_k is not positive.
            SearchError: If the query could not be embedded.
            ConfigurationError: If the embedding provider is not configured.
        """
        if not query.strip():
            raise ValueError("query must not be blank")
        top_k = self.default_top_k if top_k is None else top_k
        if top_k <= 0:
            raise ValueError("top_k must be positive")

        self.embedder.check_configured()

        start = time.perf_counter()
        snapshot = self.index.snapshot()
        if not snapshot.searchable:
            return []

        try:
            query_vector = await self.embedder.embed_query(query)
        except EmbeddingError as e:
            logger.warning("search_query_embedding_failed", extra={"error": str(e)})
            raise SearchError(str(e)) from e

        scores = cosine_similarity_matrix(query_vector, snapshot.matrix)
        # Stable sort on negated scores keeps insertion order among ties
        order = np.argsort(-scores, kind="stable")[:top_k]
        results = [
            ScoredChunk(chunk=snapshot.searchable[i], score=float(scores[i])) for i in order
        ]

        record_search(
            latency_ms=int((time.perf_counter() - start) * 1000),
            top_k=top_k,
            results=len(results),
            candidates=len(snapshot.searchable),
        )
        return results
