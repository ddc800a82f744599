"""In-process vector index of chunked, embedded documents."""

import asyncio
import logging
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import numpy as np

from backend.clinic.errors import DocumentTextError
from backend.clinic.metrics.core import record_ingestion
from backend.clinic.models.documents import (
    ChunkMetadata,
    DocumentChunk,
    IndexStats,
    VectorDocument,
    VectorSource,
)
from backend.clinic.rag.chunker import chunk_text
from backend.clinic.rag.embedder import Embedder
from backend.clinic.rag.tokens import TokenCounter
from backend.clinic.storage.core import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)

CHUNKS_PER_PAGE = 3


@dataclass(frozen=True, eq=False)
class IndexSnapshot:
    """Immutable view of the index at one point in time.

    ``chunks`` is the flat chunk collection in insertion order; ``searchable``
    holds the chunks that carry an embedding and ``matrix`` their vectors,
    row for row.
    """

    documents: Mapping[str, VectorDocument] = field(
        default_factory=lambda: MappingProxyType({})
    )
    chunks: tuple[DocumentChunk, ...] = ()
    searchable: tuple[DocumentChunk, ...] = ()
    matrix: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))

    @classmethod
    def build(cls, documents: dict[str, VectorDocument]) -> "IndexSnapshot":
        chunks = tuple(chunk for doc in documents.values() for chunk in doc.chunks)
        searchable = tuple(chunk for chunk in chunks if chunk.has_embedding)

        matrix = np.zeros((0, 0))
        if searchable:
            dims = {len(chunk.embedding) for chunk in searchable}
            if len(dims) == 1:
                matrix = np.array([chunk.embedding for chunk in searchable], dtype=np.float64)
            else:
                # Mixed dimensionality means the embedding model changed; keep
                # the chunks matching the newest document.
                target = len(searchable[-1].embedding)
                logger.warning(
                    "vector_index_mixed_dimensions",
                    extra={"dimensions": sorted(dims), "kept": target},
                )
                searchable = tuple(c for c in searchable if len(c.embedding) == target)
                matrix = np.array([chunk.embedding for chunk in searchable], dtype=np.float64)

        return cls(
            documents=MappingProxyType(dict(documents)),
            chunks=chunks,
            searchable=searchable,
            matrix=matrix,
        )


class VectorIndex:
    """Documents split into embedded chunks, searchable by similarity.

    Mutations are serialized behind a lock and published as a new
    :class:`IndexSnapshot`, so readers never see a document with only part
    of its chunks. Embedding happens before the lock is taken.
    """

    def __init__(
        self,
        embedder: Embedder,
        counter: TokenCounter,
        store: KeyValueStore | None = None,
        max_tokens: int = 500,
    ) -> None:
        """Initialize the index and load any persisted documents.

        Args:
            embedder: Embedder used for chunk vectors.
            counter: Token counter used by the chunker.
            store: Backing store for documents; in-memory if omitted.
            max_tokens: Token budget per chunk.
        """
        self.embedder = embedder
        self.counter = counter
        self.store = store or InMemoryKeyValueStore()
        self.max_tokens = max_tokens
        self._lock = threading.Lock()
        self._snapshot = IndexSnapshot.build(self._load())

    def _load(self) -> dict[str, VectorDocument]:
        documents = [VectorDocument.model_validate(raw) for raw in self.store.values()]
        documents.sort(key=lambda doc: doc.created_at)
        if documents:
            logger.info("vector_index_loaded", extra={"documents": len(documents)})
        return {doc.id: doc for doc in documents}

    def snapshot(self) -> IndexSnapshot:
        """Return the current immutable snapshot."""
        return self._snapshot

    async def add_document(
        self,
        document_id: str,
        title: str,
        content: str,
        source: VectorSource,
    ) -> VectorDocument:
        """Chunk, embed and index a document.

        Chunks are embedded one at a time; a chunk whose embedding fails keeps
        a zero vector and is flagged in its metadata. The document becomes
        visible only once every chunk is embedded. An existing document with
        the same id is replaced.

        Args:
            document_id: Unique document id.
            title: Human readable name, copied onto each chunk.
            content: Raw document text.
            source: Where the document came from.

        Returns:
            The indexed document.

        Raises:
            DocumentTextError: If the content yields no chunks.
        """
        start = time.perf_counter()
        pieces = chunk_text(content, self.max_tokens, self.counter)
        if not pieces:
            raise DocumentTextError(f"Document {document_id!r} has no text to index")

        chunks = []
        failed = 0
        for index, piece in enumerate(pieces):
            vector, embedding_failed = await self.embedder.embed_with_status(piece)
            failed += int(embedding_failed)
            chunks.append(
                DocumentChunk(
                    id=f"{document_id}_chunk_{index}",
                    document_id=document_id,
                    document_name=title,
                    content=piece,
                    embedding=tuple(vector),
                    metadata=ChunkMetadata(
                        chunk_index=index,
                        page_number=index // CHUNKS_PER_PAGE + 1,
                        source=source,
                        token_count=self.counter.count(piece),
                        embedding_failed=embedding_failed,
                    ),
                )
            )

        document = VectorDocument(
            id=document_id, title=title, source=source, chunks=tuple(chunks)
        )
        # Persisting may block on Redis
        await asyncio.to_thread(self._publish, document)

        if failed:
            logger.warning(
                "document_indexed_with_failed_embeddings",
                extra={"document_id": document_id, "failed": failed, "chunks": len(chunks)},
            )
        record_ingestion(
            document_id=document_id,
            source=source.value,
            chunks=len(chunks),
            failed_embeddings=failed,
            latency_ms=int((time.perf_counter() - start) * 1000),
        )
        return document

    def _publish(self, document: VectorDocument) -> None:
        with self._lock:
            self.store.put(document.id, document.model_dump(mode="json"))
            documents = dict(self._snapshot.documents)
            # Replacement moves the document to the end, matching its new created_at
            documents.pop(document.id, None)
            documents[document.id] = document
            self._snapshot = IndexSnapshot.build(documents)

    def remove_document(self, document_id: str) -> bool:
        """Remove a document and all its chunks.

        Returns:
            True if the document existed.
        """
        with self._lock:
            if document_id not in self._snapshot.documents:
                return False
            self.store.delete(document_id)
            documents = dict(self._snapshot.documents)
            del documents[document_id]
            self._snapshot = IndexSnapshot.build(documents)
        logger.info("document_removed", extra={"document_id": document_id})
        return True

    def get_document(self, document_id: str) -> VectorDocument | None:
        return self._snapshot.documents.get(document_id)

    def get_all_documents(self) -> list[VectorDocument]:
        return list(self._snapshot.documents.values())

    def get_stats(self) -> IndexStats:
        snapshot = self._snapshot
        document_count = len(snapshot.documents)
        total_chunks = len(snapshot.chunks)
        return IndexStats(
            document_count=document_count,
            total_chunks=total_chunks,
            average_chunks_per_document=(
                total_chunks / document_count if document_count else 0.0
            ),
        )
