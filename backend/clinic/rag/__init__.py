"""Retrieval-augmented generation core: chunking, embedding, index and search."""

from backend.clinic.rag.chunker import chunk_text
from backend.clinic.rag.composer import compose_retrieval_section, compose_system_prompt
from backend.clinic.rag.embedder import Embedder, EmbeddingProvider, OpenAIEmbeddingProvider
from backend.clinic.rag.retriever import Retriever
from backend.clinic.rag.similarity import cosine_similarity
from backend.clinic.rag.tokens import TiktokenCounter, TokenCounter
from backend.clinic.rag.vector_index import IndexSnapshot, VectorIndex

__all__ = [
    "Embedder",
    "EmbeddingProvider",
    "IndexSnapshot",
    "OpenAIEmbeddingProvider",
    "Retriever",
    "TiktokenCounter",
    "TokenCounter",
    "VectorIndex",
    "chunk_text",
    "compose_retrieval_section",
    "compose_system_prompt",
    "cosine_similarity",
]
