"""Vector index document and chunk models.

Documents and chunks are frozen so a snapshot handed to a reader can never be
mutated behind its back; replacing a document builds new objects.
"""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class VectorSource(str, Enum):
    """Where an indexed document came from."""

    drive = "drive"
    manual = "manual"
    pdf = "pdf"


class ChunkMetadata(BaseModel):
    """Positional and provenance details of a chunk."""

    model_config = ConfigDict(frozen=True)

    chunk_index: int = Field(description="Position of the chunk within its document")
    page_number: int = Field(description="Approximate page, three chunks per page")
    source: VectorSource
    token_count: int = Field(description="Tokens in the chunk content")
    embedding_failed: bool = Field(
        default=False, description="Embedding fell back to a zero vector"
    )


class DocumentChunk(BaseModel):
    """A bounded slice of document text with its embedding."""

    model_config = ConfigDict(frozen=True)

    id: str
    document_id: str
    document_name: str
    content: str
    embedding: tuple[float, ...] | None = None
    metadata: ChunkMetadata

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


class VectorDocument(BaseModel):
    """An indexed document and its ordered chunks."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    source: VectorSource
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    chunks: tuple[DocumentChunk, ...] = ()


class VectorDocumentSummary(BaseModel):
    """Document listing without chunk bodies."""

    id: str
    title: str
    source: VectorSource
    created_at: datetime
    chunk_count: int

    @classmethod
    def from_document(cls, document: VectorDocument) -> "VectorDocumentSummary":
        return cls(
            id=document.id,
            title=document.title,
            source=document.source,
            created_at=document.created_at,
            chunk_count=len(document.chunks),
        )


class IndexStats(BaseModel):
    """Aggregate counts over the vector index."""

    document_count: int
    total_chunks: int
    average_chunks_per_document: float


class ScoredChunk(BaseModel):
    """A search hit."""

    chunk: DocumentChunk
    score: float = Field(description="Cosine similarity in [-1, 1]")
