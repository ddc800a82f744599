"""Convenient imports for all model types."""

from .documents import (
    ChunkMetadata,
    DocumentChunk,
    IndexStats,
    ScoredChunk,
    VectorDocument,
    VectorDocumentSummary,
    VectorSource,
)
from .ingest import BatchFailure, BatchReport, DocumentIn, IngestResult, SourceFile
from .knowledge import (
    KnowledgeEntry,
    KnowledgeEntryCreate,
    KnowledgeEntryUpdate,
    KnowledgeFilter,
    KnowledgeSource,
)
from .prompt import ActivePrompt, PromptActivate, PromptSave, PromptSource

__all__ = [
    # Documents
    "ChunkMetadata",
    "DocumentChunk",
    "IndexStats",
    "ScoredChunk",
    "VectorDocument",
    "VectorDocumentSummary",
    "VectorSource",
    # Ingestion
    "BatchFailure",
    "BatchReport",
    "DocumentIn",
    "IngestResult",
    "SourceFile",
    # Knowledge
    "KnowledgeEntry",
    "KnowledgeEntryCreate",
    "KnowledgeEntryUpdate",
    "KnowledgeFilter",
    "KnowledgeSource",
    # Prompts
    "ActivePrompt",
    "PromptActivate",
    "PromptSave",
    "PromptSource",
]
