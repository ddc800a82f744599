"""Ingestion request and report models."""

from pydantic import BaseModel, Field

from backend.clinic.models.documents import VectorDocumentSummary, VectorSource
from backend.clinic.models.knowledge import KnowledgeEntry


class DocumentIn(BaseModel):
    """A document handed to the ingestion pipeline as text."""

    title: str = Field(min_length=1)
    content: str
    source: VectorSource = VectorSource.manual
    document_id: str | None = Field(default=None, description="Generated if absent")
    category: str | None = Field(default=None, description="Inferred from the name if absent")
    file_name: str | None = None
    origin_file_id: str | None = None


class IngestResult(BaseModel):
    """Outcome of ingesting one document."""

    document: VectorDocumentSummary
    entries: list[KnowledgeEntry]


class BatchFailure(BaseModel):
    title: str
    reason: str


class BatchReport(BaseModel):
    """Partial-success report for a batch or source sync."""

    total: int = 0
    succeeded: int = 0
    failed: list[BatchFailure] = Field(default_factory=list)
    documents: list[VectorDocumentSummary] = Field(default_factory=list)


class SourceFile(BaseModel):
    """A file listed by an external document source."""

    id: str
    name: str
    mime_type: str | None = None
