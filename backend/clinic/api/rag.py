"""Document index and semantic search API endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from backend.clinic.api.deps import get_services, to_http_error
from backend.clinic.errors import ClinicError
from backend.clinic.models.documents import (
    IndexStats,
    ScoredChunk,
    VectorDocument,
    VectorDocumentSummary,
)
from backend.clinic.models.ingest import BatchReport, DocumentIn, IngestResult
from backend.clinic.services import ClinicServices

router = APIRouter(prefix="/rag", tags=["rag"])


class SearchRequest(BaseModel):
    """Semantic search query."""

    query: str = Field(min_length=1, description="Natural language query")
    top_k: int | None = Field(default=None, gt=0, description="Maximum results")


class SearchResponse(BaseModel):
    """Ranked hits plus the index stats they were drawn from."""

    query: str
    results: list[ScoredChunk]
    stats: IndexStats
    message: str | None = None


class DocumentsResponse(BaseModel):
    stats: IndexStats
    documents: list[VectorDocumentSummary]


class BatchRequest(BaseModel):
    documents: list[DocumentIn]


@router.post("/search", response_model=SearchResponse)
async def search(
    payload: SearchRequest,
    services: ClinicServices = Depends(get_services),
) -> SearchResponse:
    """Rank indexed chunks by similarity to the query."""
    if not payload.query.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query is required",
        )

    try:
        results = await services.retriever.search(payload.query, payload.top_k)
    except ClinicError as e:
        raise to_http_error(e) from e

    stats = services.index.get_stats()
    message = None
    if stats.document_count == 0:
        message = "No documents indexed yet. Add or sync documents to enable search."
    return SearchResponse(query=payload.query, results=results, stats=stats, message=message)


@router.get("/documents", response_model=DocumentsResponse)
def list_documents(services: ClinicServices = Depends(get_services)) -> DocumentsResponse:
    """Index stats and a summary of every indexed document."""
    return DocumentsResponse(
        stats=services.index.get_stats(),
        documents=[
            VectorDocumentSummary.from_document(doc) for doc in services.index.get_all_documents()
        ],
    )


@router.get("/documents/{document_id}", response_model=VectorDocument)
def get_document(
    document_id: str,
    services: ClinicServices = Depends(get_services),
) -> VectorDocument:
    document = services.index.get_document(document_id)
    if document is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document not found: {document_id}",
        )
    return document


@router.post("/documents", response_model=IngestResult, status_code=status.HTTP_201_CREATED)
async def add_document(
    payload: DocumentIn,
    services: ClinicServices = Depends(get_services),
) -> IngestResult:
    """Index a text document and record a knowledge entry for it."""
    try:
        return await services.ingestor.ingest_document(payload)
    except ClinicError as e:
        raise to_http_error(e) from e


@router.post("/documents/batch", response_model=BatchReport)
async def add_documents(
    payload: BatchRequest,
    services: ClinicServices = Depends(get_services),
) -> BatchReport:
    """Index several documents, reporting per-document failures."""
    try:
        return await services.ingestor.ingest_batch(payload.documents)
    except ClinicError as e:
        raise to_http_error(e) from e


@router.delete("/documents/{document_id}")
def remove_document(
    document_id: str,
    services: ClinicServices = Depends(get_services),
) -> dict[str, Any]:
    """Remove a document and its chunks. Knowledge entries are left alone."""
    if not services.index.remove_document(document_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document not found: {document_id}",
        )
    return {"id": document_id, "deleted": True, "stats": services.index.get_stats().model_dump()}
