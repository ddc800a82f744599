"""Knowledge base API endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from backend.clinic.api.deps import get_services, to_http_error
from backend.clinic.errors import ClinicError
from backend.clinic.models.knowledge import (
    KnowledgeEntry,
    KnowledgeEntryCreate,
    KnowledgeEntryUpdate,
    KnowledgeFilter,
)
from backend.clinic.services import ClinicServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/knowledge", tags=["knowledge"])


@router.get("", response_model=list[KnowledgeEntry])
def list_knowledge(
    category: str | None = None,
    active: bool | None = None,
    services: ClinicServices = Depends(get_services),
) -> list[KnowledgeEntry]:
    """List knowledge entries, optionally filtered by category and active flag."""
    return services.knowledge.list(KnowledgeFilter(category=category, is_active=active))


@router.get("/active", response_model=list[KnowledgeEntry])
def list_active_knowledge(
    services: ClinicServices = Depends(get_services),
) -> list[KnowledgeEntry]:
    """Entries currently injected into the system prompt."""
    return services.knowledge.list_active()


@router.post("", response_model=KnowledgeEntry, status_code=status.HTTP_201_CREATED)
def create_knowledge(
    payload: KnowledgeEntryCreate,
    services: ClinicServices = Depends(get_services),
) -> KnowledgeEntry:
    try:
        return services.knowledge.add(payload)
    except ClinicError as e:
        raise to_http_error(e) from e


@router.get("/{entry_id}", response_model=KnowledgeEntry)
def get_knowledge(
    entry_id: str,
    services: ClinicServices = Depends(get_services),
) -> KnowledgeEntry:
    entry = services.knowledge.get(entry_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Knowledge entry not found: {entry_id}",
        )
    return entry


@router.put("/{entry_id}", response_model=KnowledgeEntry)
def update_knowledge(
    entry_id: str,
    payload: KnowledgeEntryUpdate,
    services: ClinicServices = Depends(get_services),
) -> KnowledgeEntry:
    """Merge the provided fields into an entry."""
    try:
        return services.knowledge.update(entry_id, payload)
    except ClinicError as e:
        raise to_http_error(e) from e


@router.delete("/{entry_id}")
def delete_knowledge(
    entry_id: str,
    services: ClinicServices = Depends(get_services),
) -> dict[str, Any]:
    """Delete an entry. Deleting a missing id reports deleted=false."""
    deleted = services.knowledge.delete(entry_id)
    return {"id": entry_id, "deleted": deleted}


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_knowledge(
    file: UploadFile = File(...),
    category: str | None = Form(default=None),
    services: ClinicServices = Depends(get_services),
) -> dict[str, Any]:
    """Upload a PDF, Markdown or text file.

    The file is indexed for search and split into knowledge entries.

    Returns:
        Created entries (content previews) and the indexed document summary
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File name is required",
        )

    content_bytes = await file.read()
    try:
        result = await services.ingestor.ingest_upload(
            file.filename, content_bytes, category=category or None
        )
    except ClinicError as e:
        logger.warning("upload_rejected", extra={"file_name": file.filename, "error": str(e)})
        raise to_http_error(e) from e

    return {
        "message": (
            f"Successfully created {len(result.entries)} knowledge entries from {file.filename!r}"
        ),
        "filename": file.filename,
        "document": result.document.model_dump(mode="json"),
        "entries": [
            {
                **entry.model_dump(mode="json", exclude={"content"}),
                "preview": entry.content[:100] + ("..." if len(entry.content) > 100 else ""),
            }
            for entry in result.entries
        ],
    }
