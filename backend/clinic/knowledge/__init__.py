"""Knowledge entries, system prompts and document ingestion."""

from backend.clinic.knowledge.ingest import (
    DocumentIngestor,
    DocumentSource,
    categorize_file_name,
    extract_file_text,
)
from backend.clinic.knowledge.prompts import DEFAULT_PROMPT, PromptStore
from backend.clinic.knowledge.sections import build_upload_entries, extract_tags, split_sections
from backend.clinic.knowledge.store import KnowledgeStore, generate_entry_id

__all__ = [
    "DEFAULT_PROMPT",
    "DocumentIngestor",
    "DocumentSource",
    "KnowledgeStore",
    "PromptStore",
    "build_upload_entries",
    "categorize_file_name",
    "extract_file_text",
    "extract_tags",
    "generate_entry_id",
    "split_sections",
]
