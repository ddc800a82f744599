"""Document ingestion: text extraction, vector indexing and knowledge entries."""

import asyncio
import logging
from collections.abc import Iterable
from pathlib import PurePath
from typing import Protocol

from backend.clinic.config import Settings
from backend.clinic.errors import ConfigurationError, DocumentTextError, UnsupportedFileTypeError
from backend.clinic.knowledge.sections import build_upload_entries, extract_tags
from backend.clinic.knowledge.store import KnowledgeStore, generate_entry_id
from backend.clinic.models.documents import VectorDocumentSummary, VectorSource
from backend.clinic.models.ingest import (
    BatchFailure,
    BatchReport,
    DocumentIn,
    IngestResult,
    SourceFile,
)
from backend.clinic.models.knowledge import KnowledgeEntryCreate, KnowledgeSource
from backend.clinic.rag.vector_index import VectorIndex
from backend.clinic.utils.pdf_parser import extract_text_from_pdf

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("pdf", "md", "txt")
DEFAULT_UPLOAD_CATEGORY = "Documents"

# Checked in order; first keyword found in the lower-cased file name wins
_FILENAME_CATEGORIES = (
    (("price", "cost"), "Pricing"),
    (("treatment", "procedure"), "Treatments"),
    (("product",), "Documents"),
    (("faq",), "FAQs"),
)
_DEFAULT_FILE_CATEGORY = "Treatments"


class DocumentSource(Protocol):
    """External file collection such as a shared Drive folder."""

    async def list_files(self, folder_id: str) -> list[SourceFile]:
        """List the files in a folder."""
        ...

    async def fetch_text(self, file: SourceFile) -> str:
        """Export a file as plain text."""
        ...


def categorize_file_name(name: str) -> str:
    """Guess a knowledge category from a file name."""
    lowered = name.lower()
    for keywords, category in _FILENAME_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return _DEFAULT_FILE_CATEGORY


def file_extension(file_name: str) -> str:
    return PurePath(file_name).suffix.lower().lstrip(".")


def extract_file_text(file_name: str, data: bytes, settings: Settings) -> str:
    """Convert uploaded file bytes to text.

    Raises:
        UnsupportedFileTypeError: For anything but PDF, Markdown or plain text.
        DocumentTextError: If the bytes cannot be decoded or parsed.
    """
    ext = file_extension(file_name)
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Unsupported file type: {ext or 'unknown'}. Please upload a PDF, TXT, or MD file."
        )

    if ext == "pdf":
        return extract_text_from_pdf(
            data,
            use_ocr=settings.enable_pdf_ocr,
            ocr_threshold=settings.ocr_min_text_threshold,
            ocr_dpi_scale=settings.ocr_dpi_scale,
        )

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DocumentTextError(f"File is not valid UTF-8 text: {e}") from e


class DocumentIngestor:
    """Feeds documents into the vector index and the knowledge store.

    Every ingested document gets a vector document plus at least one
    knowledge entry referencing it by id. The two are not linked beyond
    that reference; removing one leaves the other in place.
    """

    def __init__(self, index: VectorIndex, knowledge: KnowledgeStore, settings: Settings) -> None:
        self.index = index
        self.knowledge = knowledge
        self.settings = settings

    def _validate_text(self, text: str, name: str) -> str:
        text = text.strip()
        if len(text) < self.settings.min_document_chars:
            raise DocumentTextError(
                f"Document {name!r} is empty or too short "
                f"(minimum {self.settings.min_document_chars} characters)."
            )
        return text

    def _preview(self, text: str) -> str:
        limit = self.settings.knowledge_preview_chars
        return text if len(text) <= limit else text[:limit] + "..."

    async def ingest_document(self, doc: DocumentIn) -> IngestResult:
        """Index a text document and add a knowledge entry previewing it.

        Raises:
            DocumentTextError: If the text is shorter than the minimum.
        """
        text = self._validate_text(doc.content, doc.title)
        document_id = doc.document_id or f"{doc.source.value}_{generate_entry_id()}"
        category = doc.category or categorize_file_name(doc.file_name or doc.title)

        document = await self.index.add_document(document_id, doc.title, text, doc.source)

        entry = await asyncio.to_thread(
            self.knowledge.add,
            KnowledgeEntryCreate(
                category=category,
                title=doc.title,
                content=self._preview(text),
                tags=extract_tags(text),
                source=(
                    KnowledgeSource.drive if doc.source == VectorSource.drive else KnowledgeSource.manual
                ),
                file_name=doc.file_name,
                origin_file_id=doc.origin_file_id,
                vector_document_id=document.id,
                chunk_count=len(document.chunks),
            )
        )
        return IngestResult(
            document=VectorDocumentSummary.from_document(document), entries=[entry]
        )

    async def ingest_upload(
        self,
        file_name: str,
        data: bytes,
        category: str | None = None,
    ) -> IngestResult:
        """Index an uploaded file and split it into sectioned knowledge entries.

        Raises:
            UnsupportedFileTypeError: For unsupported extensions.
            DocumentTextError: If no usable text could be extracted.
        """
        text = self._validate_text(extract_file_text(file_name, data, self.settings), file_name)
        source = VectorSource.pdf if file_extension(file_name) == "pdf" else VectorSource.manual
        title = PurePath(file_name).stem or file_name

        drafts = build_upload_entries(
            text,
            file_name,
            category or DEFAULT_UPLOAD_CATEGORY,
            max_sections=self.settings.max_upload_sections,
            section_chars=self.settings.upload_section_chars,
        )
        if not drafts:
            raise DocumentTextError("Could not create meaningful sections from the document")

        document = await self.index.add_document(
            f"{source.value}_{generate_entry_id()}", title, text, source
        )
        entries = [
            await asyncio.to_thread(
                self.knowledge.add,
                draft.model_copy(
                    update={"vector_document_id": document.id, "chunk_count": len(document.chunks)}
                ),
            )
            for draft in drafts
        ]
        logger.info(
            "upload_ingested",
            extra={"file_name": file_name, "entries": len(entries), "document_id": document.id},
        )
        return IngestResult(
            document=VectorDocumentSummary.from_document(document), entries=entries
        )

    async def ingest_batch(self, docs: Iterable[DocumentIn]) -> BatchReport:
        """Ingest documents one after another, continuing past failures.

        Configuration errors abort the batch since every later item would
        fail the same way.
        """
        report = BatchReport()
        for doc in docs:
            report.total += 1
            try:
                result = await self.ingest_document(doc)
            except ConfigurationError:
                raise
            except Exception as e:
                logger.warning(
                    "batch_item_failed", extra={"title": doc.title, "error": str(e)}, exc_info=True
                )
                report.failed.append(BatchFailure(title=doc.title, reason=str(e)))
                continue
            report.succeeded += 1
            report.documents.append(result.document)

        logger.info(
            "batch_ingested",
            extra={"total": report.total, "succeeded": report.succeeded, "failed": len(report.failed)},
        )
        return report

    async def sync_source(self, source: DocumentSource, folder_id: str) -> BatchReport:
        """Pull every file in a source folder into the index.

        Files that fail to export or index are reported and skipped.
        """
        report = BatchReport()
        for file in await source.list_files(folder_id):
            report.total += 1
            try:
                text = await source.fetch_text(file)
                result = await self.ingest_document(
                    DocumentIn(
                        title=file.name,
                        content=text,
                        source=VectorSource.drive,
                        category=categorize_file_name(file.name),
                        file_name=file.name,
                        origin_file_id=file.id,
                    )
                )
            except ConfigurationError:
                raise
            except Exception as e:
                logger.warning(
                    "source_file_failed", extra={"file_id": file.id, "error": str(e)}, exc_info=True
                )
                report.failed.append(BatchFailure(title=file.name, reason=str(e)))
                continue
            report.succeeded += 1
            report.documents.append(result.document)

        logger.info(
            "source_synced",
            extra={
                "folder_id": folder_id,
                "total": report.total,
                "succeeded": report.succeeded,
                "failed": len(report.failed),
            },
        )
        return report
