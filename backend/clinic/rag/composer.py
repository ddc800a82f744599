"""System prompt composition from a base persona and clinic knowledge."""

from collections.abc import Sequence

from backend.clinic.models.documents import ScoredChunk
from backend.clinic.models.knowledge import KnowledgeEntry

KNOWLEDGE_HEADER = "\n\nADDITIONAL KNOWLEDGE BASE:\n"
EXCERPTS_HEADER = "\n\nRELEVANT DOCUMENT EXCERPTS:\n"
CITATION_INSTRUCTION = (
    "When referencing information from these sources, please cite them by "
    "mentioning [Source: filename] at the end of relevant statements.\n"
)


def _source_tag(name: str | None) -> str:
    return f" [Source: {name}]" if name else ""


def compose_system_prompt(base_prompt: str, entries: Sequence[KnowledgeEntry]) -> str:
    """Append active knowledge entries to the base prompt.

    Entries are grouped under upper-cased category headers, so "FAQs" and
    "faqs" share one block, and the blocks are ordered lexicographically.
    Within a block entries keep their given order. Inactive entries are
    skipped; with nothing left the base prompt is returned unchanged.
    """
    active = [entry for entry in entries if entry.is_active]
    if not active:
        return base_prompt

    grouped: dict[str, list[KnowledgeEntry]] = {}
    for entry in active:
        grouped.setdefault(entry.category.upper(), []).append(entry)

    parts = [KNOWLEDGE_HEADER, CITATION_INSTRUCTION]
    for header in sorted(grouped):
        parts.append(f"\n{header}:\n")
        for entry in grouped[header]:
            parts.append(f"- {entry.title}: {entry.content}{_source_tag(entry.file_name)}\n")
            if entry.tags:
                parts.append(f"  Tags: {', '.join(entry.tags)}\n")

    return base_prompt + "".join(parts)


def compose_retrieval_section(base_prompt: str, hits: Sequence[ScoredChunk]) -> str:
    """Append ranked document excerpts to the prompt, best match first."""
    if not hits:
        return base_prompt

    parts = [EXCERPTS_HEADER, CITATION_INSTRUCTION]
    for hit in hits:
        parts.append(f"- {hit.chunk.content}{_source_tag(hit.chunk.document_name)}\n")
    return base_prompt + "".join(parts)
