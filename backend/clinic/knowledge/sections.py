"""Split uploaded documents into titled, tagged knowledge entries."""

import re
from collections import Counter
from pathlib import PurePath

from backend.clinic.models.knowledge import KnowledgeEntryCreate, KnowledgeSource

MIN_SECTION_CHARS = 50
MIN_PARAGRAPH_WORDS = 10
SLICE_CHARS = 500
MAX_TITLE_CHARS = 200
MAX_CONTENT_CHARS = 3000
MAX_TAGS = 5
DEFAULT_TAGS = ["document", "uploaded"]

STOP_WORDS = frozenset(
    """the is at which on and a an as are was were been be have has had do does did
    will would could should may might must can this that these those i you he she it
    we they what who when where why how all each every both few more most other some
    such no not only own same so than too very just for with from to of in by about
    into through during before after above below up down out off over under again
    further then once""".split()
)

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")
_WORD_SPLIT_RE = re.compile(r"[\s,;.!?()\[\]{}'\"]+")
_TITLE_PREFIX_RE = re.compile(r"^[#\-*•·\s]+")
_WHITESPACE_RE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def split_sections(text: str, section_chars: int = 300) -> list[str]:
    """Split document text into sections.

    Paragraphs separated by blank lines are used when at least three of them
    are substantial. Otherwise sentences are grouped until a section passes
    ``section_chars``. If that still gives fewer than three sections the
    text is cut into fixed 500 character slices.
    """
    normalized = text.replace("\r\n", "\n")
    paragraphs = [
        _collapse(p)
        for p in re.split(r"\n\s*\n+", normalized)
    ]
    paragraphs = [
        p for p in paragraphs if len(p) > MIN_SECTION_CHARS and len(p.split(" ")) > MIN_PARAGRAPH_WORDS
    ]
    if len(paragraphs) >= 3:
        return paragraphs

    cleaned = _collapse(normalized)
    sections: list[str] = []
    current = ""
    for sentence in _SENTENCE_RE.findall(cleaned):
        current += sentence + " "
        if len(current) > section_chars:
            sections.append(_collapse(current))
            current = ""
    if len(current.strip()) > MIN_SECTION_CHARS:
        sections.append(_collapse(current))

    if len(sections) < 3:
        sections = []
        for start in range(0, len(cleaned), SLICE_CHARS):
            piece = cleaned[start : start + SLICE_CHARS].strip()
            if len(piece) > MIN_SECTION_CHARS:
                sections.append(piece)

    return sections


def section_title(section: str, file_name: str, index: int) -> str:
    """First sentence of the section, or "<file stem> - Part N" when too short."""
    title = re.split(r"[.!?\n]", section[:100])[0]
    title = _collapse(_TITLE_PREFIX_RE.sub("", title))
    if len(title) < 10:
        title = f"{PurePath(file_name).stem} - Part {index + 1}"
    return title[:MAX_TITLE_CHARS]


def extract_tags(text: str, limit: int = MAX_TAGS) -> list[str]:
    """Most frequent meaningful words in the text.

    Words must be purely alphabetic, 5 to 19 characters, and not stop words.
    Ties keep first-seen order.
    """
    words = [
        word
        for word in _WORD_SPLIT_RE.split(text.lower())
        if 4 < len(word) < 20 and word.isascii() and word.isalpha() and word not in STOP_WORDS
    ]
    tags = [word for word, _ in Counter(words).most_common(limit)]
    return tags or list(DEFAULT_TAGS)


def build_upload_entries(
    text: str,
    file_name: str,
    category: str,
    max_sections: int = 20,
    section_chars: int = 300,
    vector_document_id: str | None = None,
) -> list[KnowledgeEntryCreate]:
    """Turn an uploaded document into knowledge entries, one per section."""
    entries = []
    for index, section in enumerate(split_sections(text, section_chars)[:max_sections]):
        entries.append(
            KnowledgeEntryCreate(
                category=category,
                title=section_title(section, file_name, index),
                content=section[:MAX_CONTENT_CHARS],
                tags=extract_tags(section),
                is_active=True,
                source=KnowledgeSource.upload,
                file_name=file_name,
                vector_document_id=vector_document_id,
            )
        )
    return entries
