"""Sentence-aware, token-bounded text chunking."""

import re

from backend.clinic.rag.tokens import TokenCounter

# A sentence runs up to and including its terminator run; a trailing
# fragment without a terminator is kept as its own sentence.
_SENTENCE_RE = re.compile(r"[^.!?]*[.!?]+|[^.!?]+$")
_TERMINATOR_RE = re.compile(r"[.!?]")
_WHITESPACE_RE = re.compile(r"\s+")

SENTENCE_SEPARATOR = " "


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace to single spaces and trim the ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def split_sentences(text: str) -> list[str]:
    """Split text into whitespace-normalized sentences, terminators kept."""
    sentences = []
    for match in _SENTENCE_RE.finditer(text):
        sentence = normalize_whitespace(match.group(0))
        if sentence:
            sentences.append(sentence)
    return sentences


def chunk_text(text: str, max_tokens: int, counter: TokenCounter) -> list[str]:
    """Chunk text on sentence boundaries under a token budget.

    Sentences are accumulated into the running chunk until adding the next
    one would push it past ``max_tokens``; the chunk is then flushed and the
    overflowing sentence starts the next one. A single sentence longer than
    the budget becomes its own oversized chunk rather than being cut.

    Text without any sentence terminator is sliced into fixed token windows
    with no overlap.

    Args:
        text: Raw document text.
        max_tokens: Token budget per chunk.
        counter: Token counter for the embedding model.

    Returns:
        Chunks in document order; empty for blank input.

    Raises:
        ValueError: If max_tokens is not positive.
    """
    if max_tokens <= 0:
        raise ValueError("max_tokens must be positive")

    normalized = normalize_whitespace(text)
    if not normalized:
        return []

    if not _TERMINATOR_RE.search(normalized):
        return counter.window(normalized, max_tokens)

    chunks: list[str] = []
    current: list[str] = []

    for sentence in split_sentences(normalized):
        candidate = SENTENCE_SEPARATOR.join([*current, sentence])
        if current and counter.count(candidate) > max_tokens:
            chunks.append(SENTENCE_SEPARATOR.join(current))
            current = [sentence]
        else:
            current.append(sentence)

    if current:
        chunks.append(SENTENCE_SEPARATOR.join(current))

    # Nothing but whitespace survived sentence splitting
    if not chunks:
        return counter.window(normalized, max_tokens)

    return chunks
