"""Fake collaborators for tests: token counter, embedding and chat providers."""

import hashlib
import re
from collections.abc import AsyncIterator, Sequence

from backend.clinic.chat.service import ChatMessage
from backend.clinic.errors import MissingOpenAIKeyError
from backend.clinic.models.ingest import SourceFile

_WORD_RE = re.compile(r"[a-z0-9]+")


class FakeTokenCounter:
    """One token per whitespace separated word."""

    def count(self, text: str) -> int:
        return len(text.split())

    def window(self, text: str, max_tokens: int) -> list[str]:
        words = text.split()
        return [" ".join(words[i : i + max_tokens]) for i in range(0, len(words), max_tokens)]


class FakeEmbeddingProvider:
    """Deterministic hashed bag-of-words embeddings.

    Texts sharing words get similar vectors, which is enough to make
    search rankings predictable.
    """

    def __init__(
        self,
        dimensions: int = 1536,
        configured: bool = True,
        fail_on: str | None = None,
        failures_before_success: int = 0,
    ) -> None:
        self.model = "fake-embedding"
        self.dimensions = dimensions
        self.configured = configured
        self.fail_on = fail_on
        self.failures_before_success = failures_before_success
        self.calls: list[str] = []

    def check_configured(self) -> None:
        if not self.configured:
            raise MissingOpenAIKeyError("OpenAI API key is not configured.")

    async def create(self, text: str) -> list[float]:
        self.check_configured()
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise RuntimeError("embedding service unavailable")
        if self.failures_before_success > 0:
            self.failures_before_success -= 1
            raise RuntimeError("rate limited")

        vector = [0.0] * self.dimensions
        for word in _WORD_RE.findall(text.lower()):
            digest = hashlib.md5(word.encode("utf-8")).hexdigest()
            vector[int(digest, 16) % self.dimensions] += 1.0
        return vector


class FakeChatProvider:
    """Records the system prompt and streams a canned reply."""

    def __init__(self, reply: Sequence[str] = ("Hello", " from", " Emer"), configured: bool = True) -> None:
        self.reply = list(reply)
        self.configured = configured
        self.system_prompts: list[str] = []

    def check_configured(self) -> None:
        if not self.configured:
            raise MissingOpenAIKeyError("OpenAI API key is not configured.")

    async def stream(
        self, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> AsyncIterator[str]:
        self.system_prompts.append(system_prompt)
        for delta in self.reply:
            yield delta


class FakeDocumentSource:
    """In-memory folder of text files; names in ``broken`` fail to export."""

    def __init__(self, files: dict[str, str], broken: set[str] | None = None) -> None:
        self.files = files
        self.broken = broken or set()

    async def list_files(self, folder_id: str) -> list[SourceFile]:
        return [
            SourceFile(id=f"{folder_id}-{i}", name=name, mime_type="text/plain")
            for i, name in enumerate(self.files)
        ]

    async def fetch_text(self, file: SourceFile) -> str:
        if file.name in self.broken:
            raise RuntimeError(f"export failed for {file.name}")
        return self.files[file.name]


def sentences(count: int, words_per_sentence: int, topic: str = "laser") -> str:
    """Build text of ``count`` sentences with exactly ``words_per_sentence`` words each."""
    out = []
    for i in range(count):
        words = [topic] + [f"w{i}x{j}" for j in range(words_per_sentence - 1)]
        out.append(" ".join(words) + ".")
    return " ".join(out)
