"""Embedding generation with timeouts, retries and zero-vector fallback."""

import asyncio
import logging
import random
import time
from typing import Protocol

from openai import AsyncOpenAI

from backend.clinic.config import Settings, get_openai_api_key
from backend.clinic.errors import ConfigurationError, EmbeddingError
from backend.clinic.metrics.core import record_embedding_call

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """External embedding model."""

    model: str
    dimensions: int

    def check_configured(self) -> None:
        """Raise ConfigurationError if the provider cannot be called."""
        ...

    async def create(self, text: str) -> list[float]:
        """Embed text.

        Raises:
            Exception: Any provider failure; the Embedder decides what to do.
        """
        ...


class OpenAIEmbeddingProvider:
    """EmbeddingProvider backed by the OpenAI embeddings endpoint."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self.model = settings.embedding_model
        self.dimensions = settings.embedding_dimensions
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # Raises MissingOpenAIKeyError before any network call
            self._client = AsyncOpenAI(api_key=get_openai_api_key(self.settings))
        return self._client

    def check_configured(self) -> None:
        self._get_client()

    async def create(self, text: str) -> list[float]:
        client = self._get_client()
        kwargs = {}
        # ada-002 has a fixed size and rejects the dimensions parameter
        if self.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self.dimensions
        response = await client.embeddings.create(model=self.model, input=text, **kwargs)
        return list(response.data[0].embedding)


class Embedder:
    """Wraps an EmbeddingProvider with bounded timeouts and retries.

    Ingestion uses :meth:`embed`, which degrades to a zero vector so one bad
    chunk never aborts a document. Queries use :meth:`embed_query`, which
    raises, since a zero query vector scores everything as 0.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        timeout_s: float = 10.0,
        max_retries: int = 2,
        jitter_ms: tuple[int, int] = (200, 500),
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the embedder.

        Args:
            provider: Embedding model client.
            timeout_s: Per-attempt timeout in seconds.
            max_retries: Retries after the first failed attempt.
            jitter_ms: Inclusive range of backoff before each retry.
            rng: Optional random number generator for jitter (for testing).
        """
        self.provider = provider
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.jitter_ms = jitter_ms
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(cls, provider: EmbeddingProvider, settings: Settings) -> "Embedder":
        return cls(
            provider,
            timeout_s=settings.embedding_timeout_s,
            max_retries=settings.embedding_max_retries,
            jitter_ms=(settings.retry_jitter_min_ms, settings.retry_jitter_max_ms),
        )

    @property
    def dimensions(self) -> int:
        return self.provider.dimensions

    def check_configured(self) -> None:
        """Raise ConfigurationError if the provider is not configured."""
        self.provider.check_configured()

    def zero_vector(self) -> list[float]:
        return [0.0] * self.dimensions

    async def _embed_with_retries(self, text: str) -> tuple[list[float] | None, int, str | None]:
        """Run the provider call with retries.

        Returns:
            Tuple of (vector, retries, error). Vector is None on final failure.
        """
        error: str | None = None
        retries = 0

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                retries = attempt
                jitter_ms = self.rng.randint(*self.jitter_ms)
                await asyncio.sleep(jitter_ms / 1000.0)

            try:
                vector = await asyncio.wait_for(
                    self.provider.create(text), timeout=self.timeout_s
                )
            except ConfigurationError:
                raise
            except asyncio.TimeoutError:
                error = "timeout"
                continue
            except Exception as e:
                error = str(e) or e.__class__.__name__
                continue

            if len(vector) != self.dimensions:
                error = f"expected {self.dimensions} dimensions, got {len(vector)}"
                continue

            return [float(x) for x in vector], retries, None

        return None, retries, error

    async def embed_with_status(self, text: str) -> tuple[list[float], bool]:
        """Embed text for ingestion.

        Returns:
            Tuple of (vector, failed). On failure the vector is all zeros.

        Raises:
            ConfigurationError: If the provider is not configured.
        """
        start = time.perf_counter()
        vector, retries, error = await self._embed_with_retries(text)
        latency_ms = int((time.perf_counter() - start) * 1000)

        failed = vector is None
        if failed:
            logger.warning(
                "embedding_fallback_zero_vector",
                extra={"error": error, "retries": retries, "text_chars": len(text)},
            )
            vector = self.zero_vector()

        record_embedding_call(
            model=self.provider.model,
            latency_ms=latency_ms,
            ok=not failed,
            retries=retries,
            fallback=failed,
            error=error,
        )
        return vector, failed

    async def embed(self, text: str) -> list[float]:
        """Embed text, falling back to a zero vector on failure."""
        vector, _ = await self.embed_with_status(text)
        return vector

    async def embed_query(self, text: str) -> list[float]:
        """Embed a search query.

        Raises:
            EmbeddingError: If every attempt failed.
            ConfigurationError: If the provider is not configured.
        """
        start = time.perf_counter()
        vector, retries, error = await self._embed_with_retries(text)
        latency_ms = int((time.perf_counter() - start) * 1000)

        record_embedding_call(
            model=self.provider.model,
            latency_ms=latency_ms,
            ok=vector is not None,
            retries=retries,
            fallback=False,
            error=error,
        )
        if vector is None:
            raise EmbeddingError(f"Query embedding failed after {retries} retries: {error}")
        return vector
