"""Tests for embedding retries, timeouts and fallback."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backend.clinic.config import Settings
from backend.clinic.errors import EmbeddingError, MissingOpenAIKeyError
from backend.clinic.rag.embedder import Embedder, OpenAIEmbeddingProvider
from tests.fakes import FakeEmbeddingProvider


def make_embedder(provider, max_retries: int = 1, timeout_s: float = 1.0) -> Embedder:
    return Embedder(provider, timeout_s=timeout_s, max_retries=max_retries, jitter_ms=(0, 0))


def test_embed_returns_provider_vector():
    provider = FakeEmbeddingProvider(dimensions=8)
    vector = asyncio.run(make_embedder(provider).embed("laser resurfacing"))

    assert len(vector) == 8
    assert any(vector)


def test_retry_recovers_from_transient_failure():
    provider = FakeEmbeddingProvider(dimensions=8, failures_before_success=1)
    vector, failed = asyncio.run(make_embedder(provider, max_retries=1).embed_with_status("peel"))

    assert not failed
    assert any(vector)
    assert len(provider.calls) == 2


def test_final_failure_falls_back_to_zero_vector(caplog):
    provider = FakeEmbeddingProvider(dimensions=8, fail_on="broken")

    with caplog.at_level(logging.WARNING):
        vector, failed = asyncio.run(make_embedder(provider).embed_with_status("broken text"))

    assert failed
    assert vector == [0.0] * 8
    assert len(provider.calls) == 2
    assert "embedding_fallback_zero_vector" in caplog.text


def test_timeout_counts_as_failure():
    class SlowProvider(FakeEmbeddingProvider):
        async def create(self, text: str) -> list[float]:
            await asyncio.sleep(1)
            return [1.0] * self.dimensions

    embedder = make_embedder(SlowProvider(dimensions=4), max_retries=0, timeout_s=0.01)
    vector, failed = asyncio.run(embedder.embed_with_status("slow"))

    assert failed
    assert vector == [0.0] * 4


def test_wrong_dimensions_count_as_failure():
    class ShortProvider(FakeEmbeddingProvider):
        async def create(self, text: str) -> list[float]:
            return [1.0, 2.0]

    vector, failed = asyncio.run(
        make_embedder(ShortProvider(dimensions=4), max_retries=0).embed_with_status("x")
    )
    assert failed
    assert vector == [0.0] * 4


def test_query_failure_raises():
    provider = FakeEmbeddingProvider(dimensions=8, fail_on="query")

    with pytest.raises(EmbeddingError):
        asyncio.run(make_embedder(provider).embed_query("query text"))


def test_missing_key_is_not_masked_by_fallback():
    provider = FakeEmbeddingProvider(dimensions=8, configured=False)

    with pytest.raises(MissingOpenAIKeyError):
        asyncio.run(make_embedder(provider).embed("anything"))


def test_metrics_recorded_for_each_call():
    provider = FakeEmbeddingProvider(dimensions=8)
    with patch("backend.clinic.rag.embedder.record_embedding_call") as record:
        asyncio.run(make_embedder(provider).embed("laser"))

    record.assert_called_once()
    assert record.call_args.kwargs["ok"] is True
    assert record.call_args.kwargs["fallback"] is False


def test_openai_provider_requires_key():
    settings = Settings(_env_file=None, openai_api_key="dummy-openai-api-key-for-tests")
    provider = OpenAIEmbeddingProvider(settings)

    with pytest.raises(MissingOpenAIKeyError):
        provider.check_configured()


def test_openai_provider_calls_embeddings_endpoint():
    settings = Settings(_env_file=None, openai_api_key="sk-test", embedding_dimensions=3)
    client = MagicMock()
    response = MagicMock()
    response.data = [MagicMock(embedding=[0.1, 0.2, 0.3])]
    client.embeddings.create = AsyncMock(return_value=response)

    provider = OpenAIEmbeddingProvider(settings, client=client)
    vector = asyncio.run(provider.create("hello"))

    assert vector == [0.1, 0.2, 0.3]
    client.embeddings.create.assert_awaited_once_with(
        model="text-embedding-ada-002", input="hello"
    )
