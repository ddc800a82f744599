"""Pytest configuration and fixtures for testing."""

import pytest
from fastapi.testclient import TestClient

from backend.clinic.config import Settings
from backend.clinic.main import create_app
from backend.clinic.rag.embedder import Embedder
from backend.clinic.services import ClinicServices
from tests.fakes import FakeChatProvider, FakeEmbeddingProvider, FakeTokenCounter


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test-key",
        embedding_max_retries=1,
        embedding_timeout_s=1.0,
        retry_jitter_min_ms=0,
        retry_jitter_max_ms=0,
    )


@pytest.fixture
def token_counter() -> FakeTokenCounter:
    return FakeTokenCounter()


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def chat_provider() -> FakeChatProvider:
    return FakeChatProvider()


@pytest.fixture
def embedder(embedding_provider: FakeEmbeddingProvider) -> Embedder:
    return Embedder(embedding_provider, timeout_s=1.0, max_retries=1, jitter_ms=(0, 0))


@pytest.fixture
def services(settings, embedding_provider, chat_provider, token_counter) -> ClinicServices:
    """Services wired with fake providers and in-memory stores."""
    return ClinicServices.build(
        settings,
        embedding_provider=embedding_provider,
        chat_provider=chat_provider,
        counter=token_counter,
    )


@pytest.fixture
def client(services: ClinicServices) -> TestClient:
    """Create a test client."""
    return TestClient(create_app(services=services))
