"""Tests for settings and credential validation."""

import pytest

from backend.clinic.config import KnowledgeMode, Settings, StorageBackend, get_openai_api_key
from backend.clinic.errors import ConfigurationError, MissingOpenAIKeyError


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.chunk_max_tokens == 500
    assert settings.embedding_dimensions == 1536
    assert settings.embedding_model == "text-embedding-ada-002"
    assert settings.openai_chat_model == "gpt-4-turbo"
    assert settings.knowledge_mode == KnowledgeMode.flat
    assert settings.storage_backend == StorageBackend.memory


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("KNOWLEDGE_MODE", "hybrid")
    monkeypatch.setenv("CHUNK_MAX_TOKENS", "250")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.knowledge_mode == KnowledgeMode.hybrid
    assert settings.chunk_max_tokens == 250
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("key", ["", "   ", "dummy-openai-api-key-for-tests"])
def test_missing_key_is_a_configuration_error(key):
    settings = Settings(_env_file=None, openai_api_key=key)

    with pytest.raises(MissingOpenAIKeyError) as excinfo:
        get_openai_api_key(settings)
    assert isinstance(excinfo.value, ConfigurationError)


def test_real_key_returned_stripped():
    settings = Settings(_env_file=None, openai_api_key="  sk-live  ")
    assert get_openai_api_key(settings) == "sk-live"
