"""Unit tests for health check endpoint."""

import asyncio
from unittest.mock import MagicMock

from backend.clinic.api.health import get_health
from backend.clinic.config import Settings
from backend.clinic.services import ClinicServices
from tests.fakes import FakeChatProvider, FakeEmbeddingProvider, FakeTokenCounter


def build_services(settings: Settings, redis_client=None, configured: bool = True) -> ClinicServices:
    return ClinicServices.build(
        settings,
        embedding_provider=FakeEmbeddingProvider(configured=configured),
        chat_provider=FakeChatProvider(),
        counter=FakeTokenCounter(),
        redis_client=redis_client,
    )


def redis_settings() -> Settings:
    return Settings(_env_file=None, storage_backend="redis")


def empty_redis() -> MagicMock:
    client = MagicMock()
    client.hvals.return_value = []
    client.hget.return_value = None
    return client


def test_healthz_ok_with_memory_storage(settings) -> None:
    """Test health check returns ok for the in-memory backend."""
    result = asyncio.run(get_health(build_services(settings)))

    assert result.status == "ok"
    assert result.checks == {"storage": "ok"}
    assert result.openai_configured is True
    assert result.index.document_count == 0


def test_healthz_ok_when_redis_ok() -> None:
    """Test health check returns ok when Redis answers PING."""
    client = empty_redis()

    result = asyncio.run(get_health(build_services(redis_settings(), client)))

    assert result.status == "ok"
    assert result.checks["redis"] == "ok"
    client.ping.assert_called_once()


def test_healthz_down_when_redis_fails() -> None:
    """Test health check returns down when Redis fails."""
    client = empty_redis()
    client.ping.side_effect = Exception("Redis connection failed")

    result = asyncio.run(get_health(build_services(redis_settings(), client)))

    assert result.status == "down"
    assert result.checks["redis"] == "down"


def test_healthz_reports_missing_key_without_going_down(settings) -> None:
    result = asyncio.run(get_health(build_services(settings, configured=False)))

    assert result.status == "ok"
    assert result.openai_configured is False
