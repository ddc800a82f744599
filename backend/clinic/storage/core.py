"""Key-value storage backends for the knowledge, prompt and vector stores."""

import json
import logging
import threading
from typing import Any, Protocol

import redis

from backend.clinic.config import Settings, StorageBackend

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Namespace-scoped store of JSON-compatible records."""

    def get(self, key: str) -> dict[str, Any] | None:
        """Get a record.

        Args:
            key: Record key.

        Returns:
            The stored record or None if absent.
        """
        ...

    def put(self, key: str, value: dict[str, Any]) -> None:
        """Insert or replace a record."""
        ...

    def delete(self, key: str) -> bool:
        """Delete a record.

        Returns:
            True if a record was removed.
        """
        ...

    def values(self) -> list[dict[str, Any]]:
        """Return every record in the namespace."""
        ...

    def clear(self) -> None:
        """Remove every record in the namespace."""
        ...


class InMemoryKeyValueStore:
    """Dict-backed store; records live for the life of the process."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            return self._records.get(key)

    def put(self, key: str, value: dict[str, Any]) -> None:
        with self._lock:
            self._records[key] = value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def values(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._records.values())

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


class RedisKeyValueStore:
    """One Redis hash per namespace with JSON-encoded values.

    Hash field order is not guaranteed, so callers that care about ordering
    sort on a timestamp carried in the record.
    """

    def __init__(self, client: redis.Redis, hash_key: str) -> None:
        """Initialize the store.

        Args:
            client: Redis client created with decode_responses=True.
            hash_key: Name of the Redis hash holding this namespace.
        """
        self.client = client
        self.hash_key = hash_key

    def get(self, key: str) -> dict[str, Any] | None:
        raw = self.client.hget(self.hash_key, key)
        return json.loads(raw) if raw is not None else None

    def put(self, key: str, value: dict[str, Any]) -> None:
        self.client.hset(self.hash_key, key, json.dumps(value))

    def delete(self, key: str) -> bool:
        return bool(self.client.hdel(self.hash_key, key))

    def values(self) -> list[dict[str, Any]]:
        return [json.loads(raw) for raw in self.client.hvals(self.hash_key)]

    def clear(self) -> None:
        self.client.delete(self.hash_key)


def create_redis_client(settings: Settings) -> redis.Redis:
    """Create a Redis client for the configured URL."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        settings.redis_url, decode_responses=True
    )


def build_store(
    settings: Settings,
    namespace: str,
    client: redis.Redis | None = None,
) -> KeyValueStore:
    """Create the configured backend for one namespace.

    Args:
        settings: Application settings.
        namespace: Logical collection name, e.g. "knowledge".
        client: Optional shared Redis client.

    Returns:
        A KeyValueStore instance.
    """
    if settings.storage_backend == StorageBackend.redis:
        hash_key = f"{settings.redis_namespace}:{namespace}"
        logger.info("storage_backend_selected", extra={"backend": "redis", "key": hash_key})
        return RedisKeyValueStore(client or create_redis_client(settings), hash_key)
    return InMemoryKeyValueStore()
