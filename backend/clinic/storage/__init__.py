"""Pluggable storage for the in-process stores."""

from backend.clinic.storage.core import (
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
    build_store,
    create_redis_client,
)

__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "RedisKeyValueStore",
    "build_store",
    "create_redis_client",
]
