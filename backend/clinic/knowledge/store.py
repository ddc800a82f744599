"""Knowledge entry store."""

from __future__ import annotations

import logging
import secrets
import string
import threading
import time
from datetime import UTC, datetime

from backend.clinic.errors import DuplicateKnowledgeEntryError, KnowledgeEntryNotFoundError
from backend.clinic.models.knowledge import (
    KnowledgeEntry,
    KnowledgeEntryCreate,
    KnowledgeEntryUpdate,
    KnowledgeFilter,
)
from backend.clinic.storage.core import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_entry_id() -> str:
    """Millisecond timestamp plus a random base36 suffix."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"{int(time.time() * 1000)}_{suffix}"


class KnowledgeStore:
    """Mutable collection of knowledge entries.

    All mutations run under one lock and write through to the backing store
    before the in-memory view changes.
    """

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self.store = store or InMemoryKeyValueStore()
        self._lock = threading.Lock()
        entries = [KnowledgeEntry.model_validate(raw) for raw in self.store.values()]
        entries.sort(key=lambda entry: entry.created_at)
        self._entries: dict[str, KnowledgeEntry] = {entry.id: entry for entry in entries}

    def _save(self, entry: KnowledgeEntry) -> None:
        self.store.put(entry.id, entry.model_dump(mode="json"))
        self._entries[entry.id] = entry

    def add(self, data: KnowledgeEntryCreate) -> KnowledgeEntry:
        """Add an entry, generating an id when none is given.

        Raises:
            DuplicateKnowledgeEntryError: If an explicit id is already taken.
        """
        with self._lock:
            entry_id = data.id or generate_entry_id()
            while data.id is None and entry_id in self._entries:
                entry_id = generate_entry_id()
            if entry_id in self._entries:
                raise DuplicateKnowledgeEntryError(entry_id)

            now = datetime.now(UTC)
            entry = KnowledgeEntry(
                **data.model_dump(exclude={"id"}),
                id=entry_id,
                created_at=now,
                updated_at=now,
            )
            self._save(entry)

        logger.info(
            "knowledge_entry_added",
            extra={"entry_id": entry.id, "category": entry.category, "origin": entry.source.value},
        )
        return entry

    def update(self, entry_id: str, patch: KnowledgeEntryUpdate) -> KnowledgeEntry:
        """Merge the fields set on patch into an entry and refresh updated_at.

        Raises:
            KnowledgeEntryNotFoundError: If no entry has this id.
        """
        with self._lock:
            current = self._entries.get(entry_id)
            if current is None:
                raise KnowledgeEntryNotFoundError(entry_id)

            changes = patch.model_dump(exclude_unset=True)
            changes["updated_at"] = datetime.now(UTC)
            entry = KnowledgeEntry.model_validate({**current.model_dump(), **changes})
            self._save(entry)
        return entry

    def set_active(self, entry_id: str, is_active: bool) -> KnowledgeEntry:
        """Toggle whether an entry is injected into the prompt."""
        return self.update(entry_id, KnowledgeEntryUpdate(is_active=is_active))

    def delete(self, entry_id: str) -> bool:
        """Delete an entry. Deleting a missing id is not an error.

        Returns:
            True if an entry was removed.
        """
        with self._lock:
            if entry_id not in self._entries:
                return False
            self.store.delete(entry_id)
            del self._entries[entry_id]
        logger.info("knowledge_entry_deleted", extra={"entry_id": entry_id})
        return True

    def get(self, entry_id: str) -> KnowledgeEntry | None:
        with self._lock:
            return self._entries.get(entry_id)

    def list(self, criteria: KnowledgeFilter | None = None) -> list[KnowledgeEntry]:
        """List entries in creation order, optionally filtered."""
        with self._lock:
            entries = list(self._entries.values())
        if criteria is None:
            return entries
        return [entry for entry in entries if criteria.matches(entry)]

    def list_active(self) -> list[KnowledgeEntry]:
        return self.list(KnowledgeFilter(is_active=True))
