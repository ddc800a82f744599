"""Tests for the active prompt store."""

import threading

from backend.clinic.knowledge.prompts import DEFAULT_PROMPT, PromptStore
from backend.clinic.models.prompt import PromptSource
from backend.clinic.storage.core import InMemoryKeyValueStore


def test_default_prompt_when_none_set():
    prompt = PromptStore().get_active_prompt()

    assert prompt.id == "default"
    assert prompt.content == DEFAULT_PROMPT
    assert prompt.source == PromptSource.default
    assert prompt.is_active is True


def test_last_write_wins():
    store = PromptStore()
    store.set_active_prompt("First prompt")
    store.set_active_prompt("Second prompt")

    active = store.get_active_prompt()
    assert active.content == "Second prompt"
    assert active.source == PromptSource.stored


def test_version_increments_on_each_activation():
    store = PromptStore()
    first = store.set_active_prompt("one")
    second = store.set_active_prompt("two", name="Renamed")

    assert second.version == first.version + 1
    assert second.name == "Renamed"
    assert second.id == first.id == "default"


def test_saved_active_prompt_supersedes_previous():
    store = PromptStore()
    old = store.save_prompt("Old", "old content", is_active=True)
    new = store.save_prompt("New", "new content", is_active=True)

    assert store.get_active_prompt().id == new.id
    history = {p.id: p for p in store.list_prompts()}
    assert history[old.id].is_active is False
    assert history[new.id].is_active is True


def test_saving_inactive_prompt_keeps_active_one():
    store = PromptStore()
    store.set_active_prompt("live")
    store.save_prompt("Draft", "draft content")

    assert store.get_active_prompt().content == "live"


def test_list_prompts_newest_first():
    store = PromptStore()
    a = store.save_prompt("A", "a")
    b = store.save_prompt("B", "b")

    assert [p.id for p in store.list_prompts()] == [b.id, a.id]


def test_concurrent_activations_leave_one_winner():
    store = PromptStore()
    threads = [
        threading.Thread(target=store.set_active_prompt, args=(f"prompt {i}",)) for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    active = store.get_active_prompt()
    assert active.content.startswith("prompt ")
    assert active.version == 21


def test_active_prompt_persists_through_backing_store():
    active_store = InMemoryKeyValueStore()
    PromptStore(active_store=active_store).set_active_prompt("persisted")

    assert PromptStore(active_store=active_store).get_active_prompt().content == "persisted"


def test_activating_over_saved_prompt_updates_its_history_record():
    store = PromptStore()
    saved = store.save_prompt("v1", "first content", is_active=True)

    active = store.set_active_prompt("second content")

    assert active.id == saved.id
    history = {p.id: p for p in store.list_prompts()}
    assert history[saved.id].content == "second content"
    assert history[saved.id].version == active.version
    assert [p for p in history.values() if p.is_active] == [history[saved.id]]
