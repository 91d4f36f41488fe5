from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from resource_vault.core.config import Settings
from resource_vault.query.engine import view
from resource_vault.store.backend import JsonFileBackend, MemoryBackend
from resource_vault.store.repository import ResourceRepository, collection_store
from resource_vault.utils.resource_models import ResourcePatch, ResourcePayload


class Clock:
    def __init__(self, start: datetime) -> None:
        self._current = start

    def tick(self, seconds: int) -> None:
        self._current += timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self._current


def _payload(title: str = "A", **fields) -> ResourcePayload:
    fields.setdefault("description", "d")
    return ResourcePayload(title=title, **fields)


def _repository(backend=None, clock=None) -> ResourceRepository:
    store = collection_store("resource-hub-items", backend=backend or MemoryBackend())
    if clock is None:
        return ResourceRepository(store)
    return ResourceRepository(store, clock_fn=clock)


def test_create_prepends_with_fresh_id_and_timestamp() -> None:
    clock = Clock(datetime(2024, 1, 1, tzinfo=timezone.utc))
    repo = _repository(clock=clock)

    repo.create(_payload("first"))
    clock.tick(60)
    snapshot = repo.create(_payload("second", type="tool", tags=["x"]))

    assert [item.title for item in snapshot] == ["second", "first"]
    newest = snapshot[0]
    assert newest.created_at == "2024-01-01T00:01:00.000Z"
    assert newest.pinned is False
    assert newest.type == "tool"
    assert newest.tags == ["x"]


def test_created_ids_are_pairwise_distinct() -> None:
    repo = _repository()
    for index in range(50):
        repo.create(_payload(f"item {index}"))

    assert len({item.id for item in repo}) == 50


def test_every_command_is_flushed_before_returning() -> None:
    backend = MemoryBackend()
    repo = _repository(backend)

    def stored_titles():
        return [item["title"] for item in json.loads(backend.get_item("resource-hub-items"))]

    record = repo.create(_payload("kept"))[0]
    assert stored_titles() == ["kept"]

    repo.update(record.id, ResourcePatch(title="renamed"))
    assert stored_titles() == ["renamed"]

    repo.set_status(record.id, "verified")
    repo.set_pinned(record.id, True)
    stored = json.loads(backend.get_item("resource-hub-items"))[0]
    assert stored["status"] == "verified"
    assert stored["pinned"] is True

    repo.delete(record.id)
    assert stored_titles() == []


def test_update_merges_only_patched_fields() -> None:
    repo = _repository()
    original = repo.create(_payload("A", url="https://a.example", rating=4.0))[0]

    repo.update(original.id, ResourcePatch(status="in-review"))
    updated = repo.get(original.id)

    assert updated.status == "in-review"
    assert updated.url == "https://a.example"
    assert updated.rating == 4.0
    assert updated.created_at == original.created_at
    assert updated.id == original.id


def test_full_payload_update_clears_omitted_optionals() -> None:
    repo = _repository()
    original = repo.create(_payload("A", url="https://a.example", notes="n"))[0]
    repo.set_pinned(original.id, True)

    repo.update(original.id, _payload("A2", description="d2"))
    updated = repo.get(original.id)

    assert updated.title == "A2"
    assert updated.url is None
    assert updated.notes is None
    assert updated.pinned is True


def test_unknown_ids_are_no_ops() -> None:
    backend = MemoryBackend()
    repo = _repository(backend)
    repo.create(_payload())
    before = backend.get_item("resource-hub-items")

    assert len(repo.update("missing", ResourcePatch(title="x"))) == 1
    assert len(repo.set_pinned("missing", True)) == 1
    assert len(repo.toggle_pinned("missing")) == 1
    assert len(repo.delete("missing")) == 1
    assert backend.get_item("resource-hub-items") == before


def test_toggle_pinned_flips_flag() -> None:
    repo = _repository()
    record = repo.create(_payload())[0]

    assert repo.toggle_pinned(record.id)[0].pinned is True
    assert repo.toggle_pinned(record.id)[0].pinned is False


def test_set_status_rejects_unknown_status() -> None:
    repo = _repository()
    record = repo.create(_payload())[0]

    with pytest.raises(ValueError):
        repo.set_status(record.id, "done")


def test_replace_all_substitutes_collection() -> None:
    source = _repository()
    source.create(_payload("one"))
    source.create(_payload("two"))
    target = _repository()
    target.create(_payload("old"))

    snapshot = target.replace_all(source.records)

    assert [item.title for item in snapshot] == ["two", "one"]
    assert target.records == source.records


def test_snapshots_are_independent_of_later_commands() -> None:
    repo = _repository()
    snapshot = repo.create(_payload("A"))
    repo.create(_payload("B"))

    assert [item.title for item in snapshot] == ["A"]


def test_round_trip_through_file_store(tmp_path) -> None:
    repo = _repository(JsonFileBackend(tmp_path))
    record = repo.create(_payload("A", tags=["x", "y"], rating=2.5, source="blog"))[0]
    repo.set_pinned(record.id, True)

    reopened = _repository(JsonFileBackend(tmp_path))

    assert reopened.records == repo.records


def test_open_uses_configured_key(tmp_path) -> None:
    config = Settings(storage_dir=tmp_path, collection_key="my-items")
    repo = ResourceRepository.open(config)
    repo.create(_payload())

    assert (tmp_path / "my-items.json").exists()
    assert len(ResourceRepository.open(config)) == 1


def test_corrupt_collection_loads_empty(tmp_path) -> None:
    (tmp_path / "resource-hub-items.json").write_text('{"not": "a list"}', encoding="utf-8")

    repo = _repository(JsonFileBackend(tmp_path))

    assert repo.records == []


def test_reload_rereads_store(tmp_path) -> None:
    backend = JsonFileBackend(tmp_path)
    first = _repository(backend)
    second = _repository(backend)
    first.create(_payload())

    assert len(second) == 0
    assert len(second.reload()) == 1


@pytest.mark.parametrize("field", ["type", "status"])
def test_patch_cannot_null_type_or_status(field) -> None:
    repo = _repository()
    record = repo.create(_payload(type="tool", status="verified"))[0]

    with pytest.raises(ValidationError):
        ResourcePatch(**{field: None})

    assert repo.get(record.id).type == "tool"
    assert repo.get(record.id).status == "verified"


def test_wrongly_typed_stored_fields_are_coerced_on_load() -> None:
    backend = MemoryBackend()
    stored = [
        {
            "id": "a",
            "title": "Stored",
            "description": "d",
            "createdAt": "2024-01-01T00:00:00.000Z",
            "type": None,
            "status": "bogus",
            "tags": "abc",
            "rating": "4",
            "pinned": "false",
            "url": 5,
        },
        {
            "id": "b",
            "title": "Other",
            "description": "d",
            "createdAt": "2024-01-02T00:00:00.000Z",
            "tags": ["x", "  "],
            "rating": 3.5,
            "pinned": True,
        },
    ]
    backend.set_item("resource-hub-items", json.dumps(stored))

    repo = _repository(backend)
    first = repo.get("a")

    assert first.type == "intel"
    assert first.status == "new"
    assert first.tags == []
    assert first.rating is None
    assert first.pinned is False
    assert first.url is None
    assert repo.get("b").tags == ["x"]
    assert [item.id for item in view(repo.records)] == ["b", "a"]


def test_stored_record_missing_required_text_loads_empty() -> None:
    backend = MemoryBackend()
    backend.set_item(
        "resource-hub-items",
        json.dumps([{"id": 1, "title": "t", "description": "d", "createdAt": "x"}]),
    )

    assert _repository(backend).records == []
