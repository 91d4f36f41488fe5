from __future__ import annotations

import json

import pytest

from resource_vault.core.errors import (
    EmptyImport,
    InvalidImportJSON,
    InvalidImportShape,
    InvalidRecord,
)
from resource_vault.store.backend import MemoryBackend
from resource_vault.store.repository import ResourceRepository, collection_store
from resource_vault.transfer import export_resources, import_resources, parse_import
from resource_vault.utils.resource_models import DEFAULT_FILTERS, ResourcePayload


def _repository() -> ResourceRepository:
    repo = ResourceRepository(collection_store("items", backend=MemoryBackend()))
    repo.create(ResourcePayload(title="Existing", description="keep me"))
    return repo


def _items(count: int):
    return [
        {"id": f"r{index}", "title": f"Item {index}", "description": "d"}
        for index in range(1, count + 1)
    ]


def test_import_replaces_collection_and_resets_filters() -> None:
    repo = _repository()

    result = import_resources(repo, json.dumps(_items(3)))

    assert result.count == 3
    assert result.filters == DEFAULT_FILTERS
    assert [item.id for item in repo.records] == ["r1", "r2", "r3"]


def test_invalid_third_item_aborts_whole_import() -> None:
    repo = _repository()
    before = repo.records
    items = _items(5)
    items[2]["title"] = ""

    with pytest.raises(InvalidRecord) as excinfo:
        import_resources(repo, json.dumps(items))

    assert excinfo.value.position == 3
    assert "Item 3" in str(excinfo.value)
    assert repo.records == before


def test_object_instead_of_array_is_rejected() -> None:
    repo = _repository()
    before = repo.records

    with pytest.raises(InvalidImportShape):
        import_resources(repo, "{}")

    assert repo.records == before


@pytest.mark.parametrize("text", ["", "   \n"])
def test_blank_text_is_rejected(text) -> None:
    with pytest.raises(EmptyImport):
        parse_import(text)


@pytest.mark.parametrize(
    "text",
    [
        "[{",
        '[{"title": "t", "description": "d", "rating": NaN}]',
        '[{"title": "t", "description": "d", "rating": Infinity}]',
        '[{"title": "t", "description": "d", "rating": -Infinity}]',
    ],
)
def test_malformed_json_is_rejected(text) -> None:
    with pytest.raises(InvalidImportJSON):
        parse_import(text)


def test_empty_array_clears_collection() -> None:
    repo = _repository()
    assert import_resources(repo, "[]").count == 0
    assert repo.records == []


def test_export_is_indented_and_omits_absent_fields() -> None:
    repo = _repository()
    repo.create(
        ResourcePayload(title="Full", description="d", url="https://x.example", rating=3.5)
    )

    text = export_resources(repo.records)
    payload = json.loads(text)

    assert text.startswith("[\n  {")
    assert payload[0]["title"] == "Full"
    assert payload[0]["url"] == "https://x.example"
    assert "notes" not in payload[0]
    assert list(payload[0]) == [
        "id",
        "title",
        "description",
        "url",
        "type",
        "tags",
        "createdAt",
        "status",
        "rating",
        "pinned",
    ]


def test_export_then_import_restores_collection() -> None:
    repo = _repository()
    repo.create(ResourcePayload(title="中文标题", description="说明", tags=["情报"]))
    repo.set_pinned(repo.records[0].id, True)
    exported = export_resources(repo.records)

    other = ResourceRepository(collection_store("items", backend=MemoryBackend()))
    import_resources(other, exported)

    assert other.records == repo.records
    assert "中文标题" in exported


def test_non_finite_rating_import_leaves_collection() -> None:
    repo = _repository()

    with pytest.raises(InvalidImportJSON):
        import_resources(repo, '[{"title": "t", "description": "d", "rating": NaN}]')

    assert [item.title for item in repo.records] == ["Existing"]
