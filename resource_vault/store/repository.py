"""In-memory resource collection kept in step with a persistent store."""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Union

from resource_vault.core.config import Settings, settings as default_settings
from resource_vault.store.backend import JsonFileBackend, StorageBackend
from resource_vault.store.persistent import PersistentStore, json_serializer
from resource_vault.utils.resource_models import (
    STATUSES,
    ResourcePatch,
    ResourcePayload,
    ResourceRecord,
    format_timestamp,
    new_resource_id,
    utc_now,
)


logger = logging.getLogger(__name__)


def serialize_collection(records: List[ResourceRecord]) -> str:
    return json_serializer([record.to_dict() for record in records])


def deserialize_collection(text: str) -> List[ResourceRecord]:
    raw = json.loads(text)
    if not isinstance(raw, list):
        raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
    return [ResourceRecord.from_dict(item) for item in raw]


def collection_store(
    key: str, *, backend: StorageBackend
) -> PersistentStore[List[ResourceRecord]]:
    return PersistentStore(
        key,
        [],
        backend=backend,
        serializer=serialize_collection,
        deserializer=deserialize_collection,
    )


class ResourceRepository:
    """Ordered resource collection backed 1:1 by a persistent store.

    Each command writes the new collection to the store before it returns
    and hands back a snapshot of the collection.
    """

    def __init__(
        self,
        store: PersistentStore[List[ResourceRecord]],
        *,
        clock_fn: Callable[[], Any] = utc_now,
        id_factory: Callable[[], str] = new_resource_id,
    ) -> None:
        self._store = store
        self._records: List[ResourceRecord] = list(store.value)
        self._clock = clock_fn
        self._new_id = id_factory

    @classmethod
    def open(
        cls,
        settings: Optional[Settings] = None,
        *,
        backend: Optional[StorageBackend] = None,
    ) -> "ResourceRepository":
        config = settings or default_settings
        medium = backend or JsonFileBackend(config.storage_dir)
        return cls(collection_store(config.collection_key, backend=medium))

    # ----- Queries ----------------------------------------------------
    @property
    def records(self) -> List[ResourceRecord]:
        return list(self._records)

    def get(self, resource_id: str) -> Optional[ResourceRecord]:
        return next((item for item in self._records if item.id == resource_id), None)

    def __contains__(self, resource_id: object) -> bool:
        return any(item.id == resource_id for item in self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ResourceRecord]:
        return iter(self.records)

    def reload(self) -> List[ResourceRecord]:
        self._records = list(self._store.read())
        return self.records

    # ----- Commands ---------------------------------------------------
    def create(self, payload: ResourcePayload) -> List[ResourceRecord]:
        fields = payload.changes()
        record = ResourceRecord(
            id=self._new_id(),
            created_at=format_timestamp(self._clock()),
            pinned=False,
            **fields,
        )
        logger.debug("Creating resource %s", record.id)
        return self._commit([record, *self._records])

    def update(
        self, resource_id: str, patch: Union[ResourcePayload, ResourcePatch]
    ) -> List[ResourceRecord]:
        return self._replace_fields(resource_id, patch.changes())

    def set_status(self, resource_id: str, status: str) -> List[ResourceRecord]:
        if status not in STATUSES:
            raise ValueError(f"Unknown resource status: {status}")
        return self._replace_fields(resource_id, {"status": status})

    def set_pinned(self, resource_id: str, pinned: bool) -> List[ResourceRecord]:
        return self._replace_fields(resource_id, {"pinned": bool(pinned)})

    def toggle_pinned(self, resource_id: str) -> List[ResourceRecord]:
        current = self.get(resource_id)
        if current is None:
            return self.records
        return self._replace_fields(resource_id, {"pinned": not current.pinned})

    def delete(self, resource_id: str) -> List[ResourceRecord]:
        remaining = [item for item in self._records if item.id != resource_id]
        if len(remaining) == len(self._records):
            return self.records
        logger.debug("Deleting resource %s", resource_id)
        return self._commit(remaining)

    def replace_all(self, records: Sequence[ResourceRecord]) -> List[ResourceRecord]:
        logger.info("Replacing collection with %s resources", len(records))
        return self._commit(list(records))

    # ----- Internal helpers ------------------------------------------
    def _replace_fields(
        self, resource_id: str, fields: Dict[str, Any]
    ) -> List[ResourceRecord]:
        if resource_id not in self:
            return self.records
        updated = [
            dataclasses.replace(item, **fields) if item.id == resource_id else item
            for item in self._records
        ]
        return self._commit(updated)

    def _commit(self, records: List[ResourceRecord]) -> List[ResourceRecord]:
        self._records = records
        self._store.write(list(records))
        return self.records
