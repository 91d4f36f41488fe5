"""Durable key -> value binding with fallback to a default value."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from resource_vault.core.errors import StoreReadError, StoreWriteError
from resource_vault.store.backend import StorageBackend, validate_key


logger = logging.getLogger(__name__)

T = TypeVar("T")


def json_serializer(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def json_deserializer(text: str) -> Any:
    return json.loads(text)


class PersistentStore(Generic[T]):
    """Binds one store key to a value, reading and writing through a backend.

    Neither ``read`` nor ``write`` ever raise: backend and decode failures are
    logged as warnings. After a failed write the in-memory ``value`` is still
    what the caller last wrote; after a failed read it is ``default``.
    """

    def __init__(
        self,
        key: str,
        default: T,
        *,
        backend: StorageBackend,
        serializer: Optional[Callable[[T], str]] = None,
        deserializer: Optional[Callable[[str], T]] = None,
    ) -> None:
        self._key = validate_key(key)
        self._default = default
        self._backend = backend
        self._serialize = serializer or json_serializer
        self._deserialize = deserializer or json_deserializer
        self._value: T = self.read()

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> T:
        return self._value

    def read(self) -> T:
        try:
            text = self._backend.get_item(self._key)
        except StoreReadError as exc:
            logger.warning("Unable to read store key %s: %s", self._key, exc.reason)
            return self._reset()

        if text is None or not text.strip():
            return self._reset()

        try:
            self._value = self._deserialize(text)
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Unable to decode store key %s: %s", self._key, exc)
            return self._reset()
        return self._value

    def write(self, value: T) -> None:
        self._value = value
        try:
            text = self._serialize(value)
        except (ValueError, TypeError) as exc:
            logger.warning("Unable to encode store key %s: %s", self._key, exc)
            return
        try:
            self._backend.set_item(self._key, text)
        except StoreWriteError as exc:
            logger.warning("Unable to write store key %s: %s", self._key, exc.reason)

    def remove(self) -> None:
        self._reset()
        try:
            self._backend.remove_item(self._key)
        except StoreWriteError as exc:
            logger.warning("Unable to remove store key %s: %s", self._key, exc.reason)

    def rekey(self, key: str) -> T:
        self._key = validate_key(key)
        return self.read()

    def _reset(self) -> T:
        self._value = copy.deepcopy(self._default)
        return self._value
