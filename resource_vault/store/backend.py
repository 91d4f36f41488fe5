"""Raw key -> text storage media underneath a persistent store."""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from resource_vault.core.errors import StoreReadError, StoreWriteError


_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_key(key: str) -> str:
    if not key or len(key) > 128 or not _KEY_RE.match(key):
        raise ValueError(f"Invalid store key: {key!r}")
    return key


class StorageBackend:
    """Key addressed text storage, modelled on browser localStorage."""

    def get_item(self, key: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError

    def set_item(self, key: str, text: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def remove_item(self, key: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class MemoryBackend(StorageBackend):
    """Dict-backed medium for tests and throwaway sessions."""

    def __init__(self, items: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, text: str) -> None:
        self._items[key] = text

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileBackend(StorageBackend):
    """One UTF-8 ``<key>.json`` file per key inside ``storage_dir``."""

    def __init__(self, storage_dir: Union[str, Path]) -> None:
        self._storage_dir = Path(storage_dir).expanduser()

    def path_for(self, key: str) -> Path:
        return self._storage_dir / f"{validate_key(key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreReadError(key, str(exc)) from exc

    def set_item(self, key: str, text: str) -> None:
        path = self.path_for(key)
        try:
            self._storage_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key}.", suffix=".tmp", dir=self._storage_dir
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StoreWriteError(key, str(exc)) from exc

    def remove_item(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StoreWriteError(key, str(exc)) from exc
