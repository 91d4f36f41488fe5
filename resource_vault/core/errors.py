"""Exceptions raised by the resource vault core."""

from __future__ import annotations


class ResourceVaultError(Exception):
    """Base class for every error raised by this package."""


class StoreError(ResourceVaultError):
    """Backing-medium failure underneath a persistent store."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f'Store key "{key}": {reason}')
        self.key = key
        self.reason = reason


class StoreReadError(StoreError):
    """Raised by a backend when stored content cannot be read."""


class StoreWriteError(StoreError):
    """Raised by a backend when a value cannot be written or removed."""


class ResourceImportError(ResourceVaultError):
    """Import text was rejected; the collection was not touched."""


class EmptyImport(ResourceImportError):
    def __init__(self) -> None:
        super().__init__("Paste JSON content or choose a file to import.")


class InvalidImportJSON(ResourceImportError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Import is not valid JSON: {detail}")
        self.detail = detail


class InvalidImportShape(ResourceImportError):
    def __init__(self, found: str) -> None:
        super().__init__(
            f"Import JSON must be an array of resource objects, got {found}."
        )
        self.found = found


class InvalidRecord(ResourceImportError):
    """One imported element failed normalisation.

    ``position`` is 1-based so it can be shown to the user as-is.
    """

    def __init__(self, position: int, reason: str) -> None:
        super().__init__(f"Item {position}: {reason}")
        self.position = position
        self.reason = reason


class ResourceNotFound(ResourceVaultError):
    """Raised by the CLI and HTTP surfaces for an unknown resource id."""

    def __init__(self, resource_id: str) -> None:
        super().__init__(f"No resource matches id {resource_id}")
        self.resource_id = resource_id
