"""JSON import and export of the whole resource collection."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Iterable, List

from resource_vault.core.errors import EmptyImport, InvalidImportJSON, InvalidImportShape
from resource_vault.store.normalizer import normalize_all
from resource_vault.store.repository import ResourceRepository
from resource_vault.utils.resource_models import (
    DEFAULT_FILTERS,
    FilterSpec,
    ResourceRecord,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    records: List[ResourceRecord]
    filters: FilterSpec = DEFAULT_FILTERS

    @property
    def count(self) -> int:
        return len(self.records)


def parse_import(text: str) -> List[ResourceRecord]:
    if not text or not text.strip():
        raise EmptyImport()
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise InvalidImportJSON(str(exc)) from exc
    if not isinstance(parsed, list):
        raise InvalidImportShape(_json_kind(parsed))
    return normalize_all(parsed)


def import_resources(repository: ResourceRepository, text: str) -> ImportResult:
    """Replace the whole collection with the records in ``text``.

    Any error is raised before the repository is touched. On success the
    returned ``filters`` are the unconstrained filters callers should reset to.
    """
    records = parse_import(text)
    repository.replace_all(records)
    logger.info("Imported %s resources", len(records))
    return ImportResult(records=records)


def export_resources(collection: Iterable[ResourceRecord]) -> str:
    payload = [record.to_dict(omit_empty=True) for record in collection]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _reject_constant(name: str) -> float:
    # NaN, Infinity and -Infinity are not part of JSON
    raise ValueError(f"{name} is not valid JSON")


def _json_kind(value: object) -> str:
    if isinstance(value, dict):
        return "an object"
    if isinstance(value, str):
        return "a string"
    if isinstance(value, bool):
        return "a boolean"
    if isinstance(value, (int, float)):
        return "a number"
    if value is None:
        return "null"
    return type(value).__name__
