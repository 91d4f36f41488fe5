"""Turn untrusted imported items into canonical resource records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterable, List, TypeVar, Union

from resource_vault.core.errors import InvalidRecord
from resource_vault.utils.resource_models import (
    CATEGORIES,
    STATUSES,
    ResourceRecord,
    format_timestamp,
    is_finite_number,
    new_resource_id,
    normalise_string_list,
    optional_text,
    parse_timestamp,
    utc_now,
)


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: InvalidRecord


NormalizeResult = Union[Ok[ResourceRecord], Err]


def normalize_resource(raw: Any, index: int) -> NormalizeResult:
    """Normalise the ``index``-th (0-based) element of an imported array."""
    position = index + 1
    if not isinstance(raw, dict):
        return Err(InvalidRecord(position, "is not a valid object"))

    title = _text(raw.get("title"))
    description = _text(raw.get("description"))
    if not title or not description:
        return Err(InvalidRecord(position, "is missing a title or description"))

    raw_type = raw.get("type")
    raw_status = raw.get("status")
    rating = raw.get("rating")
    pinned = raw.get("pinned")
    raw_id = raw.get("id")

    return Ok(
        ResourceRecord(
            id=raw_id if isinstance(raw_id, str) else new_resource_id(),
            title=title,
            description=description,
            type=raw_type if raw_type in CATEGORIES else "intel",
            status=raw_status if raw_status in STATUSES else "new",
            created_at=_created_at(raw.get("createdAt")),
            tags=_coerce_tags(raw.get("tags")),
            url=optional_text(raw.get("url")),
            notes=optional_text(raw.get("notes")),
            source=optional_text(raw.get("source")),
            rating=rating if is_finite_number(rating) else None,
            pinned=pinned if isinstance(pinned, bool) else False,
        )
    )


def normalize_all(items: Iterable[Any]) -> List[ResourceRecord]:
    """Normalise every item, raising the first failure (no partial result)."""
    records: List[ResourceRecord] = []
    for index, item in enumerate(items):
        result = normalize_resource(item, index)
        if isinstance(result, Err):
            raise result.error
        records.append(result.value)
    return records


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _coerce_tags(value: Any) -> List[str]:
    if isinstance(value, list):
        return normalise_string_list(value)
    if isinstance(value, str):
        return normalise_string_list(value.split(","))
    return []


def _created_at(value: Any) -> str:
    parsed = parse_timestamp(value) if isinstance(value, str) else None
    return format_timestamp(parsed or utc_now())
