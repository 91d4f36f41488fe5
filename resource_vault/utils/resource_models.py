"""Shared resource data models and helpers."""

from __future__ import annotations

import math
import numbers
import random
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator


ResourceCategory = Literal["intel", "method", "tutorial", "tool", "file", "idea"]
ResourceStatus = Literal["new", "in-review", "verified", "archived"]
Theme = Literal["light", "dark"]

CATEGORIES: Tuple[str, ...] = get_args(ResourceCategory)
STATUSES: Tuple[str, ...] = get_args(ResourceStatus)
THEMES: Tuple[str, ...] = get_args(Theme)

ALL = "all"

# Canonical JSON key order for a stored or exported record.
RECORD_KEYS = (
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
    "notes",
    "source",
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render an instant as ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string to an aware datetime, or None if it is not one."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_resource_id() -> str:
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        # os.urandom has no entropy source on this platform
        millis = int(time.time() * 1000)
        return f"res-{millis}-{random.getrandbits(32):08x}"


def normalise_string_list(values: Optional[Iterable[Any]]) -> List[str]:
    if not values:
        return []
    normalised: List[str] = []
    for value in values:
        text = ("" if value is None else str(value)).strip()
        if text:
            normalised.append(text)
    return normalised


def is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def dedupe_tags(values: Optional[Iterable[Any]]) -> List[str]:
    """Trim, drop blanks and collapse repeats while keeping first-seen order."""
    seen: set[str] = set()
    ordered: List[str] = []
    for tag in normalise_string_list(values):
        if tag in seen:
            continue
        seen.add(tag)
        ordered.append(tag)
    return ordered


@dataclass(slots=True)
class ResourceRecord:
    """Representation of one saved resource."""

    id: str
    title: str
    description: str
    type: str
    status: str
    created_at: str
    tags: List[str] = field(default_factory=list)
    url: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None
    rating: Optional[float] = None
    pinned: bool = False

    @property
    def created_instant(self) -> Optional[datetime]:
        return parse_timestamp(self.created_at)

    def to_dict(self, *, omit_empty: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "type": self.type,
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "status": self.status,
            "rating": self.rating,
            "pinned": self.pinned,
            "notes": self.notes,
            "source": self.source,
        }
        if omit_empty:
            return {key: value for key, value in data.items() if value is not None}
        return data

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ResourceRecord":
        """Decode a stored record.

        Required fields of the wrong type raise ``TypeError``; wrongly typed
        optional fields are dropped to their defaults.
        """
        for key in ("id", "title", "description", "createdAt"):
            if not isinstance(payload[key], str):
                raise TypeError(f"{key} must be a string")
        tags = payload.get("tags")
        rating = payload.get("rating")
        pinned = payload.get("pinned")
        return cls(
            id=payload["id"],
            title=payload["title"],
            description=payload["description"],
            type=payload.get("type") if payload.get("type") in CATEGORIES else "intel",
            status=payload.get("status") if payload.get("status") in STATUSES else "new",
            created_at=payload["createdAt"],
            tags=normalise_string_list(tags) if isinstance(tags, list) else [],
            url=optional_text(payload.get("url")),
            notes=optional_text(payload.get("notes")),
            source=optional_text(payload.get("source")),
            rating=rating if is_finite_number(rating) else None,
            pinned=pinned if isinstance(pinned, bool) else False,
        )


class ResourcePatch(BaseModel):
    """Fields an edit may change. Only explicitly set fields are merged."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ResourceCategory] = None
    status: Optional[ResourceStatus] = None
    tags: Optional[List[str]] = None
    url: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5, allow_inf_nan=False)

    @field_validator("title", "description")
    @classmethod
    def _require_text(cls, value: Optional[str]) -> str:
        text = (value or "").strip()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("type", "status")
    @classmethod
    def _require_choice(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("url", "source")
    @classmethod
    def _strip_optional(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("notes")
    @classmethod
    def _blank_notes(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: Optional[List[str]]) -> List[str]:
        return dedupe_tags(value)

    @field_validator("rating")
    @classmethod
    def _half_steps(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value * 2 != int(value * 2):
            raise ValueError("must be a multiple of 0.5")
        return value

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ResourcePayload(ResourcePatch):
    """Data required to create a resource, or to replace its editable fields."""

    title: str
    description: str
    type: ResourceCategory = "intel"
    status: ResourceStatus = "new"
    tags: List[str] = Field(default_factory=list)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump()


@dataclass(frozen=True)
class FilterSpec:
    """Search text plus type/status/tag/pinned constraints defining a view."""

    search_term: str = ""
    type: str = ALL
    status: str = ALL
    tags: Tuple[str, ...] = ()
    show_pinned_only: bool = False

    def __post_init__(self) -> None:
        if self.type != ALL and self.type not in CATEGORIES:
            raise ValueError(f"Unknown resource type: {self.type}")
        if self.status != ALL and self.status not in STATUSES:
            raise ValueError(f"Unknown resource status: {self.status}")
        object.__setattr__(self, "tags", tuple(self.tags))


DEFAULT_FILTERS = FilterSpec()
