"""Filtered, sorted views and tag counts derived from a resource collection.

Everything here is a pure function of its arguments: the same collection and
filters always produce the same ordered output.
"""

from __future__ import annotations

from collections import Counter
from functools import lru_cache
from typing import Iterable, List, Tuple

from pypinyin import Style, lazy_pinyin

from resource_vault.utils.resource_models import (
    ALL,
    DEFAULT_FILTERS,
    FilterSpec,
    ResourceRecord,
)


def matches(record: ResourceRecord, spec: FilterSpec) -> bool:
    if spec.type != ALL and record.type != spec.type:
        return False
    if spec.status != ALL and record.status != spec.status:
        return False
    if spec.show_pinned_only and not record.pinned:
        return False
    if spec.tags and not all(tag in record.tags for tag in spec.tags):
        return False

    search_term = spec.search_term.strip().lower()
    if not search_term:
        return True
    return search_term in search_haystack(record)


def search_haystack(record: ResourceRecord) -> str:
    parts = [record.title, record.description, " ".join(record.tags), record.source or ""]
    return " ".join(parts).lower()


def view(
    collection: Iterable[ResourceRecord], spec: FilterSpec = DEFAULT_FILTERS
) -> List[ResourceRecord]:
    return sorted((item for item in collection if matches(item, spec)), key=sort_key)


def sort_key(record: ResourceRecord) -> Tuple:
    """Pinned first, then rating and creation time descending, then title."""
    instant = record.created_instant
    return (
        0 if record.pinned else 1,
        -(record.rating or 0),
        -(instant.timestamp() if instant else 0.0),
        collation_key(record.title),
        record.id,
    )


def collation_key(text: str) -> Tuple[Tuple[int, str, str], ...]:
    """Chinese-locale ordering: Han by pinyin reading after everything else."""
    return tuple(_char_key(char) for char in text)


@lru_cache(maxsize=4096)
def _char_key(char: str) -> Tuple[int, str, str]:
    if _is_han(char):
        return (1, lazy_pinyin(char, style=Style.TONE3)[0], char)
    return (0, char.casefold(), char)


def _is_han(char: str) -> bool:
    code = ord(char)
    return (
        0x4E00 <= code <= 0x9FFF
        or 0x3400 <= code <= 0x4DBF
        or 0xF900 <= code <= 0xFAFF
        or 0x20000 <= code <= 0x2EBEF
    )


def tag_frequency(collection: Iterable[ResourceRecord]) -> List[Tuple[str, int]]:
    """Tag counts, most used first; equal counts keep first-seen order."""
    counts: Counter[str] = Counter()
    for record in collection:
        counts.update(record.tags)
    # Counter preserves insertion order and sorted() is stable
    return sorted(counts.items(), key=lambda item: -item[1])


