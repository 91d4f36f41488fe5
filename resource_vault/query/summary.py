from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable

from resource_vault.utils.resource_models import ResourceRecord


@dataclass(frozen=True)
class Summary:
    total: int = 0
    pinned_count: int = 0
    verified_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def summarize(collection: Iterable[ResourceRecord]) -> Summary:
    total = pinned = verified = 0
    for record in collection:
        total += 1
        if record.pinned:
            pinned += 1
        if record.status == "verified":
            verified += 1
    return Summary(total=total, pinned_count=pinned, verified_count=verified)
