"""Page result domain entity."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PageResult:
    """One page of documents plus the total number of matches.

    An empty ``items`` list with ``total_count == 0`` is a valid result,
    not an error.
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    total_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"items": self.items, "total_count": self.total_count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PageResult":
        return cls(items=list(data["items"]), total_count=int(data["total_count"]))
