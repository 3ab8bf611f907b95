"""Compiled query descriptor and its canonical serialization.

The canonical form is compact JSON with sorted keys. It doubles as the
variable part of a cache key, so two equal descriptors must always produce
the same bytes and two different descriptors never may.
"""

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from storefront_query.errors import ValidationError

FilterValue = int | float | str

RELEVANCE = "relevance"

_CANONICAL_VERSION = 1

# Signed 64-bit range the store can encode
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class Operator(str, Enum):
    """Comparison operators a predicate may carry."""

    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"

    @property
    def is_range(self) -> bool:
        return self is not Operator.EQ


# Allow-listed comparison suffixes in their emission order
RANGE_OPERATORS: tuple[Operator, ...] = (Operator.GT, Operator.GTE, Operator.LT, Operator.LTE)


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Predicate:
    """A single field/operator/value filter condition.

    Attributes:
        field: Document field name
        operator: Comparison operator
        value: Typed comparison value
    """

    field: str
    operator: Operator
    value: FilterValue


@dataclass(frozen=True)
class SortKey:
    """A sort entry; the field ``relevance`` means text-search score."""

    field: str
    direction: SortDirection

    @property
    def is_relevance(self) -> bool:
        return self.field == RELEVANCE


@dataclass(frozen=True)
class QueryDescriptor:
    """Canonical, immutable output of query compilation.

    Attributes:
        text_search: Keyword for free-text search, None when absent
        predicates: Filter conditions in canonical order
        sort: Sort entries, relevance first when text_search is set
        page: 1-based page number
        page_size: Number of documents per page
    """

    text_search: str | None = None
    predicates: tuple[Predicate, ...] = ()
    sort: tuple[SortKey, ...] = ()
    page: int = 1
    page_size: int = 8

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError(f"page must be >= 1, got {self.page}", "page")
        if self.page_size < 1:
            raise ValidationError(f"page_size must be >= 1, got {self.page_size}", "limit")
        if self.skip > INT64_MAX:
            raise ValidationError(f"page {self.page} is out of range", "page")

    @property
    def skip(self) -> int:
        """Number of documents to skip before the current page."""
        return self.page_size * (self.page - 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "v": _CANONICAL_VERSION,
            "q": self.text_search,
            "p": [[p.field, p.operator.value, p.value] for p in self.predicates],
            "s": [[s.field, s.direction.value] for s in self.sort],
            "page": self.page,
            "size": self.page_size,
        }

    def to_canonical(self) -> str:
        """Serialize to the canonical JSON string."""
        return json.dumps(
            self.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )

    @classmethod
    def from_canonical(cls, text: str) -> "QueryDescriptor":
        """Parse a canonical string back into a descriptor.

        Raises:
            ValidationError: If the text is not a well-formed canonical descriptor
        """
        try:
            data = json.loads(text)
        except ValueError as e:
            raise ValidationError(f"Invalid canonical descriptor: {e}") from e

        if not isinstance(data, dict) or data.get("v") != _CANONICAL_VERSION:
            raise ValidationError("Unsupported canonical descriptor version")

        try:
            text_search = data["q"]
            if text_search is not None and not isinstance(text_search, str):
                raise TypeError("q must be a string or null")

            predicates = []
            for field, op, value in data["p"]:
                if not isinstance(field, str) or isinstance(value, bool) or not isinstance(value, (int, float, str)):
                    raise TypeError(f"bad predicate {field!r}")
                if isinstance(value, int) and not INT64_MIN <= value <= INT64_MAX:
                    raise ValueError(f"predicate value for {field!r} exceeds 64 bits")
                predicates.append(Predicate(field, Operator(op), value))

            sort = []
            for field, direction in data["s"]:
                if not isinstance(field, str):
                    raise TypeError(f"bad sort field {field!r}")
                sort.append(SortKey(field, SortDirection(direction)))

            page, page_size = data["page"], data["size"]
            if not isinstance(page, int) or not isinstance(page_size, int):
                raise TypeError("page and size must be integers")
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid canonical descriptor: {e}") from e

        return cls(
            text_search=text_search,
            predicates=tuple(predicates),
            sort=tuple(sort),
            page=page,
            page_size=page_size,
        )


def normalize_number(value: float | int) -> int | float:
    """Collapse integral floats to int so 20 and 20.0 serialize alike.

    Integral floats outside the 64-bit range stay floats.
    """
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("number must be finite")
        if value.is_integer() and INT64_MIN <= value <= INT64_MAX:
            return int(value)
    return value


def cache_key(namespace: str, descriptor: QueryDescriptor) -> str:
    """Derive the cache key ``<namespace>:<canonical descriptor>``."""
    if not namespace or ":" in namespace:
        raise ValueError(f"namespace must be non-empty and must not contain ':', got {namespace!r}")
    return f"{namespace}:{descriptor.to_canonical()}"


def parse_cache_key(key: str) -> tuple[str, QueryDescriptor]:
    """Split a cache key into its namespace and descriptor."""
    namespace, sep, canonical = key.partition(":")
    if not sep or not namespace:
        raise ValidationError(f"Invalid cache key {key!r}")
    return namespace, QueryDescriptor.from_canonical(canonical)
