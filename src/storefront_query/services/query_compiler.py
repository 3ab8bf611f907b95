"""Compile untrusted filter parameters into a QueryDescriptor.

Translation is an explicit allow-list: field names must look like plain
identifiers (and appear in the field schema when one is configured), and
comparison suffixes must be one of ``gt``, ``gte``, ``lt``, ``lte``.
Anything else is rejected with ValidationError; nothing is dropped or passed
through. Compilation is pure and all-or-nothing.
"""

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from storefront_query.entities import (
    INT64_MAX,
    INT64_MIN,
    RANGE_OPERATORS,
    RELEVANCE,
    FilterValue,
    Operator,
    Predicate,
    QueryDescriptor,
    SortDirection,
    SortKey,
    normalize_number,
)
from storefront_query.errors import ValidationError

KEYWORD = "keyword"
PAGE = "page"
LIMIT = "limit"
RESERVED_KEYS = frozenset({KEYWORD, PAGE, LIMIT})

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_INTEGER = re.compile(r"^[+-]?\d+$")
_DECIMAL = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_INT64_DIGITS = len(str(INT64_MAX))

_SUFFIXES = {op.value: op for op in RANGE_OPERATORS}
_OPERATOR_RANK = {op: i for i, op in enumerate(RANGE_OPERATORS)}


class FieldKind(str, Enum):
    """Expected type of a filterable field."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"


# Filterable product fields
PRODUCT_FIELDS: dict[str, FieldKind] = {
    "name": FieldKind.STRING,
    "description": FieldKind.STRING,
    "category": FieldKind.STRING,
    "price": FieldKind.NUMBER,
    "ratings": FieldKind.NUMBER,
    "stock": FieldKind.INTEGER,
    "num_of_reviews": FieldKind.INTEGER,
}


def _scalar_text(value: Any, field: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValidationError(f"Parameter '{field}' must be a single value", field)


def _to_int64(text: str, field: str) -> int:
    """Convert an integer literal, rejecting anything outside 64 bits."""
    digits = text.lstrip("+-").lstrip("0")
    if len(digits) > _INT64_DIGITS:
        raise ValidationError(f"Parameter '{field}' is out of range", field)
    number = int(text)
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValidationError(f"Parameter '{field}' is out of range", field)
    return number


def parse_number(value: Any, field: str) -> int | float:
    """Parse a decimal literal into a normalized int or float."""
    text = _scalar_text(value, field).strip()
    if _INTEGER.match(text):
        return _to_int64(text, field)
    if not _DECIMAL.match(text):
        raise ValidationError(f"Parameter '{field}' must be a number, got {text!r}", field)
    try:
        return normalize_number(float(text))
    except ValueError as e:
        raise ValidationError(f"Parameter '{field}' must be a finite number", field) from e


def parse_positive_int(value: Any, field: str) -> int:
    """Parse a strictly positive integer (page numbers, limits)."""
    text = _scalar_text(value, field).strip()
    if not _INTEGER.match(text):
        raise ValidationError(f"Parameter '{field}' must be an integer, got {text!r}", field)
    number = _to_int64(text, field)
    if number < 1:
        raise ValidationError(f"Parameter '{field}' must be positive, got {number}", field)
    return number


class QueryCompiler:
    """Stateless translator from FilterRequest mappings to QueryDescriptors.

    Safe to share between threads: configuration is fixed at construction
    and ``compile`` keeps no state.

    Example:
        ```python
        compiler = QueryCompiler(fields=PRODUCT_FIELDS, default_page_size=8)
        descriptor = compiler.compile({"price": {"gte": "20"}, "page": "2"})
        descriptor.skip  # 8
        ```
    """

    def __init__(
        self,
        fields: Mapping[str, FieldKind] | None = None,
        default_page_size: int = 8,
    ) -> None:
        """Initialize the compiler.

        Args:
            fields: Allow-listed field names and their kinds. If None, any
                identifier-like field is accepted and equality values stay text.
            default_page_size: Page size used when compile() is not given one.
        """
        self._fields = dict(fields) if fields is not None else None
        self._default_page_size = self._check_page_size(default_page_size)

    @staticmethod
    def _check_page_size(page_size: int) -> int:
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            raise ValueError(f"default page size must be a positive integer, got {page_size!r}")
        return page_size

    def compile(
        self,
        request: Mapping[str, Any],
        default_page_size: int | None = None,
    ) -> QueryDescriptor:
        """Compile a FilterRequest.

        Args:
            request: Parameter name to string, or to a mapping of comparison
                suffix to string
            default_page_size: Overrides the configured page size for this call

        Returns:
            The canonical QueryDescriptor

        Raises:
            ValidationError: On the first invalid parameter
        """
        page_size = (
            self._default_page_size if default_page_size is None else self._check_page_size(default_page_size)
        )

        text_search = self._keyword(request.get(KEYWORD))
        page = self._page(request.get(PAGE), PAGE)
        # limit is validated but never widens the caller's page size
        self._page(request.get(LIMIT), LIMIT)

        predicates: list[Predicate] = []
        for field, value in request.items():
            if field in RESERVED_KEYS:
                continue
            predicates.extend(self._field_predicates(field, value))

        predicates.sort(key=lambda p: (p.operator is Operator.EQ, p.field, _OPERATOR_RANK.get(p.operator, 0)))

        sort: tuple[SortKey, ...] = ()
        if text_search is not None:
            sort = (SortKey(RELEVANCE, SortDirection.DESC),)

        return QueryDescriptor(
            text_search=text_search,
            predicates=tuple(predicates),
            sort=sort,
            page=page,
            page_size=page_size,
        )

    @staticmethod
    def _keyword(value: Any) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError("Parameter 'keyword' must be a single string", KEYWORD)
        keyword = value.strip()
        return keyword or None

    @staticmethod
    def _page(value: Any, field: str) -> int:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 1
        return parse_positive_int(value, field)

    def _field_kind(self, field: str) -> FieldKind | None:
        if not _FIELD_NAME.match(field):
            raise ValidationError(f"Invalid filter field name {field!r}", field)
        if self._fields is None:
            return None
        if field not in self._fields:
            raise ValidationError(f"Filtering on '{field}' is not allowed", field)
        return self._fields[field]

    def _field_predicates(self, field: str, value: Any) -> list[Predicate]:
        kind = self._field_kind(field)

        if isinstance(value, Mapping):
            if not value:
                raise ValidationError(f"Parameter '{field}' has no comparison", field)
            predicates = []
            for suffix, operand in value.items():
                operator = _SUFFIXES.get(suffix) if isinstance(suffix, str) else None
                if operator is None:
                    raise ValidationError(f"Unsupported comparison '{suffix}' on '{field}'", field)
                if kind is FieldKind.STRING:
                    raise ValidationError(f"Range comparison is not allowed on text field '{field}'", field)
                predicates.append(Predicate(field, operator, self._typed(operand, kind, field, numeric=True)))
            return predicates

        return [Predicate(field, Operator.EQ, self._typed(value, kind, field, numeric=False))]

    @staticmethod
    def _typed(value: Any, kind: FieldKind | None, field: str, numeric: bool) -> FilterValue:
        if numeric or kind in (FieldKind.NUMBER, FieldKind.INTEGER):
            number = parse_number(value, field)
            if kind is FieldKind.INTEGER and not isinstance(number, int):
                raise ValidationError(f"Parameter '{field}' must be an integer", field)
            return number
        return _scalar_text(value, field)


def compile_filter_request(
    raw_params: Mapping[str, Any],
    default_page_size: int,
    fields: Mapping[str, FieldKind] | None = None,
) -> QueryDescriptor:
    """Compile raw request parameters with a one-off compiler."""
    return QueryCompiler(fields=fields, default_page_size=default_page_size).compile(raw_params)
