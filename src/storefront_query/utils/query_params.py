"""Decode bracket-notation query strings into a FilterRequest mapping.

``price[gte]=20&price[lte]=100&category=shoes`` becomes::

    {"price": {"gte": "20", "lte": "100"}, "category": "shoes"}

Only one level of brackets is accepted. A plain key given more than once
becomes a list, which the compiler then rejects.
"""

import re
from collections.abc import Iterable
from typing import Any

from storefront_query.errors import ValidationError

_BRACKET_KEY = re.compile(r"^([^\[\]]+)\[([^\[\]]+)\]$")


def parse_query_params(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Build a nested parameter mapping from (key, value) pairs.

    Args:
        items: Query string pairs in arrival order (e.g. ``request.query_params.multi_items()``)

    Returns:
        Mapping of parameter name to a string, a list of strings, or a
        mapping of suffix to string

    Raises:
        ValidationError: On malformed bracket keys or on a key used both
            plainly and with brackets
    """
    params: dict[str, Any] = {}

    for raw_key, value in items:
        if "[" not in raw_key and "]" not in raw_key:
            if isinstance(params.get(raw_key), dict):
                raise ValidationError(f"Parameter '{raw_key}' mixes plain and bracketed forms", raw_key)
            if raw_key in params:
                existing = params[raw_key]
                params[raw_key] = [*existing, value] if isinstance(existing, list) else [existing, value]
            else:
                params[raw_key] = value
            continue

        match = _BRACKET_KEY.match(raw_key)
        if match is None:
            raise ValidationError(f"Malformed parameter name '{raw_key}'", raw_key)

        name, suffix = match.groups()
        nested = params.setdefault(name, {})
        if not isinstance(nested, dict):
            raise ValidationError(f"Parameter '{name}' mixes plain and bracketed forms", name)
        if suffix in nested:
            raise ValidationError(f"Parameter '{raw_key}' given more than once", name)
        nested[suffix] = value

    return params
