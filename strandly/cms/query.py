"""Bracket-notation query encoding for the CMS REST API.

The CMS reads nested filters the way ``qs`` writes them::

    {"where": {"slug": {"equals": "bob"}}}  ->  where[slug][equals]=bob
    {"where": {"or": [{"a": {"equals": 1}}, {"b": {"exists": True}}]}}
        ->  where[or][0][a][equals]=1&where[or][1][b][exists]=true

Lists of scalars are comma-joined (``where[id][in]=1,2,3``).
"""

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def _encode_value(name: str, value: Any) -> list[tuple[str, str]]:
    if value is None:
        return []
    if isinstance(value, Mapping):
        return encode_query(value, prefix=name)
    if isinstance(value, (list, tuple)):
        if any(isinstance(item, Mapping) for item in value):
            pairs: list[tuple[str, str]] = []
            for index, item in enumerate(value):
                pairs.extend(_encode_value(f"{name}[{index}]", item))
            return pairs
        return [(name, ",".join(_scalar(item) for item in value))]
    return [(name, _scalar(value))]


def encode_query(
    params: Mapping[str, Any], prefix: str | None = None
) -> list[tuple[str, str]]:
    """Flatten nested query parameters into ordered ``(key, value)`` pairs.

    Args:
        params: Query parameters, possibly nested
        prefix: Bracket prefix for nested calls

    Returns:
        List of key/value pairs suitable for ``httpx`` ``params``
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        pairs.extend(_encode_value(name, value))
    return pairs
