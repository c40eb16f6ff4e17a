"""Normalization of raw scrape provider records into flat rows."""

import math
from collections.abc import Iterable, Mapping
from typing import Any

from xinsight.models.row import NormalizedRow, RawRecord

# Output field -> source key on the raw record
TEXT_FIELDS = {
    "post_text": "text",
    "post_url": "url",
}
COUNT_FIELDS = {
    "like_count": "likes",
    "reply_count": "replies",
    "share_count": "retweets",
    "quote_count": "quotes",
    "view_count": "views",
}


def get_mapping(record: Any, key: str) -> Mapping[str, Any]:
    """Nested mapping at ``key``, or an empty mapping if absent or not a mapping."""
    if not isinstance(record, Mapping):
        return {}
    value = record.get(key)
    return value if isinstance(value, Mapping) else {}


def get_str(record: Mapping[str, Any], key: str) -> str | None:
    """String value at ``key``, None when absent or of another type."""
    value = record.get(key)
    return value if isinstance(value, str) else None


def get_number(record: Mapping[str, Any], key: str) -> int | float | None:
    """
    Numeric value at ``key``, None when absent or not a number.

    Booleans are rejected even though ``bool`` subclasses ``int``, and so
    are NaN and infinities, which have no JSON representation.
    """
    value = record.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def normalize_record(record: RawRecord) -> NormalizedRow:
    """
    Project one raw record onto a NormalizedRow.

    Never raises: a missing or mistyped source field yields an absent
    output field, and a missing ``user`` sub-mapping is treated as empty.
    """
    if not isinstance(record, Mapping):
        return NormalizedRow()

    user = get_mapping(record, "user")
    fields: dict[str, Any] = {"account_bio": get_str(user, "description")}
    for name, source in TEXT_FIELDS.items():
        fields[name] = get_str(record, source)
    for name, source in COUNT_FIELDS.items():
        fields[name] = get_number(record, source)

    return NormalizedRow(**fields)


def normalize(records: Iterable[RawRecord]) -> list[NormalizedRow]:
    """Normalize records, preserving order and length."""
    return [normalize_record(record) for record in records]
