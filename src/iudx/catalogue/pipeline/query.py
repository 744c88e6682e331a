"""Translate flat catalogue filters into store queries and field projections.

Filters arrive as ``key -> [values]``. Two keys are special:

* ``tags`` matches case-insensitively against the lower-cased shadow tag field,
  by equality for one value and by set membership for several.
* ``attributeFilter`` never constrains the query; it lists the fields to return.

Every other key is folded in as a direct equality. A key given several values
keeps only the last one (``color=red&color=blue`` queries ``color = "blue"``);
multi-valued non-tag filters are not OR-ed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Union
from urllib.parse import quote, unquote_plus

from ..repository.documents import INTERNAL_ID_FIELD

SHADOW_TAGS_FIELD = "_tags"
TAGS_KEY = "tags"
ATTRIBUTE_FILTER_KEY = "attributeFilter"
ITEM_TYPE_FIELD = "item-type"

FilterMap = Dict[str, List[str]]


@dataclass(frozen=True, slots=True)
class QueryPlan:
    query: Dict[str, Any] = field(default_factory=dict)
    projection: Dict[str, int] = field(default_factory=lambda: {INTERNAL_ID_FIELD: 0})


@dataclass(frozen=True, slots=True)
class TranslationFault:
    message: str


TranslationOutcome = Union[QueryPlan, TranslationFault]


_GROUPS = (("(", ")"), ("[", "]"))


def _unwrap_group(raw: str) -> str:
    folded = raw.upper()
    for opener, closer in _GROUPS:
        for head, tail in ((opener, closer), (quote(opener), quote(closer))):
            if len(raw) >= len(head) + len(tail) and folded.startswith(head) and folded.endswith(tail):
                return raw[len(head) : len(raw) - len(tail)]
    return raw


def _split_values(raw: str) -> List[str]:
    # split on literal commas only, so an encoded comma (%2C) stays part of its value
    values = (unquote_plus(part).strip() for part in _unwrap_group(raw.strip()).split(","))
    return [value for value in values if value]


def parse_filter_string(raw: str | None) -> Union[FilterMap, TranslationFault]:
    """Parse ``k=v&k=a,b`` into a filter map.

    Repeated keys append to the same list. Empty input, pairs without ``=``,
    empty keys and empty values are rejected as a whole.
    """

    if raw is None or not raw.strip():
        return TranslationFault("Bad Query: empty filter")

    filters: FilterMap = {}
    for pair in raw.split("&"):
        key, sep, value = pair.partition("=")
        key = unquote_plus(key).strip()
        if not sep or not key:
            return TranslationFault(f"Bad Query: malformed filter '{unquote_plus(pair)}'")
        values = _split_values(value)
        if not values:
            return TranslationFault(f"Bad Query: no value for '{key}'")
        filters.setdefault(key, []).extend(values)
    return filters


def _values_of(key: str, raw: Any) -> Union[List[str], TranslationFault]:
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, Sequence) and raw and all(isinstance(value, str) for value in raw):
        return list(raw)
    return TranslationFault(f"Bad Query: values for '{key}' must be strings")


def to_query(filters: Mapping[str, Any]) -> TranslationOutcome:
    query: Dict[str, Any] = {}
    projection: Dict[str, int] = {}

    for key, raw in filters.items():
        if key.startswith("$"):
            return TranslationFault(f"Bad Query: '{key}' is not a filterable field")
        values = _values_of(key, raw)
        if isinstance(values, TranslationFault):
            return values

        lowered = key.lower()
        if lowered == ATTRIBUTE_FILTER_KEY.lower():
            for name in values:
                projection[name] = 1
        elif lowered == TAGS_KEY:
            if len(values) == 1:
                query[SHADOW_TAGS_FIELD] = values[0].lower()
            else:
                query[SHADOW_TAGS_FIELD] = {"$in": [value.lower() for value in values]}
        else:
            for value in values:
                query[key] = value

    # the store's internal identifier is never projected, whatever was requested
    projection[INTERNAL_ID_FIELD] = 0
    return QueryPlan(query=query, projection=projection)


def list_query(item_type: str) -> QueryPlan:
    return QueryPlan(query={ITEM_TYPE_FIELD: item_type})


def identifier_query(item_id: str) -> QueryPlan:
    return QueryPlan(query={"id": item_id})


__all__ = [
    "ATTRIBUTE_FILTER_KEY",
    "FilterMap",
    "ITEM_TYPE_FIELD",
    "QueryPlan",
    "SHADOW_TAGS_FIELD",
    "TAGS_KEY",
    "TranslationFault",
    "TranslationOutcome",
    "identifier_query",
    "list_query",
    "parse_filter_string",
    "to_query",
]
