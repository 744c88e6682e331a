from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping

INTERNAL_ID_FIELD = "_id"

Document = Dict[str, Any]


class StoreError(RuntimeError):
    """Raised by a document store when an operation cannot be committed."""


class DocumentStore(ABC):
    """Abstract storage interface for catalogue collections.

    Queries map a field either to a value (a scalar equal to it, or an array
    containing it) or to ``{"$in": [...]}`` (any of the values). Projections map
    field names to 1 (include) or 0 (exclude).
    """

    @abstractmethod
    async def find(
        self, collection: str, query: Mapping[str, Any], projection: Mapping[str, int] | None = None
    ) -> List[Document]:
        """Return every document in ``collection`` matching ``query``."""

    @abstractmethod
    async def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        """Persist ``document`` returning the store's internal identifier."""

    @abstractmethod
    async def remove(self, collection: str, query: Mapping[str, Any]) -> int:
        """Delete documents matching ``query`` returning the number removed."""

    async def find_one(
        self, collection: str, query: Mapping[str, Any], projection: Mapping[str, int] | None = None
    ) -> Document | None:
        documents = await self.find(collection, query, projection)
        return documents[0] if documents else None

    async def close(self) -> None:
        return None


def _value_matches(stored: Any, expected: Any) -> bool:
    if isinstance(stored, list):
        return expected in stored or stored == expected
    return stored == expected


def matches(document: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    for field, condition in query.items():
        if field not in document:
            return False
        stored = document[field]
        if isinstance(condition, Mapping) and "$in" in condition:
            if not any(_value_matches(stored, candidate) for candidate in condition["$in"]):
                return False
        elif not _value_matches(stored, condition):
            return False
    return True


def apply_projection(document: Mapping[str, Any], projection: Mapping[str, int] | None) -> Document:
    if not projection:
        return dict(document)
    included = [name for name, flag in projection.items() if flag]
    excluded = {name for name, flag in projection.items() if not flag}
    if included:
        projected = {name: document[name] for name in included if name in document}
        if INTERNAL_ID_FIELD not in excluded and INTERNAL_ID_FIELD in document:
            projected[INTERNAL_ID_FIELD] = document[INTERNAL_ID_FIELD]
    else:
        projected = dict(document)
    for name in excluded:
        projected.pop(name, None)
    return projected


__all__ = [
    "Document",
    "DocumentStore",
    "INTERNAL_ID_FIELD",
    "StoreError",
    "apply_projection",
    "matches",
]
