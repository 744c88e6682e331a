from __future__ import annotations

import copy
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Mapping

from .documents import INTERNAL_ID_FIELD, Document, DocumentStore, StoreError, apply_projection, matches


class InMemoryDocumentStore(DocumentStore):
    """Process-local store used for development and tests.

    Documents are deep-copied on the way in and out so callers never share
    references with stored state.
    """

    def __init__(self, unique_field: str = "id") -> None:
        self._collections: Dict[str, List[Document]] = defaultdict(list)
        self._unique_field = unique_field

    async def find(
        self, collection: str, query: Mapping[str, Any], projection: Mapping[str, int] | None = None
    ) -> List[Document]:
        return [
            apply_projection(copy.deepcopy(document), projection)
            for document in self._collections[collection]
            if matches(document, query)
        ]

    async def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        stored = copy.deepcopy(dict(document))
        key = stored.get(self._unique_field)
        if key is not None and any(
            existing.get(self._unique_field) == key for existing in self._collections[collection]
        ):
            raise StoreError(f"duplicate {self._unique_field} {key!r} in {collection}")
        internal_id = uuid.uuid4().hex
        stored[INTERNAL_ID_FIELD] = internal_id
        self._collections[collection].append(stored)
        return internal_id

    async def remove(self, collection: str, query: Mapping[str, Any]) -> int:
        kept = [document for document in self._collections[collection] if not matches(document, query)]
        removed = len(self._collections[collection]) - len(kept)
        self._collections[collection] = kept
        return removed


__all__ = ["InMemoryDocumentStore"]
