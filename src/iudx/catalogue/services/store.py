from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping

from shared.logging import get_logger

from ..bus import GENERIC_FAILURE, Message
from ..models import BulkCreateResponse, CountResponse
from ..pipeline.query import (
    SHADOW_TAGS_FIELD,
    TranslationFault,
    identifier_query,
    list_query,
    to_query,
)
from ..repository.documents import INTERNAL_ID_FIELD, Document, DocumentStore, StoreError
from .schema_codec import decode_schema, encode_schema

logger = get_logger("catalogue.store")

INITIAL_VERSION = "1.0"
INITIAL_STATUS = "Live"
BULK_ID_FIELD = "bulk-id"


class UnsupportedAction(Exception):
    """The requested action has no committing behaviour at this layer."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _strip_internal(documents: List[Document]) -> List[Document]:
    for document in documents:
        document.pop(SHADOW_TAGS_FIELD, None)
        document.pop(INTERNAL_ID_FIELD, None)
    return documents


class CatalogueStoreAdapter:
    """Executes catalogue commands against the item and schema collections.

    Registered on the ``database`` bus address; the ``action`` header selects
    the operation. Store faults are answered with the generic ``failure``
    signal and no detail.
    """

    def __init__(
        self,
        store: DocumentStore,
        items_collection: str,
        schemas_collection: str,
        provider: str,
    ) -> None:
        self._store = store
        self._items = items_collection
        self._schemas = schemas_collection
        self._provider = provider
        self._operations: Dict[str, Callable[[Any], Awaitable[Any]]] = {
            "list": self.list_items,
            "get-tags": self.get_tags,
            "search-attribute": self.search_attribute,
            "count": self.count,
            "read-item": self.read_item,
            "create": self.write_item,
            "update": self.update_item,
            "delete": self.delete_item,
            "bulkcreate": self.bulk_create,
            "bulkupdate": self.bulk_update,
            "bulkdelete": self.bulk_delete,
            "read-schema": self.read_schema,
            "write-schema": self.write_schema,
            "delete-schema": self.delete_schema,
        }

    async def handle(self, message: Message) -> None:
        operation = self._operations.get(message.action or "")
        if operation is None:
            logger.warning("store_unknown_action", action=message.action)
            message.fail(0, GENERIC_FAILURE)
            return
        try:
            result = await operation(message.body)
        except StoreError as exc:
            logger.error("store_operation_failed", action=message.action, error=str(exc))
            message.fail(0, GENERIC_FAILURE)
            return
        except UnsupportedAction:
            logger.warning("store_action_unimplemented", action=message.action)
            message.fail(0, GENERIC_FAILURE)
            return
        except ValueError as exc:
            message.fail(400, str(exc))
            return
        message.reply(result)

    def stamp_item(self, document: Mapping[str, Any], version: str = INITIAL_VERSION) -> Document:
        """Return a copy of ``document`` carrying fresh system attributes."""

        stamped = copy.deepcopy(dict(document))
        stamped.pop(INTERNAL_ID_FIELD, None)
        timestamp = _now()
        stamped["Created"] = timestamp
        stamped["Last modified on"] = timestamp
        stamped["Status"] = INITIAL_STATUS
        stamped["Version"] = version
        stamped["id"] = str(uuid.uuid4())
        stamped["Provider"] = self._provider
        tags = stamped.get("tags")
        if isinstance(tags, list):
            stamped[SHADOW_TAGS_FIELD] = [str(tag).lower() for tag in tags]
        else:
            stamped.pop(SHADOW_TAGS_FIELD, None)
        return stamped

    async def _find_items(self, query: Mapping[str, Any], projection: Mapping[str, int]) -> List[Document]:
        projection = {**projection, INTERNAL_ID_FIELD: 0}
        return _strip_internal(await self._store.find(self._items, query, projection))

    async def search_attribute(self, body: Mapping[str, Any]) -> List[Document]:
        plan = to_query(body or {})
        if isinstance(plan, TranslationFault):
            raise ValueError(plan.message)
        return await self._find_items(plan.query, plan.projection)

    async def list_items(self, body: Mapping[str, Any]) -> List[Document]:
        plan = list_query(str(body.get("item-type", "")))
        return await self._find_items(plan.query, plan.projection)

    async def get_tags(self, body: Any = None) -> List[str]:
        documents = await self._store.find(self._items, {}, {SHADOW_TAGS_FIELD: 1, INTERNAL_ID_FIELD: 0})
        tags = {tag for document in documents for tag in document.get(SHADOW_TAGS_FIELD) or []}
        return sorted(tags)

    async def count(self, body: Mapping[str, Any]) -> Dict[str, int]:
        plan = to_query(body or {})
        if isinstance(plan, TranslationFault):
            raise ValueError(plan.message)
        documents = await self._store.find(self._items, plan.query, {INTERNAL_ID_FIELD: 0})
        return CountResponse(count=len(documents)).model_dump()

    async def read_item(self, body: Mapping[str, Any]) -> List[Document]:
        plan = identifier_query(str(body.get("id", "")))
        return await self._find_items(plan.query, plan.projection)

    async def write_item(self, body: Mapping[str, Any]) -> str:
        item = self.stamp_item(body)
        await self._store.insert(self._items, item)
        logger.info("item_written", item_id=item["id"], item_type=item.get("item-type"))
        return item["id"]

    async def update_item(self, body: Any) -> Any:
        raise UnsupportedAction("update")

    async def delete_item(self, body: Mapping[str, Any]) -> str:
        plan = identifier_query(str(body.get("id", "")))
        removed = await self._store.remove(self._items, plan.query)
        logger.info("item_deleted", item_id=body.get("id"), removed=removed)
        return "Success"

    async def bulk_create(self, body: Mapping[str, Any]) -> Dict[str, Any]:
        bulk_id = str(body.get(BULK_ID_FIELD, ""))
        ids: List[str] = []
        # no batch atomicity: items inserted before a store fault stay inserted
        for entry in body.get("items") or []:
            item = self.stamp_item(entry)
            item[BULK_ID_FIELD] = bulk_id
            await self._store.insert(self._items, item)
            ids.append(item["id"])
        logger.info("bulk_items_written", bulk_id=bulk_id, count=len(ids))
        return BulkCreateResponse(bulk_id=bulk_id, ids=ids).model_dump(by_alias=True)

    async def bulk_update(self, body: Any) -> Any:
        raise UnsupportedAction("bulkupdate")

    async def bulk_delete(self, body: Mapping[str, Any]) -> str:
        bulk_id = str(body.get(BULK_ID_FIELD, ""))
        removed = await self._store.remove(self._items, {BULK_ID_FIELD: bulk_id})
        logger.info("bulk_items_deleted", bulk_id=bulk_id, removed=removed)
        return "Success"

    async def write_schema(self, body: Mapping[str, Any]) -> str:
        await self._store.insert(self._schemas, encode_schema(dict(body)))
        logger.info("schema_written", schema_id=body.get("id"))
        return "success"

    async def read_schema(self, body: Mapping[str, Any]) -> Document:
        plan = identifier_query(str(body.get("id", "")))
        document = await self._store.find_one(self._schemas, plan.query, {INTERNAL_ID_FIELD: 0})
        if document is None:
            return {}
        document.pop(INTERNAL_ID_FIELD, None)
        return decode_schema(document)

    async def delete_schema(self, body: Mapping[str, Any]) -> str:
        plan = identifier_query(str(body.get("id", "")))
        await self._store.remove(self._schemas, plan.query)
        return "Success"


__all__ = ["CatalogueStoreAdapter", "UnsupportedAction"]
