"""Dispatch pipeline for catalogue commands.

Every request moves through ``received -> auth -> validated -> executed ->
replied``; any stage may end it with a ``Failed`` outcome instead. Read-only
actions skip the auth stage and only item creation is validated. The stages
hand off over the message bus, so the dispatcher holds no per-request state
outside the coroutine serving that request.
"""

from __future__ import annotations

import asyncio
from typing import Any, Collection, Union

import orjson

from shared.logging import get_logger

from ..auth.credentials import CredentialTable
from ..auth.gate import DEFAULT_TRUST_CLASSES, Denied, DenialReason, authorize
from ..bus import GENERIC_FAILURE, Delivered, MessageBus, Refused
from ..models import CreatedResponse, ItemTypesResponse, StatusResponse
from .query import TranslationFault, parse_filter_string
from .types import (
    SUCCESS_STATUS,
    Action,
    AuthFault,
    CatalogueCommand,
    ClientFault,
    Completed,
    Failed,
    InboundRequest,
    Outcome,
    ServerFault,
)

logger = get_logger("catalogue.dispatch")

STORE_ADDRESS = "database"
VALIDATOR_ADDRESS = "validator"

ITEM_TYPES_LISTING = "item-types"
TAGS_LISTING = "tags"

BAD_ITEM = "Invalid item: Not a Json Object"
BAD_SKIP_FLAG = "Invalid value: skip_validation is not a boolean"
UNKNOWN_ITEM_TYPE = "No such item-type exists"

_HEADER_FAULTS = frozenset({DenialReason.SCHEME, DenialReason.MALFORMED_HEADER, DenialReason.MISSING_PASSWORD})
_MALFORMED = object()


def _parse_json(body: bytes | None) -> Any:
    if not body:
        return _MALFORMED
    try:
        return orjson.loads(body)
    except orjson.JSONDecodeError:
        return _MALFORMED


def _denial_to_failure(denied: Denied) -> Failed:
    if denied.reason.is_certificate_failure or denied.reason in _HEADER_FAULTS:
        return Failed(ClientFault(denied.message))
    if denied.reason is DenialReason.TABLE_UNAVAILABLE:
        return Failed(ServerFault())
    return Failed(AuthFault(denied.message))


class DispatchPipeline:
    def __init__(
        self,
        bus: MessageBus,
        credentials: CredentialTable,
        item_types: Collection[str],
        trust_classes: Collection[int] = DEFAULT_TRUST_CLASSES,
    ) -> None:
        self._bus = bus
        self._credentials = credentials
        self._item_types = tuple(item_types)
        self._known_types = frozenset(self._item_types)
        self._trust_classes = frozenset(trust_classes)

    @property
    def item_types(self) -> tuple[str, ...]:
        return self._item_types

    async def dispatch(self, request: InboundRequest) -> Outcome:
        log = logger.bind(action=request.action.value, item_type=request.item_type)

        received = self._receive(request)
        if not isinstance(received, CatalogueCommand):
            return self._finish(log, "received", received)
        command = received

        if command.action.mutating:
            denied = await self._authorize(request)
            if denied is not None:
                return self._finish(log, "auth", denied)

        rejected = self._check(request, command)
        if rejected is not None:
            return self._finish(log, "checked", rejected)

        if command.action is Action.CREATE:
            rejected = await self._validate(request, command)
            if rejected is not None:
                return self._finish(log, "validated", rejected)

        outcome = await self._execute(command)
        return self._finish(log, "executed", outcome)

    def _finish(self, log, stage: str, outcome: Outcome) -> Outcome:
        if isinstance(outcome, Failed):
            log.info("dispatch_failed", stage=stage, status_code=outcome.status_code)
        else:
            log.info("dispatch_replied", stage=stage, status_code=outcome.status_code)
        return outcome

    def _receive(self, request: InboundRequest) -> Union[CatalogueCommand, Outcome]:
        action = request.action

        if action is Action.LIST:
            item_type = request.item_type or ""
            if item_type == ITEM_TYPES_LISTING:
                listing = ItemTypesResponse(item_types=list(self._item_types))
                return Completed(200, listing.model_dump(by_alias=True))
            if item_type == TAGS_LISTING:
                return CatalogueCommand(Action.GET_TAGS, {})
            if item_type not in self._known_types:
                return Failed(ClientFault(f"{item_type} does not exist in the catalogue. "))
            return CatalogueCommand(Action.LIST, {"item-type": item_type}, item_type)

        if action in (Action.SEARCH, Action.COUNT):
            filters = parse_filter_string(request.query)
            if isinstance(filters, TranslationFault):
                return Failed(ClientFault(filters.message))
            return CatalogueCommand(action, filters)

        if action in (Action.READ_ITEM, Action.READ_SCHEMA, Action.DELETE_SCHEMA):
            return CatalogueCommand(action, {"id": request.item_id or ""})

        if action is Action.DELETE:
            payload = {"id": request.item_id or "", "item-type": request.item_type}
            return CatalogueCommand(action, payload, request.item_type)

        if action is Action.BULK_DELETE:
            return CatalogueCommand(action, {"bulk-id": request.bulk_id or ""}, request.item_type)

        body = _parse_json(request.body)

        if action is Action.BULK_CREATE:
            if not isinstance(body, list) or not all(isinstance(entry, dict) for entry in body):
                return Failed(ClientFault(BAD_ITEM))
            return CatalogueCommand(action, {"items": body, "bulk-id": request.bulk_id or ""}, request.item_type)

        if not isinstance(body, dict):
            return Failed(ClientFault(BAD_ITEM))

        if action is Action.WRITE_SCHEMA:
            schema_id = body.get("id")
            if not isinstance(schema_id, str) or not schema_id:
                return Failed(ClientFault("Schema must carry an id"))
            return CatalogueCommand(action, body)

        if action is Action.CREATE:
            body["id"] = ""
        elif action is Action.BULK_UPDATE:
            body["bulk-id"] = request.bulk_id or ""
        return CatalogueCommand(action, body, request.item_type)

    async def _authorize(self, request: InboundRequest) -> Failed | None:
        # the credential table is file backed; read it off the event loop
        outcome = await asyncio.to_thread(
            authorize,
            request.certificate,
            request.authorization,
            self._credentials,
            self._trust_classes,
        )
        if isinstance(outcome, Denied):
            return _denial_to_failure(outcome)
        return None

    def _check(self, request: InboundRequest, command: CatalogueCommand) -> Failed | None:
        if command.action in (Action.DELETE, Action.UPDATE) and command.item_type not in self._known_types:
            return Failed(ClientFault(UNKNOWN_ITEM_TYPE + "!"))
        if command.action is Action.UPDATE:
            if request.item_id != command.payload.get("id"):
                return Failed(ClientFault("Ids provided in the URI and object does not match"))
            command.payload["item-type"] = command.item_type
        return None

    async def _validate(self, request: InboundRequest, command: CatalogueCommand) -> Failed | None:
        flag = "false" if request.skip_validation is None else request.skip_validation.lower()
        if flag not in ("true", "false"):
            return Failed(ClientFault(BAD_SKIP_FLAG))

        reply = await self._bus.request(
            VALIDATOR_ADDRESS,
            command.payload,
            {"action": "validate-item", "skip_validation": flag},
        )
        if isinstance(reply, Refused):
            logger.warning("validation_failed", code=reply.code, detail=reply.message)
            return Failed(ServerFault())

        command.payload["item-type"] = command.item_type
        if command.item_type not in self._known_types:
            return Failed(ClientFault(UNKNOWN_ITEM_TYPE))
        return None

    async def _execute(self, command: CatalogueCommand) -> Outcome:
        reply = await self._bus.request(STORE_ADDRESS, command.payload, {"action": command.action.value})
        if isinstance(reply, Refused):
            if reply.code < 0 or reply.message.lower() == GENERIC_FAILURE:
                return Failed(ServerFault())
            return Failed(ClientFault(reply.message))
        return Completed(SUCCESS_STATUS[command.action], self._present(command, reply))

    def _present(self, command: CatalogueCommand, reply: Delivered) -> Any:
        action = command.action
        if action is Action.CREATE:
            return CreatedResponse(id=str(reply.body)).model_dump()
        if action is Action.WRITE_SCHEMA:
            return CreatedResponse(id=command.payload["id"]).model_dump()
        if action is Action.UPDATE:
            return StatusResponse(status=str(reply.body)).model_dump()
        if action in (Action.DELETE, Action.BULK_DELETE, Action.DELETE_SCHEMA):
            return None
        return reply.body


__all__ = ["DispatchPipeline", "STORE_ADDRESS", "VALIDATOR_ADDRESS"]
