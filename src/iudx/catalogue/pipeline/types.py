from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Union

from ..auth.certificates import UNVERIFIED, CertificateInfo


class Action(str, Enum):
    LIST = "list"
    GET_TAGS = "get-tags"
    SEARCH = "search-attribute"
    COUNT = "count"
    READ_ITEM = "read-item"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    BULK_CREATE = "bulkcreate"
    BULK_UPDATE = "bulkupdate"
    BULK_DELETE = "bulkdelete"
    READ_SCHEMA = "read-schema"
    WRITE_SCHEMA = "write-schema"
    DELETE_SCHEMA = "delete-schema"

    @property
    def mutating(self) -> bool:
        return self in MUTATING_ACTIONS

    @property
    def takes_body(self) -> bool:
        return self in BODY_ACTIONS


MUTATING_ACTIONS = frozenset(
    {
        Action.CREATE,
        Action.UPDATE,
        Action.DELETE,
        Action.BULK_CREATE,
        Action.BULK_UPDATE,
        Action.BULK_DELETE,
        Action.WRITE_SCHEMA,
        Action.DELETE_SCHEMA,
    }
)
BODY_ACTIONS = frozenset(
    {Action.CREATE, Action.UPDATE, Action.BULK_CREATE, Action.BULK_UPDATE, Action.WRITE_SCHEMA}
)


@dataclass(slots=True)
class InboundRequest:
    """Transport-level input for one catalogue operation."""

    action: Action
    item_type: str | None = None
    item_id: str | None = None
    bulk_id: str | None = None
    body: bytes | None = None
    query: str | None = None
    authorization: str | None = None
    skip_validation: str | None = None
    certificate: CertificateInfo = UNVERIFIED


@dataclass(slots=True)
class CatalogueCommand:
    """A parsed unit of work, owned by the dispatcher until it is answered."""

    action: Action
    payload: Any = field(default_factory=dict)
    item_type: str | None = None


@dataclass(frozen=True, slots=True)
class ClientFault:
    message: str
    status_code: int = 400


@dataclass(frozen=True, slots=True)
class AuthFault:
    message: str
    status_code: int = 401


@dataclass(frozen=True, slots=True)
class ServerFault:
    message: str = "Internal server error"
    status_code: int = 500


Fault = Union[ClientFault, AuthFault, ServerFault]


@dataclass(frozen=True, slots=True)
class Completed:
    status_code: int
    body: Any = None


@dataclass(frozen=True, slots=True)
class Failed:
    fault: Fault

    @property
    def status_code(self) -> int:
        return self.fault.status_code

    @property
    def message(self) -> str:
        return self.fault.message


Outcome = Union[Completed, Failed]

SUCCESS_STATUS: Mapping[Action, int] = {
    Action.LIST: 200,
    Action.GET_TAGS: 200,
    Action.SEARCH: 200,
    Action.COUNT: 200,
    Action.READ_ITEM: 200,
    Action.CREATE: 201,
    Action.UPDATE: 200,
    Action.DELETE: 204,
    Action.BULK_CREATE: 200,
    Action.BULK_UPDATE: 200,
    Action.BULK_DELETE: 204,
    Action.READ_SCHEMA: 200,
    Action.WRITE_SCHEMA: 201,
    Action.DELETE_SCHEMA: 204,
}

Payload = Dict[str, Any]

__all__ = [
    "Action",
    "AuthFault",
    "CatalogueCommand",
    "ClientFault",
    "Completed",
    "Failed",
    "Fault",
    "InboundRequest",
    "Outcome",
    "Payload",
    "SUCCESS_STATUS",
    "ServerFault",
]
