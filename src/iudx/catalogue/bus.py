"""Request/single-reply message passing between the dispatcher and its collaborators.

Each address has one consumer coroutine. ``MessageBus.request`` hands the body
to that consumer in a task of its own and awaits the reply future that belongs
to this one message, so many requests can be in flight at once without any
shared session between them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Set, Union

from shared.logging import get_logger

logger = get_logger("catalogue.bus")

GENERIC_FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class Delivered:
    body: Any = None


@dataclass(frozen=True, slots=True)
class Refused:
    code: int
    message: str


Reply = Union[Delivered, Refused]


@dataclass(slots=True)
class Message:
    address: str
    body: Any
    headers: Dict[str, str] = field(default_factory=dict)
    _reply: asyncio.Future[Reply] | None = None

    @property
    def action(self) -> str | None:
        return self.headers.get("action")

    @property
    def answered(self) -> bool:
        return self._reply is not None and self._reply.done()

    def reply(self, body: Any = None) -> None:
        if self._reply is not None and not self._reply.done():
            self._reply.set_result(Delivered(body))

    def fail(self, code: int, message: str) -> None:
        if self._reply is not None and not self._reply.done():
            self._reply.set_result(Refused(code, message))


Consumer = Callable[[Message], Awaitable[None]]


class MessageBus:
    def __init__(self) -> None:
        self._consumers: Dict[str, Consumer] = {}
        self._in_flight: Set[asyncio.Task[None]] = set()

    def consumer(self, address: str, handler: Consumer) -> None:
        if address in self._consumers:
            raise ValueError(f"address {address!r} already has a consumer")
        self._consumers[address] = handler

    async def request(self, address: str, body: Any, headers: Mapping[str, str] | None = None) -> Reply:
        handler = self._consumers.get(address)
        if handler is None:
            logger.warning("bus_no_consumer", address=address)
            return Refused(-1, f"No handlers for address {address}")

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Reply] = loop.create_future()
        message = Message(address=address, body=body, headers=dict(headers or {}), _reply=future)
        task = loop.create_task(self._deliver(handler, message))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return await future

    async def _deliver(self, handler: Consumer, message: Message) -> None:
        try:
            await handler(message)
        except Exception:
            logger.exception("bus_consumer_failed", address=message.address, action=message.action)
            message.fail(0, GENERIC_FAILURE)
            return
        if not message.answered:
            logger.error("bus_consumer_no_reply", address=message.address, action=message.action)
            message.fail(0, GENERIC_FAILURE)


__all__ = ["Delivered", "GENERIC_FAILURE", "Message", "MessageBus", "Refused", "Reply"]
