from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from shared.logging import get_logger

from ..bus import GENERIC_FAILURE, Message
from ..models import CatalogueItem

logger = get_logger("catalogue.validation")

VALIDATE_ITEM = "validate-item"


class ValidationService:
    """Consumer for the ``validator`` address.

    With a remote validator configured the item is POSTed to it and any HTTP or
    transport error fails the exchange; otherwise only the structural item
    contract is checked.
    """

    def __init__(self, validator_url: str | None = None, timeout: float = 10.0) -> None:
        self._validator_url = validator_url.rstrip("/") if validator_url else None
        self._timeout = timeout

    async def handle(self, message: Message) -> None:
        if message.action != VALIDATE_ITEM:
            message.fail(0, f"Unknown validator action {message.action}")
            return
        if message.headers.get("skip_validation", "false") == "true":
            logger.info("validation_skipped")
            message.reply("skipped")
            return
        if self._validator_url:
            await self._validate_remote(message)
            return
        self._validate_local(message)

    def _validate_local(self, message: Message) -> None:
        body: Any = message.body
        if not isinstance(body, dict):
            message.fail(0, GENERIC_FAILURE)
            return
        try:
            CatalogueItem.model_validate(body)
        except ValidationError as exc:
            logger.info("validation_rejected", errors=exc.error_count())
            message.fail(0, GENERIC_FAILURE)
            return
        message.reply("valid")

    async def _validate_remote(self, message: Message) -> None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    f"{self._validator_url}/validate",
                    json=message.body,
                    headers={"Content-Type": "application/json"},
                )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("validation_remote_failed", url=self._validator_url, error=str(exc))
            message.fail(0, GENERIC_FAILURE)
            return
        message.reply("valid")


__all__ = ["VALIDATE_ITEM", "ValidationService"]
