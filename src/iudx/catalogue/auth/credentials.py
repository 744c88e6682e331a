from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import orjson


class CredentialTableError(RuntimeError):
    """Raised when the backing credential table cannot be read."""


@dataclass(frozen=True, slots=True)
class CredentialEntry:
    user_id: str
    password: str
    write_permission: bool


class CredentialTable(ABC):
    """Read-through lookup of registered users."""

    @abstractmethod
    def lookup(self, user_id: str) -> CredentialEntry | None:
        """Return the entry for ``user_id`` or ``None`` when the user is not registered."""


class FileCredentialTable(CredentialTable):
    """JSON file of ``{"<user>": {"password": ..., "write_permission": bool}}``.

    The file is re-read on every lookup so edits apply to the next request
    without a restart.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise CredentialTableError(f"credential table {self._path} unreadable") from exc
        try:
            users = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise CredentialTableError(f"credential table {self._path} is not valid JSON") from exc
        if not isinstance(users, dict):
            raise CredentialTableError(f"credential table {self._path} must be a JSON object")
        return users

    def lookup(self, user_id: str) -> CredentialEntry | None:
        record = self._load().get(user_id)
        if not isinstance(record, dict):
            return None
        return CredentialEntry(
            user_id=user_id,
            password=str(record.get("password", "")),
            write_permission=record.get("write_permission") is True,
        )


class StaticCredentialTable(CredentialTable):
    """In-process table, used when credentials are provisioned programmatically."""

    def __init__(self, entries: Dict[str, CredentialEntry] | None = None) -> None:
        self._entries: Dict[str, CredentialEntry] = dict(entries or {})

    def lookup(self, user_id: str) -> CredentialEntry | None:
        return self._entries.get(user_id)


__all__ = [
    "CredentialEntry",
    "CredentialTable",
    "CredentialTableError",
    "FileCredentialTable",
    "StaticCredentialTable",
]
