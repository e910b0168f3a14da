"""Interfaces for the collaborators the mention pipeline depends on.

The pipeline only talks to these contracts, so the Discord, SQLite, Ollama
and Telegram adapters can be swapped without touching the core.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pingpal.models import ProcessingRecord


class DuplicateRecordError(Exception):
    """Raised by a ProcessingLog when a record for the same key already exists."""


class DirectoryService(Protocol):
    """Room, group and entity lookups. Every call may return None or raise."""

    async def get_room(self, room_id: str) -> dict[str, Any] | None:
        ...

    async def get_group(self, group_id: str) -> dict[str, Any] | None:
        ...

    async def get_entity(self, entity_id: str) -> dict[str, Any] | None:
        ...


class ProcessingLog(Protocol):
    """Append-only store of processing records."""

    async def query(self, room_id: str, limit: int) -> list[ProcessingRecord]:
        ...

    async def append(self, record: ProcessingRecord) -> None:
        ...


class ReasoningService(Protocol):
    async def invoke(self, prompt: str, schema: dict[str, Any]) -> Any:
        ...


@runtime_checkable
class DeliveryChannel(Protocol):
    async def send(self, recipient_id: str, text: str, options: dict[str, Any]) -> None:
        ...


class DeliveryRegistry(Protocol):
    def get_service(self, name: str) -> object | None:
        ...
