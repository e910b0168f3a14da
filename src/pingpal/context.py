"""Context resolution for a detected mention.

Identifiers and display names are resolved through ordered fallback
strategies. Every directory call is isolated: a failure is logged and the
next strategy is tried.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from pingpal.models import ResolvedContext
from pingpal.ports import DirectoryService

logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "Unknown Server"
DEFAULT_SENDER_NAME = "Unknown User"

Room = dict[str, Any]
NameStrategy = Callable[[Room], Awaitable[str | None]]


async def first_resolved(strategies: Iterable[NameStrategy], room: Room) -> str | None:
    """Return the first truthy value produced by *strategies*, in order."""
    for strategy in strategies:
        value = await strategy(room)
        if value:
            return value
    return None


def _first_present(*values: Any) -> str | None:
    for value in values:
        if value is not None and str(value):
            return str(value)
    return None


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


async def nested_metadata_server_name(room: Room) -> str | None:
    """Platform-specific name: ``metadata["discord"]["guild_name"]``."""
    discord_meta = _mapping(_mapping(room.get("metadata")).get("discord"))
    return _first_present(discord_meta.get("guild_name"))


async def flat_metadata_server_name(room: Room) -> str | None:
    """Flat alternate name: ``metadata["guild_name"]``."""
    return _first_present(_mapping(room.get("metadata")).get("guild_name"))


class ContextResolver:
    """Resolves server/channel IDs, server name and sender name for a mention."""

    def __init__(self, directory: DirectoryService) -> None:
        self._directory = directory
        self.server_name_strategies: list[NameStrategy] = [
            self.group_server_name,
            nested_metadata_server_name,
            flat_metadata_server_name,
        ]

    async def resolve(self, room_id: str, link: dict[str, str]) -> ResolvedContext | None:
        """Resolve the context for a message in *room_id*.

        *link* holds the IDs parsed from the message URL and is used when the
        room lookup has nothing better. Returns None when the server or
        channel ID cannot be resolved at all.
        """
        room = await self._fetch_room(room_id)

        server_id = _first_present(room.get("server_id"), link.get("guild_id"))
        channel_id = _first_present(room.get("channel_id"), link.get("channel_id"))

        if not server_id or not channel_id:
            logger.error(
                "Server or channel ID unresolved for room %s (server=%s channel=%s)",
                room_id,
                server_id,
                channel_id,
            )
            return None

        server_name = (
            await first_resolved(self.server_name_strategies, room) or DEFAULT_SERVER_NAME
        )

        return ResolvedContext(
            server_id=server_id,
            channel_id=channel_id,
            server_name=server_name,
            channel_name=_first_present(room.get("name")),
        )

    async def resolve_sender_name(self, sender_id: str) -> str:
        """Return a human-readable sender name, falling back to a placeholder."""
        try:
            entity = _mapping(await self._directory.get_entity(sender_id))
        except Exception as exc:
            logger.warning("Could not fetch sender entity %s: %s", sender_id, exc)
            return DEFAULT_SENDER_NAME

        names = entity.get("names")
        if not isinstance(names, (list, tuple)):
            names = []
        discord_meta = _mapping(_mapping(entity.get("metadata")).get("discord"))
        return (
            _first_present(names[0] if names else None, discord_meta.get("username"))
            or DEFAULT_SENDER_NAME
        )

    async def group_server_name(self, room: Room) -> str | None:
        """Name of the room's higher-level group (the Discord guild)."""
        group_id = room.get("group_id")
        if not group_id:
            return None
        try:
            group = _mapping(await self._directory.get_group(str(group_id)))
        except Exception as exc:
            logger.warning("Could not fetch group %s for server name: %s", group_id, exc)
            return None
        return _first_present(group.get("name"))

    async def _fetch_room(self, room_id: str) -> Room:
        try:
            room = await self._directory.get_room(room_id)
        except Exception as exc:
            logger.warning(
                "Could not fetch room %s; using URL-parsed IDs: %s", room_id, exc
            )
            return {}
        if not isinstance(room, dict):
            logger.debug("No room details for %s", room_id)
            return {}
        return room
