"""Discord event source and directory.

Connects to Discord through discord.py and converts gateway messages into
InboundMessage instances for the mention pipeline. DiscordDirectory answers
room, group and entity lookups from the client cache, falling back to the
REST API.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import discord

from pingpal.models import InboundMessage

logger = logging.getLogger(__name__)

MessageHandler = Callable[[InboundMessage], Awaitable[object]]


class DiscordListener:
    """Wraps a ``discord.Client`` that feeds guild messages to a handler.

    Responsibilities
    ----------------
    * Requests the message-content intent so mention text is available.
    * Drops the bot's own messages and direct messages.
    * Converts ``discord.Message`` objects into :class:`InboundMessage`.
    * Shields the gateway loop from handler exceptions.
    """

    def __init__(self, handler: MessageHandler | None = None) -> None:
        intents = discord.Intents.default()
        intents.message_content = True

        self._client = discord.Client(intents=intents)
        self._handler = handler
        self._client.event(self.on_message)

    # -- public properties / helpers -----------------------------------------

    @property
    def client(self) -> discord.Client:
        """The underlying ``discord.Client`` instance."""
        return self._client

    def set_handler(self, handler: MessageHandler) -> None:
        self._handler = handler

    # -- lifecycle -----------------------------------------------------------

    def run(self, token: str) -> None:
        """Connect to the gateway and block until the client is closed."""
        logger.info("Starting Discord client")
        # log_handler=None keeps discord.py from replacing our logging setup.
        self._client.run(token, log_handler=None)

    # -- event handling ------------------------------------------------------

    async def on_message(self, message: discord.Message) -> None:
        msg = self.parse_message(message)
        if msg is None or self._handler is None:
            return
        try:
            await self._handler(msg)
        except Exception:
            logger.exception("Unhandled error processing message %s", msg.id)

    def parse_message(self, message: discord.Message) -> InboundMessage | None:
        """Convert a ``discord.Message`` into an :class:`InboundMessage`.

        Returns ``None`` for messages that should be silently dropped.
        """
        user = self._client.user
        if user is not None and message.author.id == user.id:
            return None

        if message.guild is None:
            logger.debug("Direct message %s; dropping", message.id)
            return None

        return InboundMessage(
            id=str(message.id),
            room_id=str(message.channel.id),
            sender_id=str(message.author.id),
            text=message.content or "",
            source_url=message.jump_url,
            created_at=message.created_at,
            mentions=[str(user_id) for user_id in message.raw_mentions],
        )


class DiscordDirectory:
    """DirectoryService over a ``discord.Client``.

    Rooms are channels, groups are guilds and entities are users.
    """

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    async def get_room(self, room_id: str) -> dict[str, Any] | None:
        channel_id = int(room_id)
        channel = self._client.get_channel(channel_id)
        if channel is None:
            logger.debug("Channel cache miss for %s", room_id)
            channel = await self._client.fetch_channel(channel_id)
        if channel is None:
            return None

        channel_name = getattr(channel, "name", None)
        room: dict[str, Any] = {
            "channel_id": str(channel.id),
            "name": channel_name,
            "metadata": {"discord": {"channel_name": channel_name}},
        }
        guild = getattr(channel, "guild", None)
        if guild is not None:
            room["server_id"] = str(guild.id)
            room["group_id"] = str(guild.id)
            room["metadata"]["discord"]["guild_name"] = guild.name
        return room

    async def get_group(self, group_id: str) -> dict[str, Any] | None:
        guild_id = int(group_id)
        guild = self._client.get_guild(guild_id)
        if guild is None:
            logger.debug("Guild cache miss for %s", group_id)
            guild = await self._client.fetch_guild(guild_id)
        if guild is None:
            return None
        return {"id": str(guild.id), "name": guild.name}

    async def get_entity(self, entity_id: str) -> dict[str, Any] | None:
        user_id = int(entity_id)
        user = self._client.get_user(user_id)
        if user is None:
            logger.debug("User cache miss for %s", entity_id)
            user = await self._client.fetch_user(user_id)
        if user is None:
            return None
        return {
            "id": str(user.id),
            "names": [user.display_name, user.name],
            "metadata": {"discord": {"username": user.name}},
        }
