"""Telegram notification sender for important mentions."""

import asyncio
import logging
import re
from typing import Any

import requests

from pingpal.models import NotificationPayload
from pingpal.ports import DeliveryChannel, DeliveryRegistry

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"

# Characters Telegram MarkdownV2 reserves outside of entities. The backslash
# itself must be escaped too or the API rejects the message.
MARKDOWN_V2_RESERVED = "\\_*[]()~`>#+-=|{}.!"
_MARKDOWN_V2_RE = re.compile(f"([{re.escape(MARKDOWN_V2_RESERVED)}])")


def escape_markdown_v2(text: str) -> str:
    """Prefix every MarkdownV2 reserved character in *text* with a backslash."""
    return _MARKDOWN_V2_RE.sub(r"\\\1", text)


def format_notification(payload: NotificationPayload) -> str:
    """Build the MarkdownV2 notification body for an important mention."""
    sender = escape_markdown_v2(payload.sender_name or "Unknown User")
    server = escape_markdown_v2(payload.server_name or "Unknown Server")
    reason = escape_markdown_v2(payload.reason)
    text = escape_markdown_v2(payload.text or "No message content")

    return (
        "*🔔 PingPal Alert: Important Discord Mention*\n"
        "\n"
        f"*From:* {sender}\n"
        f"*Server:* {server}\n"
        "\n"
        f"*Reason:* {reason}\n"
        "\n"
        "*Original Message:*\n"
        f"```\n{text}\n```\n"
        "\n"
        f"[Link to Discord Message]({payload.link})"
    )


class ServiceRegistry:
    """Named delivery services available to the notifier."""

    def __init__(self) -> None:
        self._services: dict[str, object] = {}

    def register(self, name: str, service: object) -> None:
        self._services[name] = service

    def get_service(self, name: str) -> object | None:
        return self._services.get(name)


class TelegramBotChannel:
    """DeliveryChannel that sends messages through the Telegram Bot API."""

    def __init__(self, bot_token: str, timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._timeout = timeout

    def _endpoint(self) -> str:
        return f"{TELEGRAM_API_URL}/bot{self._bot_token}/sendMessage"

    async def send(
        self, recipient_id: str, text: str, options: dict[str, Any] | None = None
    ) -> None:
        payload = {
            "chat_id": recipient_id,
            "text": text,
            "disable_web_page_preview": True,
            **(options or {}),
        }
        try:
            resp = await asyncio.to_thread(
                requests.post, self._endpoint(), json=payload, timeout=self._timeout
            )
        except requests.RequestException as exc:
            # Transport errors embed the request URL, which carries the token.
            raise RuntimeError(f"Bot API request failed: {type(exc).__name__}") from None
        if not resp.ok:
            raise RuntimeError(f"Bot API error {resp.status_code}: {resp.text}")


class Notifier:
    """Relays important mentions to the configured recipient."""

    def __init__(
        self,
        registry: DeliveryRegistry,
        *,
        service_name: str,
        recipient_id: str | None,
    ) -> None:
        self._registry = registry
        self._service_name = service_name
        self._recipient_id = recipient_id

    async def notify(self, payload: NotificationPayload) -> bool:
        """Send a notification for *payload*.

        Returns True when the message was handed to the delivery channel.
        Configuration, lookup and transport failures are logged, never raised.
        """
        if not self._recipient_id:
            logger.error(
                "Notification recipient not configured; cannot notify for message %s",
                payload.message_id,
            )
            return False

        try:
            channel = self._registry.get_service(self._service_name)
            if channel is None:
                logger.error(
                    "Delivery service '%s' not found; cannot notify for message %s",
                    self._service_name,
                    payload.message_id,
                )
                return False
            if not isinstance(channel, DeliveryChannel):
                logger.error(
                    "Delivery service '%s' (%s) has no send capability",
                    self._service_name,
                    type(channel).__name__,
                )
                return False

            text = format_notification(payload)
            logger.debug(
                "Sending notification for message %s (%d chars)",
                payload.message_id,
                len(text),
            )
            await channel.send(self._recipient_id, text, {"parse_mode": "MarkdownV2"})
        except Exception:
            logger.exception(
                "Failed to send notification for message %s to %s",
                payload.message_id,
                self._recipient_id,
            )
            return False

        logger.info(
            "Notification sent for message %s to %s", payload.message_id, self._recipient_id
        )
        return True
