"""Discord message permalink parsing."""

import logging
import re

logger = logging.getLogger(__name__)

# https://discord.com/channels/{guild}/{channel}/{message}
_MESSAGE_URL_RE = re.compile(r"channels/(\d+)/(\d+)/(\d+)")


def parse_message_url(url: str | None) -> dict[str, str]:
    """Extract guild, channel and message IDs from a Discord message URL.

    Returns a dict with ``guild_id``, ``channel_id`` and ``message_id`` keys,
    or an empty dict when the URL is missing or does not match.
    """
    if not url or not isinstance(url, str):
        return {}

    match = _MESSAGE_URL_RE.search(url)
    if match is None:
        logger.warning("Failed to parse Discord message URL: %r", url)
        return {}

    guild_id, channel_id, message_id = match.groups()
    return {
        "guild_id": guild_id,
        "channel_id": channel_id,
        "message_id": message_id,
    }
