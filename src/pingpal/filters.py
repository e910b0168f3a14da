"""Mention detection for the configured target user."""

from pingpal.models import InboundMessage

# Discord-native user and nickname mentions, plus the "(@id)" form some hosts
# render mentions into. Each token is closed so a shorter ID never matches.
MENTION_FORMATS = ("<@{user_id}>", "<@!{user_id}>", "(@{user_id})")


def mention_tokens(user_id: str) -> list[str]:
    """Return the literal tokens that mean *user_id* is mentioned."""
    return [fmt.format(user_id=user_id) for fmt in MENTION_FORMATS]


def is_mention(msg: InboundMessage, target_user_id: str) -> bool:
    """Return True if *msg* mentions *target_user_id*.

    Structured mention IDs supplied by the event source take precedence;
    otherwise the text is searched for a mention token (case-sensitive).
    """
    if not target_user_id:
        raise ValueError("target_user_id is required")

    if msg.mentions is not None:
        return target_user_id in msg.mentions

    return any(token in msg.text for token in mention_tokens(target_user_id))
