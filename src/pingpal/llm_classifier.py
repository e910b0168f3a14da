"""LLM-based importance classifier for Discord mentions."""

import asyncio
import json
import logging
import re
from typing import Any

import requests

from pingpal.config import Config
from pingpal.models import Classification
from pingpal.ports import ReasoningService

logger = logging.getLogger(__name__)

FALLBACK_REASON = "classification failed"

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "important": {"type": "boolean"},
        "reason": {"type": "string"},
    },
    "required": ["important", "reason"],
}

PROMPT_TEMPLATE = """\
You are an assistant helping filter Discord server messages. Analyze the \
following message sent by '{sender}' in the channel '#{channel}' on server \
'{server}'. Determine if this message requires the urgent attention or action \
of the mentioned user ('(@{target})'). Consider keywords like 'urgent', 'action \
needed', 'deadline', 'blocker', 'ping', 'help', direct questions, or tasks \
assigned.

Respond ONLY with a JSON object containing "important" (boolean, true if the \
message requires urgent attention or action by the mentioned user) and \
"reason" (a brief justification, 1-2 sentences).

Message Text:
"{text}"
"""

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def build_prompt(
    *,
    text: str,
    sender_name: str,
    channel_id: str,
    server_name: str,
    target_user_id: str,
) -> str:
    """Format the classification instruction sent to the reasoning service."""
    return PROMPT_TEMPLATE.format(
        sender=sender_name,
        channel=channel_id,
        server=server_name,
        target=target_user_id,
        text=text,
    )


def parse_response(raw: Any) -> Classification:
    """Validate a reasoning-service response against RESPONSE_SCHEMA.

    Accepts a mapping, or a string holding a JSON object (optionally wrapped
    in prose or a code fence). Raises ValueError for anything else.
    """
    if isinstance(raw, str):
        match = _JSON_OBJECT_RE.search(raw)
        if match is None:
            raise ValueError(f"no JSON object in response: {raw[:200]!r}")
        raw = json.loads(match.group(0))

    if not isinstance(raw, dict):
        raise ValueError(f"expected an object, got {type(raw).__name__}")

    important = raw.get("important")
    reason = raw.get("reason")
    if not isinstance(important, bool):
        raise ValueError(f"'important' must be a boolean, got {important!r}")
    if not isinstance(reason, str):
        raise ValueError(f"'reason' must be a string, got {reason!r}")

    return Classification(important=important, reason=reason)


def _fallback(context: str) -> Classification:
    """Return the fail-safe classification when no valid answer is available."""
    logger.warning("LLM classifier fallback: %s", context)
    return Classification(important=False, reason=FALLBACK_REASON, fallback=True)


async def classify(
    reasoner: ReasoningService,
    *,
    text: str,
    sender_name: str,
    channel_id: str,
    server_name: str,
    target_user_id: str,
) -> Classification:
    """Ask the reasoning service whether a mention needs urgent attention.

    Never raises: invocation errors and malformed responses produce a
    negative fallback Classification so the message is still recorded.
    """
    prompt = build_prompt(
        text=text,
        sender_name=sender_name,
        channel_id=channel_id,
        server_name=server_name,
        target_user_id=target_user_id,
    )
    logger.debug("Calling reasoning service (prompt length %d)", len(prompt))

    try:
        raw = await reasoner.invoke(prompt, RESPONSE_SCHEMA)
    except Exception as exc:
        return _fallback(f"invocation failed: {exc!r}")

    try:
        return parse_response(raw)
    except Exception as exc:
        return _fallback(f"unexpected response: {exc!r}")


class OllamaReasoner:
    """ReasoningService backed by a local Ollama server."""

    def __init__(self, config: Config) -> None:
        self._url = f"{config.ollama_url}/api/chat"
        self._model = config.model
        self._timeout = config.ollama_timeout

    async def invoke(self, prompt: str, schema: dict[str, Any]) -> str:
        """Send *prompt* to Ollama with *schema* as the output format.

        Returns the raw assistant message content.
        """
        body = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "format": schema,
            "stream": False,
        }
        resp = await asyncio.to_thread(
            requests.post, self._url, json=body, timeout=self._timeout
        )
        resp.raise_for_status()
        data = resp.json()
        return data["message"]["content"]
