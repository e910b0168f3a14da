"""Shared data structures used across all components."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Outcome(Enum):
    """Terminal state of one message's trip through the pipeline."""

    IGNORED = "ignored"
    NOT_CONFIGURED = "not_configured"
    ERROR = "error"
    SKIPPED = "skipped"
    DONE = "done"


class RecordStatus(Enum):
    WRITTEN = "written"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class InboundMessage:
    id: str  # host-side message ID
    room_id: str  # host-side room (channel) ID
    sender_id: str  # raw user ID
    text: str  # message body
    source_url: str | None = None  # permalink to the original Discord message
    created_at: datetime | None = None
    mentions: list[str] | None = None  # structured mention IDs, None if the source has none


@dataclass
class ResolvedContext:
    server_id: str
    channel_id: str
    server_name: str
    channel_name: str | None = None


@dataclass
class Classification:
    important: bool
    reason: str  # brief explanation from the LLM
    fallback: bool = False  # true when the fail-safe default was substituted


@dataclass(frozen=True)
class ProcessingRecord:
    message_id: str  # original Discord message ID, the dedup key
    room_id: str
    important: bool
    reason: str
    server_id: str
    channel_id: str
    sender_id: str
    original_timestamp: datetime | None = None
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class NotificationPayload:
    text: str
    sender_name: str
    server_name: str
    reason: str
    link: str
    message_id: str
