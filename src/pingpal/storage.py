"""SQLite processing log.

Implements the ProcessingLog port with an append-only table. The UNIQUE
constraint on (room_id, message_id) makes a second record for the same
mention impossible, even when two deliveries race past the dedup check.
"""

from __future__ import annotations

import asyncio
import os
import sqlite3
from contextlib import closing
from datetime import datetime

from pingpal.models import ProcessingRecord
from pingpal.ports import DuplicateRecordError


def _parse_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteProcessingLog:
    """Thin SQLite wrapper that satisfies the ProcessingLog contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = os.path.expanduser(db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the processed_mentions table if it does not exist."""
        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with closing(self._connect()) as conn, conn:
            # Fields:
            # - room_id / message_id: dedup key, one row per mention
            # - important / reason: classification outcome (fallbacks included)
            # - server_id / channel_id: resolved Discord context
            # - sender_id / original_timestamp: from the source message
            # - recorded_at: when the row was written
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS processed_mentions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    room_id TEXT NOT NULL,
                    message_id TEXT NOT NULL,
                    important INTEGER NOT NULL,
                    reason TEXT NOT NULL,
                    server_id TEXT NOT NULL,
                    channel_id TEXT NOT NULL,
                    sender_id TEXT NOT NULL,
                    original_timestamp TEXT,
                    recorded_at TEXT NOT NULL,
                    UNIQUE (room_id, message_id)
                )
                """
            )

    async def query(self, room_id: str, limit: int) -> list[ProcessingRecord]:
        """Return up to *limit* most recent records for *room_id*."""
        return await asyncio.to_thread(self._query, room_id, limit)

    async def append(self, record: ProcessingRecord) -> None:
        """Insert *record*; raises DuplicateRecordError if its key exists."""
        await asyncio.to_thread(self._append, record)

    def _query(self, room_id: str, limit: int) -> list[ProcessingRecord]:
        with closing(self._connect()) as conn:
            rows = conn.execute(
                """
                SELECT * FROM processed_mentions
                WHERE room_id = ?
                ORDER BY id DESC
                LIMIT ?
                """,
                (room_id, limit),
            ).fetchall()
        return [
            ProcessingRecord(
                message_id=row["message_id"],
                room_id=row["room_id"],
                important=bool(row["important"]),
                reason=row["reason"],
                server_id=row["server_id"],
                channel_id=row["channel_id"],
                sender_id=row["sender_id"],
                original_timestamp=_parse_timestamp(row["original_timestamp"]),
                recorded_at=datetime.fromisoformat(row["recorded_at"]),
            )
            for row in rows
        ]

    def _append(self, record: ProcessingRecord) -> None:
        original = record.original_timestamp.isoformat() if record.original_timestamp else None
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    """
                    INSERT INTO processed_mentions (
                        room_id,
                        message_id,
                        important,
                        reason,
                        server_id,
                        channel_id,
                        sender_id,
                        original_timestamp,
                        recorded_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.room_id,
                        record.message_id,
                        int(record.important),
                        record.reason,
                        record.server_id,
                        record.channel_id,
                        record.sender_id,
                        original,
                        record.recorded_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateRecordError(
                f"message {record.message_id} already recorded for room {record.room_id}"
            ) from exc
