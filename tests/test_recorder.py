"""Tests for the processing recorder."""

import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from pingpal.models import (
    Classification,
    InboundMessage,
    RecordStatus,
    ResolvedContext,
)
from pingpal.ports import DuplicateRecordError
from pingpal.recorder import ProcessingRecorder, build_record

CREATED = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_record():
    msg = InboundMessage(
        id="m-1",
        room_id="room-1",
        sender_id="555",
        text="ping (@42)",
        source_url="https://discord.com/channels/111/222/333",
        created_at=CREATED,
    )
    context = ResolvedContext(server_id="111", channel_id="222", server_name="Acme")
    return build_record(msg, "333", context, Classification(important=True, reason="urgent"))


class TestBuildRecord:
    def test_fields_copied(self):
        record = make_record()

        assert record.message_id == "333"
        assert record.room_id == "room-1"
        assert record.important is True
        assert record.reason == "urgent"
        assert record.server_id == "111"
        assert record.channel_id == "222"
        assert record.sender_id == "555"
        assert record.original_timestamp == CREATED


class TestProcessingRecorder:
    @pytest.mark.asyncio
    async def test_successful_write(self):
        log = AsyncMock()
        record = make_record()

        status = await ProcessingRecorder(log).record(record)

        assert status is RecordStatus.WRITTEN
        log.append.assert_awaited_once_with(record)

    @pytest.mark.asyncio
    async def test_duplicate_reported(self):
        log = AsyncMock()
        log.append.side_effect = DuplicateRecordError("exists")

        status = await ProcessingRecorder(log).record(make_record())

        assert status is RecordStatus.DUPLICATE

    @pytest.mark.asyncio
    async def test_write_failure_swallowed_and_logged(self, caplog):
        log = AsyncMock()
        log.append.side_effect = OSError("disk full")

        with caplog.at_level(logging.ERROR):
            status = await ProcessingRecorder(log).record(make_record())

        assert status is RecordStatus.FAILED
        assert "Failed to record processed mention 333" in caplog.text
