"""Tests for the shared data models."""

from datetime import datetime, timezone

import pytest

from pingpal.models import (
    Classification,
    InboundMessage,
    Outcome,
    ProcessingRecord,
    RecordStatus,
)


class TestOutcome:
    def test_all_members_present(self):
        members = {member.name for member in Outcome}
        assert members == {"IGNORED", "NOT_CONFIGURED", "ERROR", "SKIPPED", "DONE"}

    def test_lookup_by_value(self):
        assert Outcome("skipped") is Outcome.SKIPPED
        assert RecordStatus("duplicate") is RecordStatus.DUPLICATE


class TestInboundMessage:
    def test_optional_fields_default(self):
        msg = InboundMessage(id="1", room_id="r", sender_id="s", text="hi")
        assert msg.source_url is None
        assert msg.created_at is None
        assert msg.mentions is None


class TestClassification:
    def test_fallback_defaults_to_false(self):
        result = Classification(important=True, reason="deadline")
        assert result.fallback is False


class TestProcessingRecord:
    def test_recorded_at_defaults_to_now_utc(self):
        record = ProcessingRecord(
            message_id="333",
            room_id="r",
            important=False,
            reason="fine",
            server_id="111",
            channel_id="222",
            sender_id="s",
        )
        assert record.recorded_at.tzinfo is timezone.utc
        assert record.recorded_at <= datetime.now(timezone.utc)

    def test_records_are_immutable(self):
        record = ProcessingRecord(
            message_id="333",
            room_id="r",
            important=False,
            reason="fine",
            server_id="111",
            channel_id="222",
            sender_id="s",
        )
        with pytest.raises(AttributeError):
            record.important = True
