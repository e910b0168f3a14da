"""Audit records for analysed mentions."""

import logging

from pingpal.models import (
    Classification,
    InboundMessage,
    ProcessingRecord,
    RecordStatus,
    ResolvedContext,
)
from pingpal.ports import DuplicateRecordError, ProcessingLog

logger = logging.getLogger(__name__)


def build_record(
    msg: InboundMessage,
    message_id: str,
    context: ResolvedContext,
    classification: Classification,
) -> ProcessingRecord:
    return ProcessingRecord(
        message_id=message_id,
        room_id=msg.room_id,
        important=classification.important,
        reason=classification.reason,
        server_id=context.server_id,
        channel_id=context.channel_id,
        sender_id=msg.sender_id,
        original_timestamp=msg.created_at,
    )


class ProcessingRecorder:
    """Appends one record per analysed mention; write failures never propagate."""

    def __init__(self, log: ProcessingLog) -> None:
        self._log = log

    async def record(self, record: ProcessingRecord) -> RecordStatus:
        try:
            await self._log.append(record)
        except DuplicateRecordError:
            logger.info(
                "Message %s already recorded in room %s", record.message_id, record.room_id
            )
            return RecordStatus.DUPLICATE
        except Exception:
            logger.exception(
                "Failed to record processed mention %s (room %s)",
                record.message_id,
                record.room_id,
            )
            return RecordStatus.FAILED

        logger.info(
            "Recorded mention %s: important=%s reason=%s",
            record.message_id,
            record.important,
            record.reason,
        )
        return RecordStatus.WRITTEN
