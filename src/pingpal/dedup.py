"""Duplicate-delivery guard backed by the processing log."""

import logging

from pingpal.ports import ProcessingLog

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 50


class DedupGuard:
    """Checks recent processing records before a mention is analysed again."""

    def __init__(self, log: ProcessingLog, window: int = DEFAULT_WINDOW) -> None:
        self._log = log
        self._window = window

    async def seen(self, room_id: str, message_id: str) -> bool:
        """Return True if *message_id* already has a record in *room_id*.

        Only the most recent ``window`` records of the room are examined;
        store errors propagate to the caller.
        """
        records = await self._log.query(room_id=room_id, limit=self._window)
        for record in records:
            if record.message_id == message_id:
                logger.debug(
                    "Found prior record for message %s in room %s", message_id, room_id
                )
                return True
        return False
