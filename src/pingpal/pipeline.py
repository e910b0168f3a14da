"""Mention-handling pipeline.

Steps: detect mention → parse permalink → dedup check → resolve context →
classify → record → (important) notify.
"""

from __future__ import annotations

import asyncio
import logging

from pingpal.config import Config
from pingpal.context import ContextResolver
from pingpal.dedup import DedupGuard
from pingpal.filters import is_mention
from pingpal.llm_classifier import classify
from pingpal.models import InboundMessage, NotificationPayload, Outcome, RecordStatus
from pingpal.notifier import Notifier
from pingpal.permalink import parse_message_url
from pingpal.ports import DeliveryRegistry, DirectoryService, ProcessingLog, ReasoningService
from pingpal.recorder import ProcessingRecorder, build_record

logger = logging.getLogger(__name__)


class MentionPipeline:
    """Processes inbound messages one at a time; holds no per-message state."""

    def __init__(
        self,
        config: Config,
        *,
        directory: DirectoryService,
        log: ProcessingLog,
        reasoner: ReasoningService,
        registry: DeliveryRegistry,
    ) -> None:
        self._target_user_id = config.target_discord_user_id
        self._reasoner = reasoner
        self._resolver = ContextResolver(directory)
        self._dedup = DedupGuard(log, window=config.dedup_window)
        self._recorder = ProcessingRecorder(log)
        self._notifier = Notifier(
            registry,
            service_name=config.delivery_service,
            recipient_id=config.target_telegram_user_id,
        )

    async def handle(self, msg: InboundMessage) -> Outcome:
        """Run *msg* through the pipeline and return its terminal state."""
        if not self._target_user_id:
            logger.warning("Target Discord user ID not configured; cannot detect mentions")
            return Outcome.NOT_CONFIGURED

        if not is_mention(msg, self._target_user_id):
            logger.debug("No mention of target in message %s (room %s)", msg.id, msg.room_id)
            return Outcome.IGNORED

        if not msg.source_url:
            logger.error("Mention detected in message %s but its URL is missing", msg.id)
            return Outcome.ERROR

        link = parse_message_url(msg.source_url)
        if not link:
            logger.error(
                "Mention detected in message %s but IDs could not be parsed from %s",
                msg.id,
                msg.source_url,
            )
            return Outcome.ERROR

        message_id = link["message_id"]
        logger.info(
            "Mention detected: message %s (room %s, guild %s, channel %s)",
            message_id,
            msg.room_id,
            link["guild_id"],
            link["channel_id"],
        )

        try:
            if await self._dedup.seen(msg.room_id, message_id):
                logger.info("Mention %s already processed; skipping", message_id)
                return Outcome.SKIPPED
        except Exception:
            logger.exception("Error checking for duplicate mention %s", message_id)
            return Outcome.ERROR

        context, sender_name = await asyncio.gather(
            self._resolver.resolve(msg.room_id, link),
            self._resolver.resolve_sender_name(msg.sender_id),
        )
        if context is None:
            logger.error("Aborting analysis of message %s: context unresolved", message_id)
            return Outcome.ERROR

        classification = await classify(
            self._reasoner,
            text=msg.text,
            sender_name=sender_name,
            channel_id=context.channel_id,
            server_name=context.server_name,
            target_user_id=self._target_user_id,
        )
        logger.info(
            "Classified message %s: important=%s reason=%s",
            message_id,
            classification.important,
            classification.reason,
        )

        status = await self._recorder.record(
            build_record(msg, message_id, context, classification)
        )
        if status is RecordStatus.DUPLICATE:
            # Another delivery of the same message got there first.
            return Outcome.SKIPPED

        if classification.important:
            await self._notifier.notify(
                NotificationPayload(
                    text=msg.text,
                    sender_name=sender_name,
                    server_name=context.server_name,
                    reason=classification.reason,
                    link=msg.source_url,
                    message_id=message_id,
                )
            )
        else:
            logger.info("Mention %s not important; no notification", message_id)

        return Outcome.DONE
