"""Entry point for pingpal."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from pingpal.config import Config, load_config
from pingpal.discord_listener import DiscordDirectory, DiscordListener
from pingpal.llm_classifier import OllamaReasoner
from pingpal.notifier import ServiceRegistry, TelegramBotChannel
from pingpal.pipeline import MentionPipeline
from pingpal.storage import SQLiteProcessingLog

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pingpal",
        description="Relay important Discord mentions to Telegram.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help="Path to config YAML (default: ~/.config/pingpal/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    return parser.parse_args(argv)


def build_registry(config: Config, telegram_token: str | None) -> ServiceRegistry:
    """Register the delivery channels available for notifications."""
    registry = ServiceRegistry()
    if telegram_token:
        registry.register(
            config.delivery_service,
            TelegramBotChannel(telegram_token, timeout=config.notification_timeout),
        )
    else:
        logger.warning("TELEGRAM_BOT_TOKEN not set; important mentions cannot be relayed")
    return registry


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        level=getattr(logging, args.log_level),
    )
    logging.getLogger("discord").setLevel(logging.WARNING)

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        logger.error("Config file not found: %s", exc)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)

    logger.info("Configuration loaded successfully")
    if not config.target_discord_user_id:
        logger.warning("target_discord_user_id not configured; mentions will not be detected")

    discord_token = os.environ.get("DISCORD_BOT_TOKEN")
    if not discord_token:
        logger.error("DISCORD_BOT_TOKEN environment variable is required")
        sys.exit(1)

    log = SQLiteProcessingLog(config.db_path)
    log.init_db()

    listener = DiscordListener()
    pipeline = MentionPipeline(
        config,
        directory=DiscordDirectory(listener.client),
        log=log,
        reasoner=OllamaReasoner(config),
        registry=build_registry(config, os.environ.get("TELEGRAM_BOT_TOKEN")),
    )
    listener.set_handler(pipeline.handle)

    logger.info("Starting pingpal")
    listener.run(discord_token)
