"""Configuration loading and validation for pingpal."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.config/pingpal/config.yaml"

# Settings that may also come from the environment.
ENV_FALLBACKS = {
    "target_discord_user_id": "PINGPAL_TARGET_DISCORD_USERID",
    "target_telegram_user_id": "PINGPAL_TARGET_TELEGRAM_USERID",
}

KNOWN_KEYS = {
    "target_discord_user_id",
    "target_telegram_user_id",
    "model",
    "ollama_url",
    "ollama_timeout",
    "dedup_window",
    "db_path",
    "delivery_service",
    "notification_timeout",
}


@dataclass
class Config:
    target_discord_user_id: str | None = None
    target_telegram_user_id: str | None = None
    model: str = "llama3.2:3b"
    ollama_url: str = "http://localhost:11434"
    ollama_timeout: int = 10
    dedup_window: int = 50
    db_path: str = "~/.local/share/pingpal/processed.db"
    delivery_service: str = "telegram"
    notification_timeout: int = 10


def resolve_setting(
    key: str,
    settings: Mapping,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Resolve a single identifier setting.

    Precedence:
    1. A non-empty value in *settings* (the config file)
    2. The environment variable listed in ENV_FALLBACKS
    3. None
    """
    if environ is None:
        environ = os.environ

    value = settings.get(key)
    if value is not None and str(value).strip():
        # YAML reads bare Discord snowflakes as ints.
        return str(value).strip()

    env_name = ENV_FALLBACKS.get(key)
    if env_name:
        env_value = environ.get(env_name)
        if env_value and env_value.strip():
            return env_value.strip()

    return None


def _validate_config(config: Config) -> None:
    """Validate config values, raising ValueError on invalid fields."""
    for name in ("ollama_timeout", "notification_timeout"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name} must be a number, got {type(value).__name__}")
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")

    if isinstance(config.dedup_window, bool) or not isinstance(config.dedup_window, int):
        raise ValueError(
            f"dedup_window must be an integer, got {type(config.dedup_window).__name__}"
        )
    if config.dedup_window <= 0:
        raise ValueError(f"dedup_window must be positive, got {config.dedup_window}")


def config_from_mapping(raw: Mapping, environ: Mapping[str, str] | None = None) -> Config:
    """Build a validated Config from a parsed mapping plus environment fallbacks."""
    for key in raw:
        if key not in KNOWN_KEYS:
            logger.warning("Unknown config key '%s'; ignoring", key)

    config = Config()

    config.target_discord_user_id = resolve_setting("target_discord_user_id", raw, environ)
    config.target_telegram_user_id = resolve_setting("target_telegram_user_id", raw, environ)

    if "model" in raw:
        config.model = str(raw["model"])
    if "ollama_url" in raw:
        config.ollama_url = str(raw["ollama_url"]).rstrip("/")
    if "ollama_timeout" in raw:
        config.ollama_timeout = raw["ollama_timeout"]
    if "dedup_window" in raw:
        config.dedup_window = raw["dedup_window"]
    if "db_path" in raw:
        config.db_path = str(raw["db_path"])
    if "delivery_service" in raw:
        config.delivery_service = str(raw["delivery_service"])
    if "notification_timeout" in raw:
        config.notification_timeout = raw["notification_timeout"]

    _validate_config(config)

    return config


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML file.

    Config path resolution order:
    1. Explicit path argument
    2. PINGPAL_CONFIG_PATH environment variable
    3. ~/.config/pingpal/config.yaml

    A missing default file is not an error: every setting then comes from
    defaults and environment variables.
    """
    if path is None:
        path = os.environ.get("PINGPAL_CONFIG_PATH")

    if path is None:
        default_path = os.path.expanduser(DEFAULT_CONFIG_PATH)
        if not os.path.exists(default_path):
            logger.info("No config file at %s; using environment only", default_path)
            return config_from_mapping({})
        path = default_path

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a YAML mapping, got {type(raw).__name__}")

    return config_from_mapping(raw)
