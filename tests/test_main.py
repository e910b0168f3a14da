"""Tests for the main entry point."""

import logging
from unittest.mock import patch

import pytest

from pingpal.config import Config
from pingpal.main import _parse_args, build_registry, main
from pingpal.notifier import TelegramBotChannel


# ── Argument parsing ──────────────────────────────────────────────


class TestParseArgs:
    def test_defaults(self):
        args = _parse_args([])
        assert args.config is None
        assert args.log_level == "INFO"

    def test_config_flag(self):
        args = _parse_args(["--config", "/tmp/my.yaml"])
        assert args.config == "/tmp/my.yaml"

    def test_log_level_flag(self):
        args = _parse_args(["--log-level", "DEBUG"])
        assert args.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            _parse_args(["--log-level", "TRACE"])


# ── Registry ──────────────────────────────────────────────────────


class TestBuildRegistry:
    def test_telegram_registered_with_token(self):
        registry = build_registry(Config(delivery_service="tg"), "TOKEN")
        assert isinstance(registry.get_service("tg"), TelegramBotChannel)

    def test_no_token_no_service(self, caplog):
        with caplog.at_level(logging.WARNING):
            registry = build_registry(Config(), None)

        assert registry.get_service("telegram") is None
        assert "TELEGRAM_BOT_TOKEN not set" in caplog.text


# ── main ──────────────────────────────────────────────────────────


class TestMain:
    def test_missing_config_file_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", "/nonexistent/config.yaml"])
        assert exc_info.value.code == 1

    def test_invalid_config_exits(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("dedup_window: 0\n")

        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_file)])
        assert exc_info.value.code == 1

    def test_missing_discord_token_exits(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text("target_discord_user_id: '42'\n")

        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config_file)])
        assert exc_info.value.code == 1

    @patch("pingpal.main.DiscordListener")
    def test_wires_pipeline_and_runs(self, MockListener, tmp_path, monkeypatch):
        monkeypatch.setenv("DISCORD_BOT_TOKEN", "discord-token")
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "telegram-token")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            f"target_discord_user_id: '42'\ndb_path: {tmp_path / 'log.db'}\n"
        )

        main(["--config", str(config_file)])

        listener = MockListener.return_value
        listener.set_handler.assert_called_once()
        listener.run.assert_called_once_with("discord-token")
        assert (tmp_path / "log.db").exists()
