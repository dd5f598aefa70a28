import logging

import pytest
from unittest.mock import AsyncMock

from click.testing import CliRunner

import main

ENV = {
    "TELEGRAM_TOKEN": "123456:ABCDEFGHIJ",
    "QBT_HOST": "http://nas:8080",
    "QBT_USERNAME": "admin",
    "QBT_PASSWORD": "hunter2",
}


@pytest.fixture
def env(monkeypatch):
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("QBITGRAM_LOG_JSON", raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestRunCommand:
    def test_logs_masked_settings(self, env, monkeypatch):
        run_bot = AsyncMock()
        monkeypatch.setattr("qbitgram.telegram.bot.run_bot", run_bot)

        result = CliRunner().invoke(main.cli, ["--log-level", "debug", "run", "--poll-interval", "2"])

        assert result.exit_code == 0, result.output
        assert "Loaded settings" in result.output
        assert "1234...GHIJ" in result.output
        assert "123456:ABCDEFGHIJ" not in result.output
        assert "hunter2" not in result.output
        settings = run_bot.await_args.args[0]
        assert settings.poll_interval == 2.0

    def test_missing_configuration_exits(self, env, monkeypatch):
        monkeypatch.delenv("QBT_HOST")
        result = CliRunner().invoke(main.cli, ["run"])
        assert result.exit_code == 1
        assert "QBT_HOST" in result.output
