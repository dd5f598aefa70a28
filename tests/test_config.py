import pytest

from qbitgram.config import ConfigurationError, Settings
from qbitgram.qbittorrent import AddOptions
from qbitgram.telegram.models import TelegramBotConfig

BASE_ENV = {
    "TELEGRAM_TOKEN": "123456:ABCDEFGHIJ",
    "QBT_HOST": "http://nas:8080/",
    "QBT_USERNAME": "admin",
    "QBT_PASSWORD": "secret",
}


class TestSettings:
    def test_minimal(self):
        settings = Settings.from_env(BASE_ENV)
        assert settings.telegram.bot_token == "123456:ABCDEFGHIJ"
        assert settings.telegram.allowed_user_ids == []
        assert settings.qbittorrent.host == "http://nas:8080"
        assert settings.qbittorrent.timeout == 20.0
        assert settings.qbittorrent.defaults == AddOptions()
        assert settings.poll_interval == 5.0

    def test_defaults_and_allow_list(self):
        env = dict(
            BASE_ENV,
            QBT_CATEGORY="movies",
            QBT_SAVE_PATH="/data",
            QBT_TAGS="bot",
            QBT_PAUSED="1",
            ALLOWED_USER_IDS=" 111, 222 ,",
            QBITGRAM_POLL_INTERVAL="2.5",
        )
        settings = Settings.from_env(env)
        assert settings.qbittorrent.defaults == AddOptions(category="movies", savepath="/data", tags="bot", paused="true")
        assert settings.telegram.allowed_user_ids == [111, 222]
        assert settings.poll_interval == 2.5

    def test_missing_required(self):
        env = dict(BASE_ENV)
        del env["QBT_PASSWORD"]
        del env["TELEGRAM_TOKEN"]
        with pytest.raises(ConfigurationError, match="TELEGRAM_TOKEN, QBT_PASSWORD"):
            Settings.from_env(env)

    def test_telegram_token_optional_for_cli(self):
        env = dict(BASE_ENV)
        del env["TELEGRAM_TOKEN"]
        settings = Settings.from_env(env, require_telegram=False)
        assert settings.telegram.bot_token == ""

    def test_invalid_values(self):
        with pytest.raises(ConfigurationError):
            Settings.from_env(dict(BASE_ENV, ALLOWED_USER_IDS="alice"))
        with pytest.raises(ConfigurationError):
            Settings.from_env(dict(BASE_ENV, QBITGRAM_POLL_INTERVAL="0"))
        with pytest.raises(ConfigurationError):
            Settings.from_env(dict(BASE_ENV, QBITGRAM_HTTP_TIMEOUT="soon"))

    def test_safe_dict_masks_secrets(self):
        safe = Settings.from_env(BASE_ENV).to_safe_dict()
        assert safe["telegram"]["bot_token"] == "1234...GHIJ"
        assert safe["qbittorrent"]["password"] == "***"


class TestTelegramBotConfig:
    def test_empty_allow_list_allows_everyone(self):
        assert TelegramBotConfig().is_allowed(999)
        assert TelegramBotConfig().is_allowed(None)

    def test_allow_list(self):
        config = TelegramBotConfig(allowed_user_ids=[111])
        assert config.is_allowed(111)
        assert not config.is_allowed(222)
        assert not config.is_allowed(None)
