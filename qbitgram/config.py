"""
Environment-based configuration.
"""
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from .qbittorrent.models import AddOptions, QBittorrentConfig, bool_param
from .telegram.models import TelegramBotConfig


class ConfigurationError(Exception):
    """Missing or invalid configuration"""
    pass


def _parse_user_ids(raw: str) -> List[int]:
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError:
            raise ConfigurationError(f"ALLOWED_USER_IDS contains a non-numeric id: {part!r}")
    return ids


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass
class Settings:
    telegram: TelegramBotConfig = field(default_factory=TelegramBotConfig)
    qbittorrent: QBittorrentConfig = field(default_factory=QBittorrentConfig)
    poll_interval: float = 5.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, require_telegram: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        With no explicit mapping, a ``.env`` file in the working directory is
        loaded first (existing variables take precedence).
        """
        if env is None:
            load_dotenv()
            env = os.environ

        required = ["QBT_HOST", "QBT_USERNAME", "QBT_PASSWORD"]
        if require_telegram:
            required.insert(0, "TELEGRAM_TOKEN")
        missing = [name for name in required if not env.get(name)]
        if missing:
            raise ConfigurationError(f"{', '.join(missing)} must be set")

        defaults = AddOptions(
            category=env.get("QBT_CATEGORY") or None,
            savepath=env.get("QBT_SAVE_PATH") or None,
            tags=env.get("QBT_TAGS") or None,
            paused=bool_param(env.get("QBT_PAUSED")),
        )
        return cls(
            telegram=TelegramBotConfig(
                bot_token=env.get("TELEGRAM_TOKEN", ""),
                allowed_user_ids=_parse_user_ids(env.get("ALLOWED_USER_IDS", "")),
            ),
            qbittorrent=QBittorrentConfig(
                host=env["QBT_HOST"],
                username=env["QBT_USERNAME"],
                password=env["QBT_PASSWORD"],
                timeout=_parse_float(env, "QBITGRAM_HTTP_TIMEOUT", 20.0),
                defaults=defaults,
            ),
            poll_interval=_parse_float(env, "QBITGRAM_POLL_INTERVAL", 5.0),
        )

    def to_safe_dict(self) -> dict:
        return {
            "telegram": self.telegram.to_safe_dict(),
            "qbittorrent": self.qbittorrent.to_safe_dict(),
            "poll_interval": self.poll_interval,
        }
