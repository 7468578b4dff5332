"""
Notification Configuration.

Channel credentials and message template, read from the environment:

    TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID (comma-separated)
    DISCORD_WEBHOOK_URL
    NOTIFY_FORMAT = detailed | compact | minimal
    NOTIFY_SHOW_TIMESTAMP / _TICKER / _STRATEGY / _TRIGGERS / _SCORE
    TELEGRAM_MAX_PER_MINUTE, TELEGRAM_MAX_PER_HOUR
    NOTIFY_TIMEOUT_SECONDS
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Tuple

from core.env import env_bool, env_float, env_int, env_list, env_str
from core.exceptions import ConfigurationError


FORMAT_DETAILED = "detailed"
FORMAT_COMPACT = "compact"
FORMAT_MINIMAL = "minimal"

SUPPORTED_FORMATS = (FORMAT_DETAILED, FORMAT_COMPACT, FORMAT_MINIMAL)


@dataclass(frozen=True)
class MessageTemplate:
    """Which parts of a completion message are shown, and how."""

    format: str = FORMAT_DETAILED
    show_timestamp: bool = True
    show_ticker: bool = True
    show_strategy: bool = True
    show_triggers: bool = True
    show_score: bool = True

    def __post_init__(self) -> None:
        if self.format not in SUPPORTED_FORMATS:
            raise ConfigurationError(
                f"Unknown message format: {self.format}",
                config_key="NOTIFY_FORMAT",
                actual_value=self.format,
            )

    @classmethod
    def from_env(cls) -> "MessageTemplate":
        return cls(
            format=env_str("NOTIFY_FORMAT", FORMAT_DETAILED).lower() or FORMAT_DETAILED,
            show_timestamp=env_bool("NOTIFY_SHOW_TIMESTAMP", True),
            show_ticker=env_bool("NOTIFY_SHOW_TICKER", True),
            show_strategy=env_bool("NOTIFY_SHOW_STRATEGY", True),
            show_triggers=env_bool("NOTIFY_SHOW_TRIGGERS", True),
            show_score=env_bool("NOTIFY_SHOW_SCORE", True),
        )


@dataclass(frozen=True)
class NotificationConfig:
    """Channel settings. A channel is enabled when its credentials are set."""

    telegram_bot_token: str = ""
    telegram_chat_ids: Tuple[str, ...] = ()
    discord_webhook_url: str = ""
    template: MessageTemplate = field(default_factory=MessageTemplate)
    telegram_max_per_minute: int = 20
    telegram_max_per_hour: int = 100
    timeout_seconds: float = 10.0

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_ids)

    @property
    def discord_enabled(self) -> bool:
        return bool(self.discord_webhook_url)

    @classmethod
    def from_env(cls) -> "NotificationConfig":
        return cls(
            telegram_bot_token=env_str("TELEGRAM_BOT_TOKEN"),
            telegram_chat_ids=tuple(env_list("TELEGRAM_CHAT_ID")),
            discord_webhook_url=env_str("DISCORD_WEBHOOK_URL"),
            template=MessageTemplate.from_env(),
            telegram_max_per_minute=env_int("TELEGRAM_MAX_PER_MINUTE", 20),
            telegram_max_per_hour=env_int("TELEGRAM_MAX_PER_HOUR", 100),
            timeout_seconds=env_float("NOTIFY_TIMEOUT_SECONDS", 10.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Settings with secrets masked."""
        data = asdict(self)
        data["telegram_bot_token"] = "***" if self.telegram_bot_token else ""
        data["discord_webhook_url"] = "***" if self.discord_webhook_url else ""
        data["telegram_chat_ids"] = list(self.telegram_chat_ids)
        return data
