"""Configuration management for masthead."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

MASTHEAD_HOME = Path(os.environ.get("MASTHEAD_HOME", Path.home() / "masthead"))
CONFIG_FILE = MASTHEAD_HOME / "config" / "masthead.conf"

# Keys that may also be set through the environment
ENV_KEYS = (
    "supabase_url",
    "supabase_service_key",
    "timezone",
    "reminder_check_time",
    "telegram_bot_token",
    "telegram_editor_chats",
    "email_function",
    "occurrence_limit",
)


class ConfigError(Exception):
    """Raised when a required setting is missing or malformed."""

    pass


@dataclass
class Config:
    """masthead configuration."""

    supabase_url: str = ""
    supabase_service_key: str = ""
    timezone: str = "Asia/Jerusalem"
    reminder_check_time: str = "08:00"
    # Telegram chat IDs of editors who receive the daily summary
    telegram_bot_token: str = ""
    telegram_editor_chats: list[int] = field(default_factory=list)
    email_function: str = "send-email"
    occurrence_limit: int = 100

    def require_backend(self) -> None:
        """Raise ConfigError unless the hosted backend is configured."""
        missing = [
            name.upper()
            for name in ("supabase_url", "supabase_service_key")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(
                f"Missing {', '.join(missing)}. Add them to {CONFIG_FILE} or the environment."
            )


def _strip_value(value: str) -> str:
    """Handle quoted values and inline comments: "value" # comment"""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def _apply(config: Config, key: str, value: str) -> None:
    match key:
        case "supabase_url":
            config.supabase_url = value.rstrip("/")
        case "supabase_service_key":
            config.supabase_service_key = value
        case "timezone":
            config.timezone = value
        case "reminder_check_time":
            config.reminder_check_time = value
        case "telegram_bot_token":
            config.telegram_bot_token = value
        case "telegram_editor_chats":
            try:
                config.telegram_editor_chats = [
                    int(c.strip()) for c in value.split(",") if c.strip()
                ]
            except ValueError:
                logger.warning(f"Ignoring malformed TELEGRAM_EDITOR_CHATS: {value}")
        case "email_function":
            config.email_function = value
        case "occurrence_limit":
            try:
                config.occurrence_limit = int(value)
            except ValueError:
                logger.warning(f"Ignoring malformed OCCURRENCE_LIMIT: {value}")
        case _:
            logger.debug(f"Unknown config key: {key}")


def load_config(path: Path | None = None) -> Config:
    """Load configuration from masthead.conf, then apply environment overrides."""
    config = Config()
    path = path or CONFIG_FILE

    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            _apply(config, key.strip().lower(), _strip_value(value.strip()))

    for key in ENV_KEYS:
        value = os.environ.get(key.upper())
        if value:
            _apply(config, key, value)

    return config
