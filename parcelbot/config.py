"""
Configuration management for parcelbot.
Handles loading settings from environment variables and config files.
"""

import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv


@dataclass
class BotConfig:
    """Main configuration class for the bot."""

    # Telegram
    bot_token: str = ""
    telegram_api_url: str = "https://api.telegram.org"
    polling_timeout: int = 30  # seconds, long-poll duration for getUpdates
    request_timeout: int = 40  # seconds, must exceed polling_timeout
    allowed_chat_ids: list[int] = field(default_factory=list)  # empty = everyone

    # Tracking
    provider_timeout: int = 60  # seconds per provider query, 0 disables

    # === Carrier API Credentials ===
    # FedEx
    fedex_client_id: str = ""
    fedex_client_secret: str = ""

    # UPS
    ups_client_id: str = ""
    ups_client_secret: str = ""

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/parcelbot.log"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "BotConfig":
        """Load configuration from environment variables."""

        # Try to load from .env file
        if env_file:
            load_dotenv(env_file)
        else:
            # Try common locations
            for env_path in ["config.env", ".env", "../config.env"]:
                if Path(env_path).exists():
                    load_dotenv(env_path)
                    break

        # Parse allowed chats
        chats_str = os.getenv("ALLOWED_CHAT_IDS", "")
        allowed_chat_ids = [int(c.strip()) for c in chats_str.split(",") if c.strip()]

        return cls(
            # Telegram
            bot_token=os.getenv("BOT_TOKEN", ""),
            telegram_api_url=os.getenv("TELEGRAM_API_URL", "https://api.telegram.org"),
            polling_timeout=int(os.getenv("POLLING_TIMEOUT", "30")),
            request_timeout=int(os.getenv("REQUEST_TIMEOUT", "40")),
            allowed_chat_ids=allowed_chat_ids,

            # Tracking
            provider_timeout=int(os.getenv("PROVIDER_TIMEOUT", "60")),

            # FedEx
            fedex_client_id=os.getenv("FEDEX_CLIENT_ID", ""),
            fedex_client_secret=os.getenv("FEDEX_CLIENT_SECRET", ""),

            # UPS
            ups_client_id=os.getenv("UPS_CLIENT_ID", ""),
            ups_client_secret=os.getenv("UPS_CLIENT_SECRET", ""),

            # Logging
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/parcelbot.log"),
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.bot_token:
            errors.append("BOT_TOKEN is required")
        if self.request_timeout <= self.polling_timeout:
            errors.append("REQUEST_TIMEOUT must be greater than POLLING_TIMEOUT")
        if self.provider_timeout < 0:
            errors.append("PROVIDER_TIMEOUT cannot be negative")

        # Carriers - warning if none configured
        if not (self.fedex_client_id or self.ups_client_id):
            errors.append("Warning: no carrier credentials configured - /track will match nothing")

        return errors


# Global config instance
_config: Optional[BotConfig] = None


def get_config() -> BotConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = BotConfig.from_env()
    return _config


def init_config(env_file: Optional[str] = None) -> BotConfig:
    """Initialize configuration from environment."""
    global _config
    _config = BotConfig.from_env(env_file)
    Path(_config.log_file).parent.mkdir(parents=True, exist_ok=True)
    return _config
