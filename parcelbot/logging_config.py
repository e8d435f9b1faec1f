"""
Logging configuration for parcelbot.
Uses loguru; command invocations bind their chat context into every record.
"""

import sys
from pathlib import Path
from typing import Optional
from loguru import logger

from parcelbot.config import BotConfig

# "{extra[context]}" is "" outside a command and "[/track:42] " inside one
CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<magenta>{extra[context]}</magenta><level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {extra[context]}{message}"


def setup_logging(config: BotConfig, console: bool = True) -> Path:
    """
    Configure loguru sinks for the bot.

    Args:
        config: Bot configuration
        console: Whether to output to console

    Returns:
        Path of the main log file
    """
    logger.remove()
    logger.configure(extra={"context": ""})

    if console:
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level=config.log_level, colorize=True)

    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(log_path),
        format=FILE_FORMAT,
        level=config.log_level,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        enqueue=True,  # handlers run on many tasks
    )

    # Failed lookups and crashed commands, kept longer
    logger.add(
        str(log_path.with_name(f"{log_path.stem}-errors{log_path.suffix or '.log'}")),
        format=FILE_FORMAT,
        level="ERROR",
        rotation="10 MB",
        retention="60 days",
        compression="zip",
        enqueue=True,
    )

    logger.info(f"Logging initialized - Level: {config.log_level}, File: {log_path}")
    return log_path


class CommandLogger:
    """
    Context logger for a single command invocation.

    Binds the command and chat so every sink renders them as "[/track:42] ".
    """

    def __init__(self, command: str, chat_id: int, message_id: Optional[int] = None):
        self.command = command
        self.chat_id = chat_id
        self.message_id = message_id
        self._logger = logger.bind(
            context=f"[/{command}:{chat_id}] ",
            command=command,
            chat_id=chat_id,
            message_id=message_id,
        )

    def info(self, message: str, **kwargs):
        self._logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._logger.warning(message, **kwargs)
